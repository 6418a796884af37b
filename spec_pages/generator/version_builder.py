"""Build every configured documentation version into a static output tree.

:class:`VersionBuilder` turns one :class:`~spec_pages.config.VersionConfig`
into ``<output_dir>/<version id>/``: rendered HTML fragments, copied static
assets, ``search_index.json`` and ``search_map.json``. It returns the
:class:`~spec_pages.manifest.VersionManifest` describing the version.

:class:`SiteBuilder` runs the version builds one after another. A version that
fails outright is logged and skipped; the remaining versions still build and
``versions.json`` lists only the versions that succeeded.

Example
-------
>>> from pathlib import Path
>>> from spec_pages.config import load_site_config
>>> from spec_pages.generator.version_builder import SiteBuilder
>>> config = load_site_config(Path("config/site.yaml"))  # doctest: +SKIP
>>> SiteBuilder(config).run()  # doctest: +SKIP
[PosixPath('public/v2/search_index.json'), ..., PosixPath('public/versions.json')]
"""

from __future__ import annotations

import dataclasses as dc
import logging
import shutil
import typing as typ
from pathlib import Path

from spec_pages.manifest import (
    SiteManifest,
    VersionManifest,
    determine_default_file,
    write_site_manifest,
)
from spec_pages.search.artifacts import write_search_artifacts
from spec_pages.search.index import DocumentIndex

from .catalog import PageCatalogBuilder, SourceFile, assign_doc_ids
from .extractor import RecordExtractor
from .renderer import HtmlContentRenderer

if typ.TYPE_CHECKING:
    from spec_pages.config import SiteConfig, SourceConfig, VersionConfig

    from .models import PageRecord

logger = logging.getLogger(__name__)

PYGMENTS_CSS_FILE = "pygments.css"


class VersionBuildError(RuntimeError):
    """Raised when a version cannot be built at all."""


@dc.dataclass(slots=True)
class VersionBuildResult:
    """Outcome of one version build."""

    manifest: VersionManifest
    written: list[Path]
    succeeded: int
    failed: int


def _is_hidden(relative: Path) -> bool:
    return any(part.startswith(".") for part in relative.parts)


def _glob(root: Path, pattern: str) -> typ.Iterator[Path]:
    yield from root.glob(pattern)
    # a trailing "**" only matches directories before Python 3.13
    if pattern.endswith("**"):
        yield from root.glob(f"{pattern}/*")


def discover_files(
    root: Path, include_globs: typ.Sequence[str], exclude_globs: typ.Sequence[str]
) -> list[str]:
    """Return sorted POSIX paths under ``root`` matching the include globs.

    Files matched by any exclude glob, directories and hidden entries are
    left out.
    """
    if not include_globs:
        logger.warning("No include globs provided for %s; no files will be matched.", root)
        return []

    def _matches(patterns: typ.Sequence[str]) -> set[str]:
        found: set[str] = set()
        for pattern in patterns:
            for path in _glob(root, pattern):
                relative = path.relative_to(root)
                if path.is_file() and not _is_hidden(relative):
                    found.add(relative.as_posix())
        return found

    files = sorted(_matches(include_globs) - _matches(exclude_globs))
    logger.debug("Found %d file(s) in %s", len(files), root)
    return files


def copy_static_assets(source_dir: Path, target_dir: Path) -> list[Path]:
    """Copy every non-markdown file below ``source_dir`` into ``target_dir``."""
    copied: list[Path] = []
    for path in sorted(source_dir.rglob("*")):
        if not path.is_file() or path.suffix.lower() == ".md":
            continue
        target = target_dir / path.relative_to(source_dir)
        target.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(path, target)
        logger.debug("Copied %s -> %s", path, target)
        copied.append(target)
    return copied


class VersionBuilder:
    """Ingest the sources of one version and emit its output directory."""

    def __init__(
        self,
        site: SiteConfig,
        *,
        renderer: HtmlContentRenderer | None = None,
    ) -> None:
        """Prepare the shared renderer and extractor for ``site``.

        Parameters
        ----------
        site : SiteConfig
            Site configuration providing the output root, worker count and
            proposal rules.
        renderer : HtmlContentRenderer, optional
            Override for the markdown renderer.
        """
        self.site = site
        self.renderer = renderer or HtmlContentRenderer(
            site.pygments_style, interactive_fence=site.interactive.fence
        )
        self.extractor = RecordExtractor(self.renderer, site.proposals)

    def output_path(self, version: VersionConfig) -> Path:
        """Return the output directory for ``version``."""
        return self.site.output_dir / version.id

    def build(self, version: VersionConfig) -> VersionBuildResult:
        """Render, index, and export ``version``.

        Returns
        -------
        VersionBuildResult
            The version manifest, the artifact paths written and task counts.

        Raises
        ------
        VersionBuildError
            If none of the version's sources exist or its artifacts cannot be
            written.
        """
        logger.info("Processing version %s (ref: %s)", version.label, version.ref)
        out_dir = self.output_path(version)
        shutil.rmtree(out_dir, ignore_errors=True)
        out_dir.mkdir(parents=True, exist_ok=True)

        available = [source for source in version.sources if self._source_exists(version, source)]
        if not available:
            msg = f"No source directories exist for version {version.id}."
            raise VersionBuildError(msg)

        queued: list[SourceFile] = []
        for source in available:
            relative_paths = discover_files(
                source.root, source.include_globs, source.exclude_globs
            )
            if not relative_paths:
                logger.info("No %s files found to process.", source.kind)
            queued.extend(assign_doc_ids(source.root, relative_paths, start=len(queued)))

        catalog = PageCatalogBuilder(
            self.extractor, out_dir, max_workers=self.site.max_workers
        ).build(queued)

        for source in available:
            if source.copy_assets:
                logger.info("Copying static assets from %s", source.root)
                copy_static_assets(source.root, out_dir)

        index = DocumentIndex()
        for document in catalog.documents:
            index.add(document)
        try:
            written = write_search_artifacts(out_dir, index, catalog.map_entries)
        except OSError as exc:
            msg = f"Could not write search artifacts for version {version.id}: {exc}"
            raise VersionBuildError(msg) from exc

        pages: tuple[PageRecord, ...] = tuple(catalog.pages)
        manifest = VersionManifest(
            id=version.id,
            label=version.label,
            pages=pages,
            default_file=determine_default_file(pages),
        )
        return VersionBuildResult(
            manifest=manifest,
            written=written,
            succeeded=catalog.succeeded,
            failed=catalog.failed,
        )

    @staticmethod
    def _source_exists(version: VersionConfig, source: SourceConfig) -> bool:
        if source.root.is_dir():
            return True
        logger.warning(
            "%s source path does not exist for version %s: %s. Skipping %s files.",
            source.kind.capitalize(),
            version.label,
            source.root,
            source.kind,
        )
        return False


class SiteBuilder:
    """Build versions sequentially and write the site-wide manifest."""

    def __init__(
        self,
        site: SiteConfig,
        *,
        version_builder: VersionBuilder | None = None,
    ) -> None:
        self.site = site
        self.version_builder = version_builder or VersionBuilder(site)
        self.results: dict[str, VersionBuildResult] = {}

    def build_versions(
        self, version_ids: typ.Sequence[str] | None = None
    ) -> list[VersionManifest]:
        """Build the selected versions (all by default), skipping failures.

        Any exception raised while building one version is logged with its
        traceback and that version is left out of the manifest; the
        remaining versions still build. A bad glob pattern, for example,
        surfaces as ``ValueError`` or ``NotImplementedError`` from
        :meth:`pathlib.Path.glob` rather than as :class:`VersionBuildError`.
        """
        selected = (
            [self.site.get_version(vid) for vid in version_ids]
            if version_ids
            else list(self.site.versions.values())
        )
        manifests: list[VersionManifest] = []
        for version in selected:
            try:
                result = self.version_builder.build(version)
            except Exception:
                logger.exception(
                    "Fatal error processing version %s; skipping this version.",
                    version.label,
                )
                continue
            self.results[version.id] = result
            manifests.append(result.manifest)
        return manifests

    def run(self, version_ids: typ.Sequence[str] | None = None) -> list[Path]:
        """Build versions, write ``versions.json`` and the code stylesheet.

        Returns
        -------
        list[Path]
            Every artifact path written, ``versions.json`` last.
        """
        manifests = self.build_versions(version_ids)
        written = [path for result in self.results.values() for path in result.written]

        css_path = self.site.output_dir / PYGMENTS_CSS_FILE
        self.site.output_dir.mkdir(parents=True, exist_ok=True)
        css_path.write_text(self.version_builder.renderer.stylesheet, encoding="utf-8")
        written.append(css_path)

        manifest = SiteManifest(
            versions=tuple(manifests),
            default_version_id=self.site.default_version_id,
        )
        written.append(write_site_manifest(self.site.output_dir, manifest))
        return written


__all__ = [
    "SiteBuilder",
    "VersionBuildError",
    "VersionBuildResult",
    "VersionBuilder",
    "copy_static_assets",
    "discover_files",
]
