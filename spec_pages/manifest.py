"""Version manifest written to ``versions.json`` and read back by the client.

The manifest lists every successfully built version with its label, navigable
pages and default file, plus the site-wide default version id. It is the only
artifact the client needs to populate a version selector and bootstrap the
first navigation and content load.
"""

from __future__ import annotations

import dataclasses as dc
import json
import typing as typ
from pathlib import Path

from spec_pages._constants import PREFERRED_DEFAULT_FILES, VERSIONS_FILE
from spec_pages.generator.models import PageRecord


@dc.dataclass(frozen=True, slots=True)
class VersionManifest:
    """One built version: ``{id, label, pages, defaultFile}``."""

    id: str
    label: str
    pages: tuple[PageRecord, ...]
    default_file: str

    def has_file(self, file: str) -> bool:
        """Return True when ``file`` is one of the version's navigable pages."""
        return any(page.file == file for page in self.pages)

    def to_dict(self) -> dict[str, typ.Any]:
        """Return the JSON form of the version entry."""
        return {
            "id": self.id,
            "label": self.label,
            "pages": [page.to_dict() for page in self.pages],
            "defaultFile": self.default_file,
        }

    @classmethod
    def from_dict(cls, payload: typ.Mapping[str, typ.Any]) -> VersionManifest:
        """Build a version entry from its JSON form."""
        pages = tuple(PageRecord.from_dict(item) for item in payload.get("pages") or ())
        return cls(
            id=str(payload["id"]),
            label=str(payload.get("label") or payload["id"]),
            pages=pages,
            default_file=str(payload.get("defaultFile") or determine_default_file(pages)),
        )


@dc.dataclass(frozen=True, slots=True)
class SiteManifest:
    """All built versions and the configured default version id."""

    versions: tuple[VersionManifest, ...]
    default_version_id: str | None = None

    def get(self, version_id: str | None) -> VersionManifest | None:
        """Return the version with ``version_id`` or None."""
        return next((v for v in self.versions if v.id == version_id), None)

    @property
    def default_version(self) -> VersionManifest | None:
        """Return the default version, falling back to the first built one."""
        return self.get(self.default_version_id) or next(iter(self.versions), None)

    def to_dict(self) -> dict[str, typ.Any]:
        """Return the JSON form written to ``versions.json``."""
        return {
            "versions": [version.to_dict() for version in self.versions],
            "defaultVersionId": self.default_version_id,
        }

    @classmethod
    def from_dict(cls, payload: typ.Mapping[str, typ.Any]) -> SiteManifest:
        """Build the site manifest from its JSON form."""
        return cls(
            versions=tuple(
                VersionManifest.from_dict(item) for item in payload.get("versions") or ()
            ),
            default_version_id=payload.get("defaultVersionId"),
        )


def determine_default_file(pages: typ.Sequence[PageRecord]) -> str:
    """Return the preferred landing file among ``pages``.

    >>> determine_default_file([PageRecord(id="a", file="a.html", title="A"),
    ...                         PageRecord(id="i", file="Index.html", title="I")])
    'Index.html'
    >>> determine_default_file([])
    '_index.html'
    """
    for preferred in PREFERRED_DEFAULT_FILES:
        match = next((page for page in pages if page.file.lower() == preferred), None)
        if match is not None:
            return match.file
    if pages:
        return pages[0].file
    return PREFERRED_DEFAULT_FILES[0]


def write_site_manifest(output_dir: Path, manifest: SiteManifest) -> Path:
    """Write ``versions.json`` under ``output_dir`` and return its path."""
    output_dir.mkdir(parents=True, exist_ok=True)
    path = output_dir / VERSIONS_FILE
    path.write_text(json.dumps(manifest.to_dict(), indent=2), encoding="utf-8")
    return path


def load_site_manifest(path: Path) -> SiteManifest:
    """Read a site manifest from ``path`` (a file or the directory holding it).

    Raises
    ------
    FileNotFoundError
        If the manifest does not exist.
    TypeError
        If the top-level JSON value is not an object.
    """
    if path.is_dir():
        path = path / VERSIONS_FILE
    if not path.exists():
        msg = f"Version manifest not found: {path}"
        raise FileNotFoundError(msg)
    payload = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(payload, dict):
        msg = "versions.json must contain a JSON object."
        raise TypeError(msg)
    return SiteManifest.from_dict(payload)


__all__ = [
    "SiteManifest",
    "VersionManifest",
    "determine_default_file",
    "load_site_manifest",
    "write_site_manifest",
]
