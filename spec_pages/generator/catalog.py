"""Aggregate extracted records for one version into pages and search inputs.

Every source file is given its integer document id before any work starts, so
the thread pool can finish tasks in any order while the aggregated outputs stay
in id order. Each task reads one markdown file, writes one HTML fragment and
contributes one search document and one search map entry. A task that raises
is logged, counted as failed and left out of every output; its siblings are
unaffected.
"""

from __future__ import annotations

import dataclasses as dc
import logging
import typing as typ
from concurrent.futures import Future, ThreadPoolExecutor, wait
from pathlib import Path, PurePosixPath

from .models import (
    ExtractedRecord,
    PageRecord,
    SearchDocument,
    SearchMapEntry,
    coerce_nav_order,
)

if typ.TYPE_CHECKING:
    from .extractor import RecordExtractor

logger = logging.getLogger(__name__)


@dc.dataclass(frozen=True, slots=True)
class SourceFile:
    """A markdown file queued for processing with its pre-assigned id."""

    doc_id: int
    root: Path
    relative_path: str

    @property
    def path(self) -> Path:
        """Return the absolute location of the source file."""
        return self.root / self.relative_path


@dc.dataclass(frozen=True, slots=True)
class CatalogEntry:
    """Everything one successful task contributes to the version outputs."""

    doc_id: int
    page: PageRecord
    document: SearchDocument
    map_entry: SearchMapEntry


@dc.dataclass(slots=True)
class CatalogResult:
    """Aggregated outputs of one catalog batch.

    Attributes
    ----------
    pages : list[PageRecord]
        Navigable, non-obsoleted page records in document-id order.
    documents : list[SearchDocument]
        One search document per successful task, obsoleted ones included.
    map_entries : dict[int, SearchMapEntry]
        Render metadata keyed by document id.
    succeeded : int
        Number of tasks that completed.
    failed : int
        Number of tasks that raised and were excluded.
    """

    pages: list[PageRecord] = dc.field(default_factory=list)
    documents: list[SearchDocument] = dc.field(default_factory=list)
    map_entries: dict[int, SearchMapEntry] = dc.field(default_factory=dict)
    succeeded: int = 0
    failed: int = 0


def output_file_for(relative_path: str) -> str:
    """Return the output-relative HTML path for a markdown source path.

    >>> output_file_for("guides/intro.md")
    'guides/intro.html'
    """
    path = PurePosixPath(relative_path.replace("\\", "/"))
    if path.suffix.lower() == ".md":
        path = path.with_suffix(".html")
    return path.as_posix()


def default_page_id(relative_path: str) -> str:
    """Return the path-derived page id used when front matter declares none.

    >>> default_page_id("guides/intro.md")
    'guides/intro'
    """
    path = PurePosixPath(relative_path.replace("\\", "/"))
    if path.suffix.lower() == ".md":
        path = path.with_suffix("")
    return path.as_posix()


def assign_doc_ids(
    root: Path, relative_paths: typ.Iterable[str], *, start: int = 0
) -> list[SourceFile]:
    """Number ``relative_paths`` sequentially from ``start``."""
    return [
        SourceFile(doc_id=start + offset, root=root, relative_path=rel)
        for offset, rel in enumerate(relative_paths)
    ]


class PageCatalogBuilder:
    """Process a version's source files concurrently and merge the outcomes."""

    def __init__(
        self,
        extractor: RecordExtractor,
        output_dir: Path,
        *,
        max_workers: int = 8,
    ) -> None:
        """Bind the extractor and the directory receiving HTML fragments.

        Parameters
        ----------
        extractor : RecordExtractor
            Shared extractor; it holds no per-document state.
        output_dir : Path
            Version output directory; fragments land at ``output_dir / file``.
        max_workers : int, optional
            Size of the worker pool.
        """
        self.extractor = extractor
        self.output_dir = output_dir
        self.max_workers = max_workers

    def build(self, files: typ.Sequence[SourceFile]) -> CatalogResult:
        """Run one task per file and aggregate once every task has settled.

        Any exception raised by a task is logged with its traceback and
        counted as a failure, so one unreadable or malformed source never
        stops the rest of the version from building.
        """
        result = CatalogResult()
        if not files:
            return result

        logger.info("Processing %d file(s) with %d worker(s)", len(files), self.max_workers)
        outcomes: dict[int, CatalogEntry] = {}
        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures: dict[Future[CatalogEntry], SourceFile] = {
                executor.submit(self.process_file, source): source for source in files
            }
            wait(futures)

        for future, source in futures.items():
            try:
                outcomes[source.doc_id] = future.result()
            except Exception:
                logger.exception("Failed processing file %s", source.relative_path)
                result.failed += 1
            else:
                result.succeeded += 1

        used_ids: set[str] = set()
        for doc_id in sorted(outcomes):
            entry = outcomes[doc_id]
            result.documents.append(entry.document)
            result.map_entries[doc_id] = entry.map_entry
            if entry.page.is_obsoleted:
                logger.debug("Skipping navigation for obsoleted %s", entry.page.file)
                continue
            page = _with_unique_id(entry.page, used_ids)
            result.pages.append(page)

        logger.info(
            "Finished processing files. Successful: %d, Failed: %d.",
            result.succeeded,
            result.failed,
        )
        return result

    def process_file(self, source: SourceFile) -> CatalogEntry:
        """Extract, write, and describe a single source file."""
        logger.debug("Processing %s (doc %d)", source.relative_path, source.doc_id)
        raw_text = source.path.read_text(encoding="utf-8")
        record = self.extractor.extract(raw_text, source.relative_path)
        file = output_file_for(source.relative_path)

        target = self.output_dir / file
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(record.html, encoding="utf-8")
        return build_entry(source, record, file)


def build_entry(source: SourceFile, record: ExtractedRecord, file: str) -> CatalogEntry:
    """Assemble the page record, search document, and map entry for ``record``."""
    metadata = record.metadata
    page_id = _metadata_text(metadata.get("id")) or default_page_id(source.relative_path)
    page = PageRecord(
        id=page_id,
        file=file,
        title=record.title,
        nav_label=_metadata_text(metadata.get("nav_label")),
        nav_order=coerce_nav_order(metadata.get("nav_order")),
        parent=_metadata_text(metadata.get("parent")),
        sections=record.sections,
        proposal_meta=record.proposal_meta,
        is_obsoleted=record.is_obsoleted,
    )
    document = SearchDocument(
        id=source.doc_id,
        title=record.title,
        content=record.plain_text,
        sections_text=" ".join(section.text for section in record.sections),
    )
    map_entry = SearchMapEntry(
        title=record.title,
        href=file,
        sections=record.sections,
        is_obsoleted=record.is_obsoleted,
    )
    return CatalogEntry(
        doc_id=source.doc_id, page=page, document=document, map_entry=map_entry
    )


def _metadata_text(value: object) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _with_unique_id(page: PageRecord, used: set[str]) -> PageRecord:
    """Return ``page`` with an id not yet present in ``used``."""
    candidate = page.id
    suffix = 2
    while candidate in used:
        candidate = f"{page.id}-{suffix}"
        suffix += 1
    used.add(candidate)
    if candidate == page.id:
        return page
    logger.warning(
        "Duplicate page id %r for %s; using %r instead.", page.id, page.file, candidate
    )
    return dc.replace(page, id=candidate)


__all__ = [
    "CatalogEntry",
    "CatalogResult",
    "PageCatalogBuilder",
    "SourceFile",
    "assign_doc_ids",
    "build_entry",
    "default_page_id",
    "output_file_for",
]
