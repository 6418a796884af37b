"""Turn one markdown source document into an indexable record.

The extractor renders the markdown body, then walks the resulting HTML with
BeautifulSoup to pick up the page title, the sub-top-level headings that serve
as deep links, and the plain text used for full-text search. Interactive
example blocks are removed before text extraction so their JSON fixtures never
pollute search results. Proposal-class documents (``jep-*.md`` by default) also
get normalised numbering and status metadata.

Structural parsing failures never abort a build: the extractor logs the
problem and returns the raw markdown body as text with no sections and the
filename-derived title.

Example
-------
>>> from spec_pages.config import ProposalConfig
>>> from spec_pages.generator.extractor import RecordExtractor
>>> from spec_pages.generator.renderer import HtmlContentRenderer
>>> extractor = RecordExtractor(HtmlContentRenderer(), ProposalConfig())
>>> record = extractor.extract("# Hello\\n\\n## Usage\\nText", "intro.md")
>>> record.title, [s.id for s in record.sections]
('Hello', ['usage'])
"""

from __future__ import annotations

import logging
import re
import typing as typ
from pathlib import PurePosixPath

from bs4 import BeautifulSoup, Comment, NavigableString, Tag
from bs4.builder import ParserRejectedMarkup

from spec_pages._constants import HEADER_ANCHOR_CLASS, PLAYGROUND_CLASSES
from spec_pages.markdown_parser import fallback_title, split_front_matter

from .models import ExtractedRecord, ProposalMeta, Section

if typ.TYPE_CHECKING:
    from spec_pages.config import ProposalConfig

    from .renderer import HtmlContentRenderer

logger = logging.getLogger(__name__)

SECTION_SELECTOR = "h2[id], h3[id], h4[id], h5[id], h6[id]"
OBSOLETE_STATUSES = frozenset({"obsoleted", "superseded"})
PROPOSAL_EXTRA_KEYS = ("author", "created", "semver", "obsoleted_by")


class RecordExtractor:
    """Extract titles, sections, plain text, and classification from markdown."""

    def __init__(
        self, renderer: HtmlContentRenderer, proposals: ProposalConfig
    ) -> None:
        self.renderer = renderer
        self.proposals = proposals

    def extract(self, raw_text: str, relative_path: str) -> ExtractedRecord:
        """Render and analyse one source document.

        Parameters
        ----------
        raw_text : str
            Complete source document including optional front matter.
        relative_path : str
            POSIX path of the document relative to its source root; drives
            the fallback title and proposal detection.

        Returns
        -------
        ExtractedRecord
            The extracted record; ``degraded`` is set when the rendered HTML
            could not be parsed and fallbacks were used.
        """
        source = split_front_matter(raw_text, relative_path)
        metadata = source.metadata
        html = self.renderer.markdown(source.body)
        default_title = fallback_title(relative_path)
        explicit_title = _optional_text(metadata.get("title"))

        soup = _parse_html(html, relative_path)
        if soup is None:
            logger.warning("Using fallback data for %s due to parsing failure.", relative_path)
            title = explicit_title or default_title
            sections: tuple[Section, ...] = ()
            plain_text = source.body
            degraded = True
        else:
            title = explicit_title or _extract_title(soup, default_title)
            sections = tuple(_extract_sections(soup))
            _remove_playgrounds(soup, relative_path)
            plain_text = _extract_text(soup)
            degraded = False

        return ExtractedRecord(
            title=title,
            sections=sections,
            plain_text=plain_text,
            html=html,
            metadata=metadata,
            proposal_meta=extract_proposal_meta(metadata, relative_path, self.proposals),
            is_obsoleted=is_obsoleted(metadata),
            degraded=degraded,
        )


def _optional_text(value: object) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _parse_html(html: str, identifier: str) -> BeautifulSoup | None:
    """Parse ``html`` or return None when the parser rejects the markup."""
    try:
        return BeautifulSoup(html, "html.parser")
    except ParserRejectedMarkup as exc:
        logger.error("Error parsing HTML for %s: %s", identifier, exc)
        return None


def _node_text(node: Tag) -> str:
    """Return the text of ``node`` without permalink anchors or comments."""
    parts: list[str] = []
    for child in node.children:
        if isinstance(child, Comment):
            continue
        if isinstance(child, NavigableString):
            parts.append(str(child))
        elif isinstance(child, Tag):
            if child.name == "a" and HEADER_ANCHOR_CLASS in (child.get("class") or []):
                continue
            parts.append(_node_text(child))
    return "".join(parts)


def _extract_title(soup: BeautifulSoup, fallback: str) -> str:
    heading = soup.find("h1")
    if not isinstance(heading, Tag):
        return fallback
    return _node_text(heading).strip() or fallback


def _extract_sections(soup: BeautifulSoup) -> typ.Iterator[Section]:
    """Yield sub-top-level headings that carry both an id and text."""
    for header in soup.select(SECTION_SELECTOR):
        anchor_id = header.get("id")
        text = _node_text(header).strip()
        if not anchor_id or not text:
            continue
        yield Section(id=str(anchor_id), text=text, level=int(header.name[1]))


def _remove_playgrounds(soup: BeautifulSoup, identifier: str) -> None:
    playgrounds = soup.select(f".{PLAYGROUND_CLASSES['container']}")
    for element in playgrounds:
        element.decompose()
    if playgrounds:
        logger.debug(
            "Removed %d playground(s) before text extraction for %s",
            len(playgrounds),
            identifier,
        )


def _extract_text(soup: BeautifulSoup) -> str:
    for anchor in soup.select(f"a.{HEADER_ANCHOR_CLASS}"):
        anchor.decompose()
    return " ".join(soup.get_text(" ").split())


def is_obsoleted(metadata: typ.Mapping[str, typ.Any]) -> bool:
    """Return True when front matter marks the document obsoleted or superseded."""
    if metadata.get("obsoleted_by"):
        return True
    status = _optional_text(metadata.get("status"))
    return bool(status) and status.lower() in OBSOLETE_STATUSES


def extract_proposal_meta(
    metadata: typ.Mapping[str, typ.Any], relative_path: str, rules: ProposalConfig
) -> ProposalMeta | None:
    """Return proposal metadata when the document belongs to the proposal class.

    Parameters
    ----------
    metadata : Mapping[str, Any]
        Front matter of the document.
    relative_path : str
        Source-relative path; its filename is matched against ``rules.prefix``.
    rules : ProposalConfig
        Prefix, metadata key, padding width, and default status.

    Returns
    -------
    ProposalMeta | None
        ``None`` for ordinary documents.
    """
    filename = PurePosixPath(relative_path.replace("\\", "/")).name.lower()
    declared = metadata.get(rules.metadata_key)
    if not filename.startswith(f"{rules.prefix}-") and rules.metadata_key not in metadata:
        return None

    raw_number = _optional_text(declared)
    if raw_number is None:
        match = re.search(
            rf"{re.escape(rules.prefix)}-(\d+[a-z]?)", relative_path, re.IGNORECASE
        )
        raw_number = match.group(1) if match else None

    status = _optional_text(metadata.get("status")) or rules.default_status
    extra = {
        key: str(metadata[key])
        for key in PROPOSAL_EXTRA_KEYS
        if metadata.get(key) is not None
    }
    return ProposalMeta(
        number=normalize_proposal_number(raw_number, rules.number_width),
        status=status.lower(),
        extra=extra,
    )


def normalize_proposal_number(value: str | None, width: int) -> str | None:
    """Zero-pad the numeric part of a proposal number.

    >>> normalize_proposal_number("12a", 3)
    '012a'
    >>> normalize_proposal_number("7", 3)
    '007'
    """
    if value is None:
        return None
    match = re.fullmatch(r"(\d+)(.*)", value.strip())
    if not match:
        return value.strip()
    digits, suffix = match.groups()
    return f"{digits.zfill(width)}{suffix.lower()}"


__all__ = [
    "RecordExtractor",
    "extract_proposal_meta",
    "is_obsoleted",
    "normalize_proposal_number",
]
