"""Shared dataclasses used by the ingestion pipeline and the client library.

Page records, search documents, and search map entries are created once per
version build and never mutated afterwards, so they are frozen. Each type knows
how to convert itself to and from the JSON shapes written into
``versions.json`` and ``search_map.json``.
"""

from __future__ import annotations

import dataclasses as dc
import math
import typing as typ


@dc.dataclass(frozen=True, slots=True)
class Section:
    """In-document heading usable as a deep link.

    Attributes
    ----------
    id : str
        Anchor id of the heading element.
    text : str
        Heading text without the trailing anchor glyph.
    level : int
        Heading depth (2-6).
    """

    id: str
    text: str
    level: int

    def to_dict(self) -> dict[str, typ.Any]:
        """Return the JSON form of the section."""
        return {"id": self.id, "text": self.text, "level": self.level}

    @classmethod
    def from_dict(cls, payload: typ.Mapping[str, typ.Any]) -> Section:
        """Build a section from its JSON form."""
        return cls(
            id=str(payload["id"]),
            text=str(payload.get("text", "")),
            level=int(payload.get("level", 2)),
        )


@dc.dataclass(frozen=True, slots=True)
class ProposalMeta:
    """Numbering and status metadata for proposal-class documents.

    Attributes
    ----------
    number : str | None
        Zero-padded proposal number, possibly with a variant suffix (``"012a"``).
    status : str
        Lower-cased status; defaults to the configured draft-like status.
    extra : dict[str, str]
        Optional descriptive fields (``author``, ``created``, ``semver``,
        ``obsoleted_by``) carried for display only.
    """

    number: str | None
    status: str
    extra: dict[str, str] = dc.field(default_factory=dict)

    def to_dict(self) -> dict[str, typ.Any]:
        """Return the JSON form of the proposal metadata."""
        return {"number": self.number, "status": self.status, **self.extra}

    @classmethod
    def from_dict(cls, payload: typ.Mapping[str, typ.Any]) -> ProposalMeta:
        """Build proposal metadata from its JSON form."""
        extra = {
            str(key): str(value)
            for key, value in payload.items()
            if key not in {"number", "status"} and value is not None
        }
        number = payload.get("number")
        return cls(
            number=None if number is None else str(number),
            status=str(payload.get("status") or "draft"),
            extra=extra,
        )


@dc.dataclass(frozen=True, slots=True)
class PageRecord:
    """One navigable document's structural metadata."""

    id: str
    file: str
    title: str
    nav_label: str | None = None
    nav_order: float | None = None
    parent: str | None = None
    sections: tuple[Section, ...] = ()
    proposal_meta: ProposalMeta | None = None
    is_obsoleted: bool = False

    @property
    def label(self) -> str:
        """Return the sidebar label, defaulting to the title."""
        return self.nav_label or self.title

    def to_dict(self) -> dict[str, typ.Any]:
        """Return the JSON form used inside the version manifest."""
        payload: dict[str, typ.Any] = {
            "id": self.id,
            "file": self.file,
            "title": self.title,
            "navLabel": self.nav_label,
            "navOrder": _json_number(self.nav_order),
            "parent": self.parent,
            "sections": [section.to_dict() for section in self.sections],
            "isObsoleted": self.is_obsoleted,
        }
        if self.proposal_meta is not None:
            payload["proposalMeta"] = self.proposal_meta.to_dict()
        return payload

    @classmethod
    def from_dict(cls, payload: typ.Mapping[str, typ.Any]) -> PageRecord:
        """Build a page record from its manifest JSON form."""
        proposal = payload.get("proposalMeta")
        return cls(
            id=str(payload["id"]),
            file=str(payload["file"]),
            title=str(payload.get("title") or payload["id"]),
            nav_label=payload.get("navLabel"),
            nav_order=coerce_nav_order(payload.get("navOrder")),
            parent=payload.get("parent"),
            sections=tuple(
                Section.from_dict(item) for item in payload.get("sections") or ()
            ),
            proposal_meta=ProposalMeta.from_dict(proposal) if proposal else None,
            is_obsoleted=bool(payload.get("isObsoleted", False)),
        )


@dc.dataclass(frozen=True, slots=True)
class SearchDocument:
    """The indexable tuple handed to the index writer for one page."""

    id: int
    title: str
    content: str
    sections_text: str

    def to_dict(self) -> dict[str, typ.Any]:
        """Return the stored form of the document."""
        return {
            "id": self.id,
            "title": self.title,
            "content": self.content,
            "sections_text": self.sections_text,
        }

    @classmethod
    def from_dict(cls, payload: typ.Mapping[str, typ.Any]) -> SearchDocument:
        """Build a search document from its stored form."""
        return cls(
            id=int(payload["id"]),
            title=str(payload.get("title") or ""),
            content=str(payload.get("content") or ""),
            sections_text=str(payload.get("sections_text") or ""),
        )


@dc.dataclass(frozen=True, slots=True)
class SearchMapEntry:
    """Minimal render metadata keyed by the same id as a search document."""

    title: str
    href: str
    sections: tuple[Section, ...] = ()
    is_obsoleted: bool = False

    def to_dict(self) -> dict[str, typ.Any]:
        """Return the JSON form written to ``search_map.json``."""
        return {
            "title": self.title,
            "href": self.href,
            "sections": [section.to_dict() for section in self.sections],
            "isObsoleted": self.is_obsoleted,
        }

    @classmethod
    def from_dict(cls, payload: typ.Mapping[str, typ.Any]) -> SearchMapEntry:
        """Build a map entry from its JSON form."""
        return cls(
            title=str(payload.get("title") or ""),
            href=str(payload["href"]),
            sections=tuple(
                Section.from_dict(item) for item in payload.get("sections") or ()
            ),
            is_obsoleted=bool(payload.get("isObsoleted", False)),
        )


@dc.dataclass(frozen=True, slots=True)
class ExtractedRecord:
    """Output of the record extractor for one source document.

    Attributes
    ----------
    title : str
        Resolved display title.
    sections : tuple[Section, ...]
        Sub-top-level headings with anchors and text.
    plain_text : str
        Body text with interactive example blocks removed.
    html : str
        Rendered HTML fragment written to the version output.
    metadata : dict[str, Any]
        Front matter of the source document.
    proposal_meta : ProposalMeta | None
        Present only for proposal-class documents.
    is_obsoleted : bool
        Whether the document is retained for search only.
    degraded : bool
        ``True`` when structural parsing failed and fallbacks were used.
    """

    title: str
    sections: tuple[Section, ...]
    plain_text: str
    html: str
    metadata: dict[str, typ.Any]
    proposal_meta: ProposalMeta | None
    is_obsoleted: bool
    degraded: bool = False


def _json_number(value: float | None) -> int | float | None:
    if value is not None and value.is_integer():
        return int(value)
    return value


def coerce_nav_order(value: object) -> float | None:
    """Return a finite numeric nav order, or None when absent or not numeric.

    NaN and infinities are treated as absent: they have no consistent
    position among siblings and cannot be written as JSON.

    Examples
    --------
    >>> coerce_nav_order(" 2 ")
    2.0
    >>> coerce_nav_order("nan") is None
    True
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        if isinstance(value, int | float):
            result = float(value)
        else:
            result = float(str(value).strip())
    except (OverflowError, ValueError):
        return None
    return result if math.isfinite(result) else None


__all__ = [
    "ExtractedRecord",
    "PageRecord",
    "ProposalMeta",
    "SearchDocument",
    "SearchMapEntry",
    "Section",
    "coerce_nav_order",
]
