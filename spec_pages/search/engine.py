"""Rank and present search hits for one loaded version.

The index reports hits per field, so one document can appear several times
in a single answer. :class:`SearchEngine` normalises every reported item once
into a :class:`SearchResult`, keeps the best-scoring field match for each
document, orders the survivors and turns them into render-ready
:class:`ResultView` values with highlighted snippets.

Scores are fixed: a title match is worth 3, a section-heading match 2 and a
body match 1. Obsoleted documents lose half a point, so they rank under an
equivalent live match but can still beat a weaker one. Equal scores are
ordered by document id.

Example
-------
>>> from spec_pages.search.engine import create_snippet
>>> create_snippet("The request timeout is configurable.", "timeout")
'The request <mark>timeout</mark> is configurable.'
"""

from __future__ import annotations

import dataclasses as dc
import logging
import re
import typing as typ
from html import escape

from spec_pages._constants import SEARCH_RESULT_LIMIT, SNIPPET_LENGTH
from spec_pages.generator.models import SearchDocument, Section

if typ.TYPE_CHECKING:
    from spec_pages.generator.models import SearchMapEntry

logger = logging.getLogger(__name__)

MIN_QUERY_LENGTH = 2
FIELD_WEIGHTS = {"title": 3.0, "sections_text": 2.0, "content": 1.0}
OBSOLETED_PENALTY = 0.5

SEARCH_NOT_READY = "Search not ready."
SEARCH_ERROR = "Search error."
UNEXPECTED_RESULTS = "Search error: Unexpected results."
NO_RESULTS = "No results found."


class SearchableIndex(typ.Protocol):
    """The query surface the engine needs from an imported index."""

    def search(
        self, query: str, *, limit: int, suggest: bool, enrich: bool
    ) -> typ.Any: ...


@dc.dataclass(frozen=True, slots=True)
class RawHit:
    """A bare document id reported by the index."""

    id: int


@dc.dataclass(frozen=True, slots=True)
class EnrichedHit:
    """A hit carrying the stored search document."""

    id: int
    document: SearchDocument


@dc.dataclass(frozen=True, slots=True)
class MapOnlyHit:
    """A hit object with an id but no stored document; only the map describes it."""

    id: int


IndexHit = RawHit | EnrichedHit | MapOnlyHit


@dc.dataclass(frozen=True, slots=True)
class SearchResult:
    """One scored document after normalisation against the search map."""

    id: int
    title: str
    content: str | None
    sections_text: str | None
    href: str
    sections: tuple[Section, ...]
    is_obsoleted: bool
    score: float
    matched_field: str


@dc.dataclass(frozen=True, slots=True)
class ResultView:
    """Render-ready search result.

    Attributes
    ----------
    id : int
        Numeric search document id.
    title : str
        Document title.
    href : str
        Navigation target ``#<version>/<file>`` with an optional
        ``#<section id>`` suffix.
    snippet : str
        HTML snippet; text is escaped and matches are wrapped in ``<mark>``.
    is_obsoleted : bool
        Whether the result should be flagged as obsoleted.
    score : float
        Final score after the obsoletion penalty.
    matched_field : str
        Field whose match produced the score.
    section_id : str | None
        Section chosen for the snippet, if any.
    """

    id: int
    title: str
    href: str
    snippet: str
    is_obsoleted: bool
    score: float
    matched_field: str
    section_id: str | None = None


@dc.dataclass(frozen=True, slots=True)
class SearchOutcome:
    """Answer to one query: results, or a short user-facing error."""

    query: str
    results: tuple[ResultView, ...] = ()
    error: str | None = None
    searched: bool = True

    @property
    def message(self) -> str | None:
        """Return the message shown in place of results, if any."""
        if self.error:
            return self.error
        if self.searched and not self.results:
            return NO_RESULTS
        return None


def calculate_score(field: str, *, is_obsoleted: bool) -> float:
    """Return the fixed weight of ``field`` minus the obsoletion penalty.

    >>> calculate_score("title", is_obsoleted=True)
    2.5
    """
    score = FIELD_WEIGHTS.get(field, 0.0)
    if is_obsoleted:
        score -= OBSOLETED_PENALTY
    return score


def _coerce_id(value: object) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


def classify_hit(item: object) -> IndexHit | None:
    """Return the tagged form of a raw index item, or None when unrecognised."""
    match item:
        case {"id": raw_id, "doc": dict() as doc}:
            doc_id = _coerce_id(raw_id)
            if doc_id is None:
                return None
            try:
                document = SearchDocument.from_dict({**doc, "id": doc_id})
            except (TypeError, ValueError):
                return MapOnlyHit(doc_id)
            return EnrichedHit(doc_id, document)
        case {"id": raw_id}:
            doc_id = _coerce_id(raw_id)
            return None if doc_id is None else MapOnlyHit(doc_id)
        case int() | str():
            doc_id = _coerce_id(item)
            return None if doc_id is None else RawHit(doc_id)
        case _:
            return None


def normalize_hit(
    hit: IndexHit, field: str, search_map: typ.Mapping[int, SearchMapEntry]
) -> SearchResult | None:
    """Resolve ``hit`` against the search map into a scored result."""
    entry = search_map.get(hit.id)
    if entry is None:
        logger.error("Doc ID %s found in search index but missing from search map", hit.id)
        return None

    match hit:
        case EnrichedHit(document=document):
            title = document.title or entry.title
            content = document.content or None
            sections_text = document.sections_text or None
        case RawHit() | MapOnlyHit():
            title = entry.title
            content = None
            sections_text = None

    return SearchResult(
        id=hit.id,
        title=title,
        content=content,
        sections_text=sections_text,
        href=entry.href,
        sections=entry.sections,
        is_obsoleted=entry.is_obsoleted,
        score=calculate_score(field, is_obsoleted=entry.is_obsoleted),
        matched_field=field,
    )


def merge_field_results(
    field_results: typ.Iterable[typ.Any], search_map: typ.Mapping[int, SearchMapEntry]
) -> dict[int, SearchResult]:
    """Keep the highest-scoring field match per document id."""
    merged: dict[int, SearchResult] = {}
    for field_result in field_results:
        if not isinstance(field_result, dict) or not isinstance(field_result.get("result"), list):
            continue
        field = str(field_result.get("field", ""))
        for item in field_result["result"]:
            hit = classify_hit(item)
            if hit is None:
                logger.warning("Skipping unexpected item format in search results: %r", item)
                continue
            result = normalize_hit(hit, field, search_map)
            if result is None:
                continue
            existing = merged.get(result.id)
            if existing is None or result.score > existing.score:
                merged[result.id] = result
    return merged


def rank_results(results: typ.Iterable[SearchResult]) -> list[SearchResult]:
    """Order results by descending score, then ascending document id."""
    return sorted(results, key=lambda result: (-result.score, result.id))


def query_terms(query: str) -> list[str]:
    """Return the lower-cased whitespace-separated terms longer than one character.

    >>> query_terms("A quick  Fox")
    ['quick', 'fox']
    """
    return [term for term in query.lower().split() if len(term) > 1]


def _snippet_start(lower_text: str, terms: typ.Sequence[str], max_length: int) -> int:
    start = 0
    for term in terms:
        position = lower_text.find(term)
        if position != -1:
            start = max(0, position - max_length // 4)
            break
    return max(0, min(start, len(lower_text) - 1))


def highlight_terms(text: str, terms: typ.Sequence[str]) -> str:
    """Escape ``text`` and wrap every case-insensitive occurrence of ``terms``.

    >>> highlight_terms("a <b> Timeout", ["timeout"])
    'a &lt;b&gt; <mark>Timeout</mark>'
    """
    if not terms:
        return escape(text)
    ordered = sorted(set(terms), key=len, reverse=True)
    pattern = re.compile("|".join(re.escape(term) for term in ordered), re.IGNORECASE)
    parts: list[str] = []
    cursor = 0
    for match in pattern.finditer(text):
        parts.append(escape(text[cursor : match.start()]))
        parts.append(f"<mark>{escape(match.group(0))}</mark>")
        cursor = match.end()
    parts.append(escape(text[cursor:]))
    return "".join(parts)


def create_snippet(text: str | None, query: str, max_length: int = SNIPPET_LENGTH) -> str:
    """Return an HTML snippet of ``text`` around the first query term.

    The window starts a quarter of ``max_length`` before the first matching
    term, gains ``...`` on each side that does not reach the end of ``text``
    and highlights every query term longer than one character.

    >>> create_snippet("x" * 30 + " needle " + "y" * 80, "needle")[:10]
    '...xxxxxxx'
    """
    if not text:
        return ""
    terms = query_terms(query)
    if not terms:
        snippet = escape(text[:max_length])
        return f"{snippet}..." if len(text) > max_length else snippet

    start = _snippet_start(text.lower(), terms, max_length)
    window = text[start : start + max_length]
    snippet = highlight_terms(window, terms)
    if start > 0:
        snippet = f"...{snippet}"
    if start + max_length < len(text):
        snippet = f"{snippet}..."
    return snippet


def snippet_source(result: SearchResult, query: str) -> tuple[str, str | None]:
    """Return the text to excerpt for ``result`` and the section it came from."""
    if result.matched_field == "sections_text" and result.sections:
        lowered = query.lower()
        for section in result.sections:
            if lowered in section.text.lower():
                return section.text, section.id
        return result.content or result.title or "", None
    primary = result.title if result.matched_field == "title" else result.content
    return primary or result.title or "", None


def build_view(result: SearchResult, query: str, version_id: str | None) -> ResultView:
    """Turn a ranked result into its rendered form."""
    text, section_id = snippet_source(result, query)
    href = f"#{version_id}/{result.href}"
    if section_id:
        href = f"{href}#{section_id}"
    return ResultView(
        id=result.id,
        title=result.title,
        href=href,
        snippet=create_snippet(text, query),
        is_obsoleted=result.is_obsoleted,
        score=result.score,
        matched_field=result.matched_field,
        section_id=section_id,
    )


class SearchEngine:
    """Answer ranked queries against one version's imported index."""

    def __init__(
        self,
        index: SearchableIndex,
        search_map: typ.Mapping[int, SearchMapEntry],
        version_id: str | None,
        *,
        limit: int = SEARCH_RESULT_LIMIT,
    ) -> None:
        self.index = index
        self.search_map = search_map
        self.version_id = version_id
        self.limit = limit

    def query(self, text: str) -> SearchOutcome:
        """Run ``text`` against the index and return the ranked outcome.

        Queries shorter than two characters after trimming return an empty,
        unsearched outcome without touching the index. Exceptions raised by
        the index, of whatever type, are logged and reported as
        ``"Search error."`` so a faulty index never breaks the search box.
        """
        trimmed = text.strip()
        if len(trimmed) < MIN_QUERY_LENGTH:
            return SearchOutcome(query=trimmed, searched=False)

        try:
            raw = self.index.search(trimmed, limit=self.limit, suggest=True, enrich=True)
        except Exception:
            logger.exception("Search failed for %r", trimmed)
            return SearchOutcome(query=trimmed, error=SEARCH_ERROR)

        if not isinstance(raw, list):
            logger.error("Unexpected search results format: %r", raw)
            return SearchOutcome(query=trimmed, error=UNEXPECTED_RESULTS)

        ranked = rank_results(merge_field_results(raw, self.search_map).values())
        views = tuple(build_view(result, trimmed, self.version_id) for result in ranked)
        logger.debug("Query %r returned %d result(s)", trimmed, len(views))
        return SearchOutcome(query=trimmed, results=views)


__all__ = [
    "NO_RESULTS",
    "SEARCH_ERROR",
    "SEARCH_NOT_READY",
    "EnrichedHit",
    "MapOnlyHit",
    "RawHit",
    "ResultView",
    "SearchEngine",
    "SearchOutcome",
    "SearchResult",
    "SearchableIndex",
    "build_view",
    "calculate_score",
    "classify_hit",
    "create_snippet",
    "highlight_terms",
    "merge_field_results",
    "normalize_hit",
    "query_terms",
    "rank_results",
    "snippet_source",
]
