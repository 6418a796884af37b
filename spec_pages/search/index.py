"""In-memory multi-field document index with named-chunk export and import.

``DocumentIndex`` indexes the ``title``, ``content`` and ``sections_text``
fields of :class:`~spec_pages.generator.models.SearchDocument` values using
forward tokenisation: every normalised term is stored under each of its
prefixes, so ``"time"`` finds documents containing ``"timeout"``.

The whole structure exports as named chunks (``reg``, ``<field>.map``,
``store`` and ``cfg``) that are plain JSON values. Importing those same chunks
into a fresh index yields identical query answers without any build-time
state.

Example
-------
>>> from spec_pages.generator.models import SearchDocument
>>> from spec_pages.search.index import DocumentIndex
>>> index = DocumentIndex()
>>> index.add(SearchDocument(id=0, title="Slices", content="Slicing arrays", sections_text=""))
>>> [item["field"] for item in index.search("slic")]
['title', 'content']
>>> clone = DocumentIndex.from_chunks(dict(index.export()))
>>> clone.search("slic") == index.search("slic")
True
"""

from __future__ import annotations

import logging
import re
import typing as typ
import unicodedata
from collections import Counter

from spec_pages._constants import SEARCH_RESULT_LIMIT
from spec_pages.generator.models import SearchDocument

logger = logging.getLogger(__name__)

INDEXED_FIELDS = ("title", "content", "sections_text")
TOKENIZE_MODE = "forward"
TOKEN_RE = re.compile(r"\w+", re.UNICODE)
MAP_SUFFIX = ".map"


class IndexArtifactError(RuntimeError):
    """Raised when index chunks cannot be fetched, decoded, or imported."""


class FieldResult(typ.TypedDict):
    """Hits reported for one indexed field."""

    field: str
    result: list[typ.Any]


def tokenize(text: str) -> list[str]:
    """Return the normalised terms of ``text``.

    >>> tokenize("Hello, World_2!")
    ['hello', 'world_2']
    """
    if not text:
        return []
    normalized = unicodedata.normalize("NFKC", text).casefold()
    return [match.group(0) for match in TOKEN_RE.finditer(normalized)]


def forward_tokens(text: str) -> Counter[str]:
    """Return every prefix of every term in ``text`` with its frequency.

    >>> sorted(forward_tokens("ab"))
    ['a', 'ab']
    """
    counts: Counter[str] = Counter()
    for term in tokenize(text):
        counts.update(term[:end] for end in range(1, len(term) + 1))
    return counts


class DocumentIndex:
    """Mutable inverted index over the fields of search documents."""

    def __init__(self, fields: typ.Sequence[str] = INDEXED_FIELDS) -> None:
        self.fields: tuple[str, ...] = tuple(fields)
        self._registry: list[int] = []
        self._maps: dict[str, dict[str, dict[int, int]]] = {
            field: {} for field in self.fields
        }
        self._store: dict[int, SearchDocument] = {}

    def __len__(self) -> int:
        return len(self._registry)

    def __contains__(self, doc_id: object) -> bool:
        return doc_id in self._store

    def add(self, document: SearchDocument) -> None:
        """Index ``document``; re-adding an id replaces the earlier entry."""
        if document.id in self._store:
            self.remove(document.id)
        self._registry.append(document.id)
        self._store[document.id] = document
        for field in self.fields:
            postings = self._maps[field]
            for token, count in forward_tokens(getattr(document, field)).items():
                postings.setdefault(token, {})[document.id] = count

    def remove(self, doc_id: int) -> None:
        """Drop ``doc_id`` from every structure; unknown ids are ignored."""
        if doc_id not in self._store:
            return
        del self._store[doc_id]
        self._registry.remove(doc_id)
        for postings in self._maps.values():
            empty = []
            for token, docs in postings.items():
                docs.pop(doc_id, None)
                if not docs:
                    empty.append(token)
            for token in empty:
                del postings[token]

    def get(self, doc_id: int) -> SearchDocument | None:
        """Return the stored document for ``doc_id``, if any."""
        return self._store.get(doc_id)

    def search(
        self,
        query: str,
        *,
        limit: int = SEARCH_RESULT_LIMIT,
        suggest: bool = False,
        enrich: bool = False,
    ) -> list[FieldResult]:
        """Return per-field hits for ``query``.

        Parameters
        ----------
        query : str
            Free text; each term must prefix-match a token in a field.
        limit : int, optional
            Maximum number of hits per field.
        suggest : bool, optional
            Also return documents matching only some of the query terms,
            ranked after the documents matching all of them.
        enrich : bool, optional
            Return ``{"id": ..., "doc": {...}}`` items carrying the stored
            document instead of bare ids.

        Returns
        -------
        list[FieldResult]
            One entry per field with at least one hit, in field order.
        """
        terms = list(dict.fromkeys(tokenize(query)))
        if not terms:
            return []
        results: list[FieldResult] = []
        for field in self.fields:
            ranked = self._rank_field(field, terms, suggest=suggest)[:limit]
            if not ranked:
                continue
            items: list[typ.Any] = [
                {"id": doc_id, "doc": self._store[doc_id].to_dict()} if enrich else doc_id
                for doc_id in ranked
            ]
            results.append({"field": field, "result": items})
        return results

    def _rank_field(self, field: str, terms: list[str], *, suggest: bool) -> list[int]:
        postings = self._maps.get(field, {})
        matched: Counter[int] = Counter()
        frequency: Counter[int] = Counter()
        for term in terms:
            for doc_id, count in postings.get(term, {}).items():
                matched[doc_id] += 1
                frequency[doc_id] += count
        candidates = [
            doc_id
            for doc_id, hits in matched.items()
            if suggest or hits == len(terms)
        ]
        return sorted(candidates, key=lambda doc_id: (-matched[doc_id], -frequency[doc_id], doc_id))

    def export(self) -> typ.Iterator[tuple[str, typ.Any]]:
        """Yield the named chunks describing the whole index.

        Nothing is yielded for an empty index.
        """
        if not self._registry:
            return
        yield "reg", list(self._registry)
        for field in self.fields:
            yield (
                f"{field}{MAP_SUFFIX}",
                {
                    token: [[doc_id, count] for doc_id, count in docs.items()]
                    for token, docs in self._maps[field].items()
                },
            )
        yield "store", {str(doc_id): doc.to_dict() for doc_id, doc in self._store.items()}
        yield "cfg", {"fields": list(self.fields), "tokenize": TOKENIZE_MODE}

    def import_chunk(self, key: str, data: typ.Any) -> None:
        """Restore one exported chunk.

        Raises
        ------
        IndexArtifactError
            If ``key`` is not a known chunk name or ``data`` has the wrong shape.
        """
        try:
            self._import_chunk(key, data)
        except (TypeError, ValueError, KeyError, AttributeError) as exc:
            msg = f"Malformed index chunk {key!r}: {exc}"
            raise IndexArtifactError(msg) from exc

    def _import_chunk(self, key: str, data: typ.Any) -> None:
        match key:
            case "reg":
                self._registry = [int(doc_id) for doc_id in data]
            case "store":
                self._store = {
                    int(doc_id): SearchDocument.from_dict(payload)
                    for doc_id, payload in data.items()
                }
            case "cfg":
                mode = data.get("tokenize", TOKENIZE_MODE)
                if mode != TOKENIZE_MODE:
                    msg = f"unsupported tokenize mode {mode!r}"
                    raise ValueError(msg)
                self.fields = tuple(str(field) for field in data["fields"])
                for field in self.fields:
                    self._maps.setdefault(field, {})
            case _ if key.endswith(MAP_SUFFIX):
                field = key[: -len(MAP_SUFFIX)]
                self._maps[field] = {
                    str(token): {int(doc_id): int(count) for doc_id, count in pairs}
                    for token, pairs in data.items()
                }
            case _:
                msg = f"Unknown index chunk {key!r}"
                raise IndexArtifactError(msg)

    @classmethod
    def from_chunks(cls, chunks: typ.Mapping[str, typ.Any]) -> DocumentIndex:
        """Build a queryable index purely from exported chunks."""
        index = cls()
        # cfg first so field maps are registered against the exported field list
        ordered = sorted(chunks.items(), key=lambda item: item[0] != "cfg")
        for key, data in ordered:
            index.import_chunk(key, data)
        index._maps = {field: index._maps.get(field, {}) for field in index.fields}
        logger.debug("Imported index with %d document(s)", len(index))
        return index


__all__ = [
    "INDEXED_FIELDS",
    "DocumentIndex",
    "FieldResult",
    "IndexArtifactError",
    "forward_tokens",
    "tokenize",
]
