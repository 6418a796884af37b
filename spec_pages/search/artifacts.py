"""Write and load the per-version search artifacts.

A built version directory holds ``search_index.json`` (the exported index
chunks keyed by chunk name) and ``search_map.json`` (document id to render
metadata). Loading accepts either a local directory or an ``http(s)://`` base
URL; remote fetches go through a retrying ``requests`` session.
"""

from __future__ import annotations

import dataclasses as dc
import json
import logging
import typing as typ
from pathlib import Path

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from spec_pages._constants import SEARCH_INDEX_FILE, SEARCH_MAP_FILE
from spec_pages.generator.models import SearchMapEntry

from .index import DocumentIndex, IndexArtifactError

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 30


@dc.dataclass(slots=True)
class SearchArtifacts:
    """An imported index together with its search map."""

    index: DocumentIndex
    search_map: dict[int, SearchMapEntry]


def write_search_artifacts(
    version_output: Path,
    index: DocumentIndex,
    search_map: typ.Mapping[int, SearchMapEntry],
) -> list[Path]:
    """Persist the index chunks and search map into ``version_output``.

    Returns
    -------
    list[Path]
        Files written. The index file is skipped, with a warning, when the
        export produced no chunks.
    """
    written: list[Path] = []
    chunks = {key: data for key, data in index.export() if data is not None}
    if chunks:
        index_path = version_output / SEARCH_INDEX_FILE
        index_path.write_text(json.dumps(chunks, separators=(",", ":")), encoding="utf-8")
        written.append(index_path)
        logger.info("Search index saved to %s", index_path)
    else:
        logger.warning("Search index export resulted in empty data. No index file written.")

    map_path = version_output / SEARCH_MAP_FILE
    payload = {str(doc_id): entry.to_dict() for doc_id, entry in sorted(search_map.items())}
    map_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    written.append(map_path)
    logger.info("Search map saved to %s", map_path)
    return written


def _is_remote(location: str | Path) -> bool:
    return isinstance(location, str) and location.startswith(("http://", "https://"))


def _join(base: str | Path, name: str) -> str | Path:
    if _is_remote(base):
        return f"{str(base).rstrip('/')}/{name}"
    return Path(base) / name


def _build_session() -> requests.Session:
    session = requests.Session()
    retry = Retry(
        total=3,
        connect=3,
        read=3,
        backoff_factor=0.5,
        status_forcelist=(500, 502, 503, 504),
        allowed_methods=("GET", "HEAD"),
    )
    adapter = HTTPAdapter(max_retries=retry)
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    return session


def read_json(
    location: str | Path, *, session: requests.Session | None = None
) -> typ.Any:
    """Return the decoded JSON document at a path or URL.

    Raises
    ------
    IndexArtifactError
        If the document cannot be read or is not valid JSON.
    """
    try:
        if _is_remote(location):
            own_session = session is None
            active = session or _build_session()
            try:
                resp = active.get(str(location), timeout=REQUEST_TIMEOUT)
                resp.raise_for_status()
                text = resp.text
            finally:
                if own_session:
                    active.close()
        else:
            text = Path(location).read_text(encoding="utf-8")
        return json.loads(text)
    except (OSError, requests.RequestException, json.JSONDecodeError) as exc:
        msg = f"Could not load {location}: {exc}"
        raise IndexArtifactError(msg) from exc


def load_search_artifacts(
    base: str | Path, *, session: requests.Session | None = None
) -> SearchArtifacts:
    """Fetch and import the search artifacts of one built version.

    Parameters
    ----------
    base : str | Path
        Version output directory or base URL.
    session : requests.Session, optional
        Session reused for remote fetches.

    Raises
    ------
    IndexArtifactError
        If either artifact is missing, malformed, or fails to import.
    """
    chunks = read_json(_join(base, SEARCH_INDEX_FILE), session=session)
    raw_map = read_json(_join(base, SEARCH_MAP_FILE), session=session)
    if not isinstance(chunks, dict) or not isinstance(raw_map, dict):
        msg = f"Search artifacts under {base} are not JSON objects."
        raise IndexArtifactError(msg)

    index = DocumentIndex.from_chunks(chunks)
    for doc_id, entry in raw_map.items():
        if not isinstance(entry, dict):
            msg = f"Malformed search map under {base}: entry {doc_id!r} is not an object."
            raise IndexArtifactError(msg)
    try:
        search_map = {
            int(doc_id): SearchMapEntry.from_dict(entry) for doc_id, entry in raw_map.items()
        }
    except (AttributeError, TypeError, ValueError, KeyError) as exc:
        msg = f"Malformed search map under {base}: {exc}"
        raise IndexArtifactError(msg) from exc
    logger.debug("Loaded %d search map entries from %s", len(search_map), base)
    return SearchArtifacts(index=index, search_map=search_map)


__all__ = [
    "IndexArtifactError",
    "SearchArtifacts",
    "load_search_artifacts",
    "read_json",
    "write_search_artifacts",
]
