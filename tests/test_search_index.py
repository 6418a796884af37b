"""Tests for the document index and its on-disk artifacts."""

from __future__ import annotations

import json
from pathlib import Path

import msgspec.json as msgspec_json
import pytest
import requests
from pytest_mock import MockerFixture

from spec_pages._constants import SEARCH_INDEX_FILE, SEARCH_MAP_FILE
from spec_pages.generator.models import SearchDocument, SearchMapEntry, Section
from spec_pages.search.artifacts import (
    load_search_artifacts,
    read_json,
    write_search_artifacts,
)
from spec_pages.search.index import DocumentIndex, IndexArtifactError


@pytest.fixture
def index() -> DocumentIndex:
    """Return an index holding three small documents."""
    idx = DocumentIndex()
    idx.add(SearchDocument(0, "Timeouts", "Configure a request timeout.", "Defaults"))
    idx.add(SearchDocument(1, "Retries", "Retry after a timeout expires.", "Backoff Timeout"))
    idx.add(SearchDocument(2, "Logging", "Structured log output.", ""))
    return idx


def _ids(results: list[dict], field: str) -> list[int]:
    for item in results:
        if item["field"] == field:
            return list(item["result"])
    return []


def test_prefix_terms_match(index: DocumentIndex) -> None:
    results = index.search("time")
    assert _ids(results, "title") == [0]
    assert sorted(_ids(results, "content")) == [0, 1]
    assert _ids(results, "sections_text") == [1]


def test_all_terms_required_without_suggest(index: DocumentIndex) -> None:
    assert _ids(index.search("retry timeout"), "content") == [1]
    suggested = _ids(index.search("retry timeout", suggest=True), "content")
    assert suggested[0] == 1, "full matches rank before partial ones"
    assert 0 in suggested


def test_enrich_returns_stored_documents(index: DocumentIndex) -> None:
    (first,) = [item for item in index.search("logging", enrich=True) if item["field"] == "title"]
    assert first["result"] == [
        {
            "id": 2,
            "doc": {
                "id": 2,
                "title": "Logging",
                "content": "Structured log output.",
                "sections_text": "",
            },
        }
    ]


def test_remove_drops_document(index: DocumentIndex) -> None:
    index.remove(0)
    assert 0 not in index
    assert len(index) == 2
    assert _ids(index.search("timeouts"), "title") == []


def test_exported_chunks_reimport_with_identical_answers(index: DocumentIndex) -> None:
    chunks = dict(index.export())
    assert set(chunks) == {"reg", "title.map", "content.map", "sections_text.map", "store", "cfg"}

    # the chunks must survive a JSON round trip
    clone = DocumentIndex.from_chunks(json.loads(json.dumps(chunks)))
    for query in ("time", "retry timeout", "log", "missing"):
        assert clone.search(query, suggest=True, enrich=True) == index.search(
            query, suggest=True, enrich=True
        )


def test_empty_index_exports_nothing() -> None:
    assert list(DocumentIndex().export()) == []


def test_unknown_chunk_rejected() -> None:
    with pytest.raises(IndexArtifactError, match="Unknown index chunk"):
        DocumentIndex().import_chunk("bogus", {})


def test_malformed_chunk_rejected() -> None:
    with pytest.raises(IndexArtifactError, match="Malformed"):
        DocumentIndex().import_chunk("store", ["not", "a", "mapping"])


def test_write_and_load_artifacts(index: DocumentIndex, tmp_path: Path) -> None:
    search_map = {
        0: SearchMapEntry("Timeouts", "timeouts.html"),
        1: SearchMapEntry("Retries", "retries.html", (Section("backoff-timeout", "Backoff Timeout", 2),)),
        2: SearchMapEntry("Logging", "logging.html", is_obsoleted=True),
    }
    written = write_search_artifacts(tmp_path, index, search_map)
    assert [path.name for path in written] == [SEARCH_INDEX_FILE, SEARCH_MAP_FILE]

    raw_map = msgspec_json.decode((tmp_path / SEARCH_MAP_FILE).read_bytes())
    assert raw_map["1"]["sections"] == [
        {"id": "backoff-timeout", "text": "Backoff Timeout", "level": 2}
    ]
    assert raw_map["2"]["isObsoleted"] is True

    loaded = load_search_artifacts(tmp_path)
    assert loaded.search_map == search_map
    assert loaded.index.search("retr") == index.search("retr")


def test_empty_index_writes_only_the_map(tmp_path: Path) -> None:
    written = write_search_artifacts(tmp_path, DocumentIndex(), {})
    assert [path.name for path in written] == [SEARCH_MAP_FILE]
    with pytest.raises(IndexArtifactError):
        load_search_artifacts(tmp_path)


def test_invalid_json_raises_artifact_error(tmp_path: Path) -> None:
    target = tmp_path / "broken.json"
    target.write_text("{not json", encoding="utf-8")
    with pytest.raises(IndexArtifactError):
        read_json(target)


def test_remote_artifacts_use_session(mocker: MockerFixture) -> None:
    session = mocker.Mock(spec=requests.Session)
    response = mocker.Mock()
    response.text = '{"ok": true}'
    response.raise_for_status.return_value = None
    session.get.return_value = response

    payload = read_json("https://docs.example.test/v1/search_map.json", session=session)

    assert payload == {"ok": True}
    session.get.assert_called_once_with(
        "https://docs.example.test/v1/search_map.json", timeout=30
    )


def test_remote_failure_raises_artifact_error(mocker: MockerFixture) -> None:
    session = mocker.Mock(spec=requests.Session)
    session.get.side_effect = requests.ConnectionError("offline")
    with pytest.raises(IndexArtifactError, match="offline"):
        read_json("https://docs.example.test/v1/search_index.json", session=session)
