"""Tests for the client search session lifecycle."""

from __future__ import annotations

import asyncio
import json
import threading
from pathlib import Path

import pytest
from bs4 import BeautifulSoup

from spec_pages._constants import SEARCH_MAP_FILE
from spec_pages.generator.models import SearchDocument, SearchMapEntry
from spec_pages.search.artifacts import (
    SearchArtifacts,
    load_search_artifacts,
    write_search_artifacts,
)
from spec_pages.search.engine import SEARCH_NOT_READY
from spec_pages.search.index import DocumentIndex, IndexArtifactError
from spec_pages.search.session import (
    SEARCH_FAILED_TO_LOAD,
    SearchSession,
    SearchState,
)


def _artifacts(version_id: str) -> SearchArtifacts:
    index = DocumentIndex()
    search_map: dict[int, SearchMapEntry] = {}
    for doc_id, title in enumerate(("Slices", "Slicing Guide", "Slice Errors")):
        index.add(SearchDocument(doc_id, title, f"{title} for {version_id}.", ""))
        search_map[doc_id] = SearchMapEntry(
            title, f"{version_id}-{doc_id}.html", is_obsoleted=doc_id == 2
        )
    return SearchArtifacts(index=index, search_map=search_map)


@pytest.fixture
def ready_session() -> SearchSession:
    """Return a session that has loaded version ``v1``."""
    session = SearchSession(_artifacts, debounce=0.01)
    assert asyncio.run(session.load_version("v1")) is True
    return session


def test_load_reaches_ready_state(ready_session: SearchSession) -> None:
    assert ready_session.state is SearchState.READY
    assert ready_session.placeholder == "Search docs..."
    assert ready_session.is_ready


def test_new_session_starts_loading_placeholder() -> None:
    session = SearchSession(_artifacts)
    assert session.state is SearchState.UNLOADED
    assert session.placeholder == "Loading search..."
    assert session.search_now("slices").error == SEARCH_NOT_READY


def test_stale_load_is_discarded() -> None:
    release_v1 = threading.Event()

    def _loader(version_id: str) -> SearchArtifacts:
        if version_id == "v1":
            release_v1.wait(timeout=5)
        else:
            release_v1.set()
        return _artifacts(version_id)

    session = SearchSession(_loader)

    async def _switch() -> list[bool]:
        return list(
            await asyncio.gather(session.load_version("v1"), session.load_version("v2"))
        )

    assert asyncio.run(_switch()) == [False, True]
    assert session.version_id == "v2"
    assert session.generation == 2
    (first, *_rest) = session.search_now("slices").results
    assert first.href.startswith("#v2/v2-")


def test_failed_load_marks_unavailable() -> None:
    def _broken(version_id: str) -> SearchArtifacts:
        msg = f"no index for {version_id}"
        raise IndexArtifactError(msg)

    session = SearchSession(_broken)
    assert asyncio.run(session.load_version("v9")) is False
    assert session.state is SearchState.UNAVAILABLE
    assert session.placeholder == SEARCH_FAILED_TO_LOAD
    assert session.search_now("slices").message == SEARCH_NOT_READY


@pytest.mark.parametrize(
    "bad_entry",
    ["oops", 3, {"title": "No href"}, {"href": "a.html", "sections": ["intro"]}],
)
def test_malformed_search_map_marks_unavailable(tmp_path: Path, bad_entry: object) -> None:
    artifacts = _artifacts("v1")
    write_search_artifacts(tmp_path, artifacts.index, artifacts.search_map)
    (tmp_path / SEARCH_MAP_FILE).write_text(json.dumps({"0": bad_entry}), encoding="utf-8")

    session = SearchSession(lambda _vid: load_search_artifacts(tmp_path))
    assert asyncio.run(session.load_version("v1")) is False
    assert session.state is SearchState.UNAVAILABLE
    assert session.placeholder == SEARCH_FAILED_TO_LOAD


def test_missing_version_id_requires_selection() -> None:
    session = SearchSession(_artifacts)
    assert asyncio.run(session.load_version(None)) is False
    assert session.placeholder == "Select version first"


def test_debounce_runs_only_last_query(ready_session: SearchSession) -> None:
    async def _type() -> tuple[asyncio.Task, str | None]:
        first = ready_session.on_input("sl")
        ready_session.on_input("slicing")
        outcome = await ready_session.settle()
        assert first is not None
        return first, outcome.query if outcome else None

    first_task, query = asyncio.run(_type())
    assert first_task.cancelled()
    assert query == "slicing"
    assert [r.title for r in ready_session.results] == ["Slicing Guide"]


def test_whitespace_input_clears_results(ready_session: SearchSession) -> None:
    ready_session.search_now("slic")
    assert ready_session.results

    async def _clear() -> None:
        assert ready_session.on_input("   ") is None

    asyncio.run(_clear())
    assert ready_session.results == ()
    assert ready_session.render() == ""


def test_arrow_navigation_wraps(ready_session: SearchSession) -> None:
    ready_session.search_now("slic")
    assert len(ready_session.results) == 3

    assert ready_session.move_highlight(-1) == 2, "ArrowUp with nothing selected picks the last"
    assert ready_session.move_highlight(1) == 0
    assert ready_session.move_highlight(1) == 1
    assert ready_session.move_highlight(-1) == 0
    assert ready_session.move_highlight(-1) == 2


def test_activate_returns_highlighted_and_closes(ready_session: SearchSession) -> None:
    ready_session.search_now("slic")
    ready_session.move_highlight(1)
    ready_session.move_highlight(1)

    chosen = ready_session.activate()

    assert chosen is not None
    assert chosen.id == 1
    assert ready_session.results == ()
    assert ready_session.highlighted == -1


def test_activate_without_highlight_picks_first(ready_session: SearchSession) -> None:
    ready_session.search_now("slic")
    chosen = ready_session.activate()
    assert chosen is not None
    assert chosen.id == 0


def test_render_marks_highlight_and_obsoleted(ready_session: SearchSession) -> None:
    ready_session.search_now("slic")
    ready_session.move_highlight(1)
    soup = BeautifulSoup(ready_session.render(), "html.parser")

    items = soup.select("li")
    assert len(items) == 3
    highlighted = soup.select("a.highlighted")
    assert [a["href"] for a in highlighted] == ["#v1/v1-0.html"]
    obsoleted = soup.select("li.result-obsoleted")
    assert len(obsoleted) == 1
    assert "(Obsoleted)" in obsoleted[0].get_text()
    assert obsoleted[0].select_one("mark") is not None


def test_render_shows_no_results_message(ready_session: SearchSession) -> None:
    ready_session.search_now("zzzz")
    soup = BeautifulSoup(ready_session.render(), "html.parser")
    node = soup.select_one("div.no-results")
    assert node is not None
    assert node.get_text(strip=True) == "No results found."
