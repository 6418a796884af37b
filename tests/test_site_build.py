"""End-to-end tests: build a site, then search and navigate the output."""

from __future__ import annotations

import asyncio
from pathlib import Path

import msgspec.json as msgspec_json
import pytest
from bs4 import BeautifulSoup

from spec_pages import cli
from spec_pages._constants import SEARCH_INDEX_FILE, SEARCH_MAP_FILE, VERSIONS_FILE
from spec_pages.client import DocsClient
from spec_pages.config import VersionConfig, load_site_config
from spec_pages.generator.version_builder import (
    PYGMENTS_CSS_FILE,
    SiteBuilder,
    VersionBuilder,
    discover_files,
)
from spec_pages.manifest import load_site_manifest
from spec_pages.navigation.tree import build_navigation_tree, node_key, walk
from spec_pages.search.artifacts import load_search_artifacts
from spec_pages.search.engine import SearchEngine
from spec_pages.search.session import SearchSession, SearchState


def _write(root: Path, name: str, text: str) -> None:
    path = root / name
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


@pytest.fixture
def site_config_path(tmp_path: Path) -> Path:
    """Lay out sources for two buildable versions and one missing version."""
    sources = tmp_path / "sources"
    _write(sources / "v1", "index.md", "# Home\n\nWelcome to version one.\n")
    _write(sources / "v1", "guide.md", "---\nnav_order: 1\n---\n# Guide\n\nSet the timeout here.\n")

    v2 = sources / "v2"
    _write(v2, "spec.md", "# Specification\n\n## Slices\n\nSlices cut arrays.\n")
    _write(v2, "drafts/wip.md", "# Work In Progress\n")
    _write(v2, ".hidden/secret.md", "# Secret\n")
    _write(v2, "proposals/jep-001-intro.md", "---\nstatus: accepted\n---\n# Intro JEP\n")
    _write(v2, "proposals/jep-002-old.md", "---\nstatus: obsoleted\n---\n# Old slices JEP\n")
    _write(tmp_path / "extra", "notes.md", "# Local Notes\n")
    _write(tmp_path / "extra", "img/logo.svg", "<svg/>")

    config = tmp_path / "site.yaml"
    config.write_text(
        f"""
defaults:
  sources_dir: {sources}
  output_dir: {tmp_path / "public"}
  default_version: v2
  max_workers: 2
versions:
  v1:
    label: Version 1
  v2:
    label: Version 2
    exclude_globs: ["drafts/**"]
    local_docs_path: {tmp_path / "extra"}
  v3:
    label: Never Fetched
""".strip()
        + "\n",
        encoding="utf-8",
    )
    return config


@pytest.fixture
def built_site(site_config_path: Path) -> Path:
    """Build every version and return the output directory."""
    config = load_site_config(site_config_path)
    builder = SiteBuilder(config)
    written = builder.run()
    assert written[-1].name == VERSIONS_FILE
    assert set(builder.results) == {"v1", "v2"}
    return config.output_dir


def test_discover_files_skips_hidden_and_excluded(site_config_path: Path) -> None:
    root = site_config_path.parent / "sources" / "v2"
    assert discover_files(root, ["**/*.md"], ["drafts/**"]) == [
        "proposals/jep-001-intro.md",
        "proposals/jep-002-old.md",
        "spec.md",
    ]
    assert discover_files(root, [], []) == []


def test_versions_json_lists_built_versions_only(built_site: Path) -> None:
    payload = msgspec_json.decode((built_site / VERSIONS_FILE).read_bytes())
    assert [v["id"] for v in payload["versions"]] == ["v1", "v2"]
    assert payload["defaultVersionId"] == "v2"

    v1, v2 = payload["versions"]
    assert v1["defaultFile"] == "index.html"
    assert v2["defaultFile"] == "spec.html"
    v2_files = [page["file"] for page in v2["pages"]]
    assert "proposals/jep-002-old.html" not in v2_files, "obsoleted pages are not navigable"
    assert "notes.html" in v2_files
    assert (built_site / PYGMENTS_CSS_FILE).exists()


def test_version_outputs_written(built_site: Path) -> None:
    v2 = built_site / "v2"
    assert (v2 / SEARCH_INDEX_FILE).exists()
    assert (v2 / "img" / "logo.svg").read_text(encoding="utf-8") == "<svg/>"
    soup = BeautifulSoup((v2 / "spec.html").read_text(encoding="utf-8"), "html.parser")
    assert soup.select_one("h2#slices") is not None

    search_map = msgspec_json.decode((v2 / SEARCH_MAP_FILE).read_bytes())
    hrefs = {entry["href"]: entry["isObsoleted"] for entry in search_map.values()}
    assert hrefs["proposals/jep-002-old.html"] is True
    assert sorted(int(key) for key in search_map) == list(range(len(search_map)))


def test_doc_ids_continue_across_sources(built_site: Path) -> None:
    search_map = msgspec_json.decode((built_site / "v2" / SEARCH_MAP_FILE).read_bytes())
    assert search_map["3"]["href"] == "notes.html", "local sources follow primary ones"


def test_missing_source_version_is_skipped(
    site_config_path: Path, caplog: pytest.LogCaptureFixture
) -> None:
    config = load_site_config(site_config_path)
    SiteBuilder(config).run(["v3"])
    assert "Fatal error processing version Never Fetched" in caplog.text
    payload = msgspec_json.decode((config.output_dir / VERSIONS_FILE).read_bytes())
    assert payload["versions"] == []


def test_built_index_answers_queries(built_site: Path) -> None:
    artifacts = load_search_artifacts(built_site / "v2")
    outcome = SearchEngine(artifacts.index, artifacts.search_map, "v2").query("slices")
    # an obsoleted title match still beats a live section match
    assert [r.href for r in outcome.results][:2] == [
        "#v2/proposals/jep-002-old.html",
        "#v2/spec.html#slices",
    ]
    assert outcome.results[0].is_obsoleted


def test_cli_build_reports_counts(
    site_config_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    cli.build(config=site_config_path, version="v1")
    out = capsys.readouterr().out
    assert "versions.json" in out
    assert "v1: 2 page(s), 2 processed, 0 failed" in out


def test_cli_search(built_site: Path, capsys: pytest.CaptureFixture[str]) -> None:
    cli.search("timeout", output_dir=built_site, version="v1")
    assert capsys.readouterr().out.strip() == "1  Guide  #v1/guide.html"

    cli.search("zzzz", output_dir=built_site, version="v1")
    assert capsys.readouterr().out.strip() == "No results found."


def test_cli_search_reports_load_failure(
    built_site: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    (built_site / "v1" / SEARCH_INDEX_FILE).write_text("{broken", encoding="utf-8")
    cli.search("timeout", output_dir=built_site, version="v1")
    assert capsys.readouterr().out.strip() == "Search failed to load"


def test_cli_nav_outline(built_site: Path, capsys: pytest.CaptureFixture[str]) -> None:
    cli.nav(output_dir=built_site, version="v2", file="proposals/jep-001-intro.html")
    lines = capsys.readouterr().out.splitlines()
    assert lines[0] == "Version 2 (#v2/proposals/jep-001-intro.html)"
    assert "-  Proposals" in lines
    assert "  -  Accepted" in lines
    assert "     * Intro JEP (proposals/jep-001-intro.html)" in lines


def test_client_switches_versions_and_loads_search(built_site: Path) -> None:
    manifest = load_site_manifest(built_site)
    session = SearchSession(lambda vid: load_search_artifacts(built_site / vid))
    client = DocsClient(manifest, session)

    async def _browse() -> tuple[bool, bool]:
        first = client.navigate("#v1/guide.html")
        assert client.load_task is not None
        await client.load_task
        second = client.navigate("#v1/index.html")
        return first.version_changed, second.version_changed

    assert asyncio.run(_browse()) == (True, False)
    assert session.state is SearchState.READY
    assert session.version_id == "v1"

    soup = BeautifulSoup(client.sidebar_html(), "html.parser")
    active = soup.select_one("li.active a.nav-link")
    assert active is not None
    assert active["href"] == "#v1/index.html"


def test_client_falls_back_to_default_version(built_site: Path) -> None:
    manifest = load_site_manifest(built_site)
    session = SearchSession(lambda vid: load_search_artifacts(built_site / vid))
    client = DocsClient(manifest, session)

    async def _open() -> str | None:
        view = client.navigate("#nope/missing.html")
        await client.load_task  # type: ignore[misc]
        return view.target.fragment if view.target else None

    assert asyncio.run(_open()) == "#v2/spec.html"
    assert client.current_version_id == "v2"


def _build_snapshot(builder: VersionBuilder, version: VersionConfig) -> dict[str, list]:
    result = builder.build(version)
    out_dir = builder.output_path(version)
    artifacts = load_search_artifacts(out_dir)
    store = msgspec_json.decode((out_dir / SEARCH_INDEX_FILE).read_bytes())["store"]
    tree = build_navigation_tree(result.manifest.pages)
    return {
        "pages": [page.id for page in result.manifest.pages],
        "documents": [(int(doc_id), doc["title"]) for doc_id, doc in store.items()],
        "map": sorted((doc_id, entry.href) for doc_id, entry in artifacts.search_map.items()),
        "nav": [node_key(node) for node, _ancestors in walk(tree)],
    }


def test_rebuild_is_deterministic(site_config_path: Path) -> None:
    sources = site_config_path.parent / "sources" / "v2"
    for number in range(3, 12):
        _write(
            sources,
            f"guides/page-{number:02d}.md",
            f"---\nnav_order: {12 - number}\n---\n# Page {number}\n\nBody {number}.\n",
        )
    _write(sources, "guides/odd.md", "---\nnav_order: .nan\n---\n# Odd Order\n")
    config = load_site_config(site_config_path)
    assert config.max_workers > 1
    version = config.get_version("v2")

    first = _build_snapshot(VersionBuilder(config), version)
    second = _build_snapshot(VersionBuilder(config), version)

    assert first == second
    assert [doc_id for doc_id, _title in first["documents"]] == list(
        range(len(first["documents"]))
    )
    assert first["nav"][0] == "page:guides/page-11"
    # nine ordered guides, then unordered pages by title: Local Notes, Odd Order
    assert first["nav"].index("page:guides/odd") == 10


def test_failing_version_does_not_block_others(
    tmp_path: Path, caplog: pytest.LogCaptureFixture
) -> None:
    sources = tmp_path / "sources"
    _write(sources / "good", "index.md", "# Good\n")
    _write(sources / "bad", "index.md", "# Bad\n")
    config_path = tmp_path / "site.yaml"
    config_path.write_text(
        f"""
defaults:
  sources_dir: {sources}
  output_dir: {tmp_path / "public"}
  default_version: good
versions:
  good:
    label: Good
  bad:
    label: Bad
    include_globs: ["/absolute/*.md"]
""".strip()
        + "\n",
        encoding="utf-8",
    )
    config = load_site_config(config_path)

    written = SiteBuilder(config).run()

    assert written[-1].name == VERSIONS_FILE
    payload = msgspec_json.decode((config.output_dir / VERSIONS_FILE).read_bytes())
    assert [v["id"] for v in payload["versions"]] == ["good"]
    assert "Fatal error processing version Bad" in caplog.text
