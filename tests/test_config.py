"""Tests for site configuration loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from spec_pages.config import SiteConfigError, load_site_config


def _write_config(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "site.yaml"
    path.write_text(text.strip() + "\n", encoding="utf-8")
    return path


def test_versions_resolve_against_config_directory(tmp_path: Path) -> None:
    path = _write_config(
        tmp_path,
        """
defaults:
  sources_dir: sources
  output_dir: out
  default_version: v2
  max_workers: 2
versions:
  v1:
    label: Legacy
    ref: v1.0.0
  v2:
    source_path: docs
    exclude_globs: ["drafts/**"]
    local_docs_path: extra
proposals:
  prefix: JEP
  number_width: 4
  default_status: Draft
  label: Enhancement Proposals
""",
    )
    config = load_site_config(path)
    base = tmp_path.resolve()

    assert config.default_version_id == "v2"
    assert config.output_dir == base / "out"
    assert config.max_workers == 2

    v1 = config.get_version("v1")
    assert v1.label == "Legacy"
    assert v1.ref == "v1.0.0"
    assert [source.root for source in v1.sources] == [base / "sources" / "v1"]

    v2 = config.get_version(None)
    assert v2.label == "V2"
    primary, local = v2.sources
    assert primary.root == base / "sources" / "v2" / "docs"
    assert primary.include_globs == ["**/*.md"]
    assert primary.exclude_globs == ["drafts/**"]
    assert local.kind == "local"
    assert local.root == base / "extra"
    assert local.copy_assets is True

    assert config.proposals.prefix == "jep"
    assert config.proposals.metadata_key == "jep"
    assert config.proposals.number_width == 4
    assert config.proposals.default_status == "draft"
    assert config.proposals.label == "Enhancement Proposals"


def test_unknown_version_lists_known_ones(tmp_path: Path) -> None:
    config = load_site_config(_write_config(tmp_path, "versions:\n  main: {}\n"))
    with pytest.raises(KeyError, match="Known versions: main"):
        config.get_version("nope")


def test_missing_versions_rejected(tmp_path: Path) -> None:
    with pytest.raises(SiteConfigError):
        load_site_config(_write_config(tmp_path, "defaults:\n  output_dir: out\n"))


def test_scalar_top_level_rejected(tmp_path: Path) -> None:
    with pytest.raises(TypeError):
        load_site_config(_write_config(tmp_path, "- just\n- a list\n"))


def test_invalid_glob_list_rejected(tmp_path: Path) -> None:
    with pytest.raises(SiteConfigError, match="include_globs"):
        load_site_config(
            _write_config(tmp_path, "versions:\n  main:\n    include_globs:\n      a: b\n")
        )


def test_invalid_worker_count_rejected(tmp_path: Path) -> None:
    with pytest.raises(SiteConfigError, match="max_workers"):
        load_site_config(
            _write_config(tmp_path, "defaults:\n  max_workers: 0\nversions:\n  main: {}\n")
        )


def test_missing_file(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_site_config(tmp_path / "absent.yaml")
