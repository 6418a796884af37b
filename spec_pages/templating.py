"""Jinja environment shared by the sidebar and search-result renderers."""

from __future__ import annotations

import functools
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, select_autoescape

DEFAULT_TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"


@functools.cache
def _cached_environment(templates_dir: Path) -> Environment:
    return Environment(
        loader=FileSystemLoader(str(templates_dir)),
        autoescape=select_autoescape(["html", "xml", "jinja"]),
        trim_blocks=True,
        lstrip_blocks=True,
    )


def get_environment(templates_dir: Path | None = None) -> Environment:
    """Return the template environment for ``templates_dir`` (package default)."""
    return _cached_environment((templates_dir or DEFAULT_TEMPLATES_DIR).resolve())


__all__ = ["DEFAULT_TEMPLATES_DIR", "get_environment"]
