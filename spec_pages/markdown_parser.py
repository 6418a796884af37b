r"""Split markdown sources into front matter and body text.

Source documents may open with a ``---`` delimited YAML block carrying page
metadata (``id``, ``parent``, ``title``, ``nav_label``, ``nav_order``,
``status`` and the proposal number key). This module separates that block from
the markdown body and derives readable fallback titles from filenames.

Example
-------
>>> from spec_pages.markdown_parser import split_front_matter
>>> doc = split_front_matter("---\ntitle: Intro\n---\n# Hello\n", "intro.md")
>>> doc.metadata["title"]
'Intro'
>>> doc.body
'# Hello\n'
"""

from __future__ import annotations

import dataclasses as dc
import logging
import re
import typing as typ
from pathlib import PurePosixPath

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

logger = logging.getLogger(__name__)

FRONT_MATTER_PATTERN = re.compile(
    r"\A---[ \t]*\r?\n(.*?)(?:\r?\n)?^---[ \t]*(?:\r?\n|\Z)", re.DOTALL | re.MULTILINE
)
_WORD_START = re.compile(r"\b\w")


@dc.dataclass(slots=True)
class SourceDocument:
    """Markdown body and the metadata mapping parsed from its front matter.

    Attributes
    ----------
    metadata : dict[str, Any]
        Front-matter keys and values; empty when the document has none or
        when the block could not be parsed.
    body : str
        Markdown content following the front matter.
    """

    metadata: dict[str, typ.Any]
    body: str


def split_front_matter(text: str, identifier: str) -> SourceDocument:
    """Separate leading YAML front matter from markdown ``text``.

    Parameters
    ----------
    text : str
        Raw source document.
    identifier : str
        Path used in log messages.

    Returns
    -------
    SourceDocument
        Parsed metadata and remaining body. Malformed front matter is logged
        and the whole document is treated as body with empty metadata.
    """
    match = FRONT_MATTER_PATTERN.match(text)
    if not match:
        return SourceDocument(metadata={}, body=text)

    loader = YAML(typ="safe")
    loader.version = (1, 2)
    try:
        loaded = loader.load(match.group(1))
    except YAMLError as exc:
        logger.warning("Could not parse front matter for %s: %s", identifier, exc)
        return SourceDocument(metadata={}, body=text)

    if loaded is None:
        loaded = {}
    if not isinstance(loaded, dict):
        logger.warning("Front matter for %s is not a mapping; ignoring it.", identifier)
        return SourceDocument(metadata={}, body=text)
    return SourceDocument(
        metadata={str(key): value for key, value in loaded.items()},
        body=text[match.end() :],
    )


def fallback_title(relative_path: str) -> str:
    """Return a title derived from a filename: punctuation to spaces, title-cased.

    >>> fallback_title("guides/getting-started_now.md")
    'Getting Started Now'
    """
    stem = PurePosixPath(relative_path.replace("\\", "/")).name
    if stem.lower().endswith(".md"):
        stem = stem[:-3]
    spaced = re.sub(r"[-_]", " ", stem)
    return _WORD_START.sub(lambda m: m.group(0).upper(), spaced)


__all__ = ["SourceDocument", "fallback_title", "split_front_matter"]
