"""Markdown extensions for heading anchors and interactive example blocks.

``HeadingAnchorExtension`` gives every heading a stable, text-derived ``id``
and a trailing ``#`` permalink so the extractor can expose headings as deep
links. ``InteractiveBlockExtension`` turns fenced blocks tagged with the
interactive fence (``jmespath-interactive`` by default) into self-contained
playground containers that the extractor later strips before collecting
search text.
"""

from __future__ import annotations

import json
import re
import typing as typ

from markdown.extensions import Extension
from markdown.preprocessors import Preprocessor
from markdown.treeprocessors import Treeprocessor

from spec_pages._constants import (
    HEADER_ANCHOR_CLASS,
    INTERACTIVE_SEPARATOR,
    PLAYGROUND_CLASSES,
)
from spec_pages.templating import get_environment

if typ.TYPE_CHECKING:
    from xml.etree.ElementTree import Element

    from markdown import Markdown
else:  # pragma: no cover - type-checking fallback
    Markdown = typ.Any
    Element = typ.Any

HEADING_TAGS = {f"h{depth}": depth for depth in range(1, 7)}
_SEPARATOR_PATTERN = re.compile(
    rf"^\s*{re.escape(INTERACTIVE_SEPARATOR)}\s*$", re.MULTILINE
)


def slugify_heading(text: str) -> str:
    """Return the anchor id for heading ``text`` (may be empty).

    >>> slugify_heading("2.1 Function Expressions!")
    'function-expressions'
    """
    slug = text.lower()
    slug = re.sub(r"^[^a-z_]+", "", slug)
    slug = re.sub(r"[^\w-]+", "-", slug)
    slug = re.sub(r"-{2,}", "-", slug)
    return slug.strip("-")


class HeadingAnchorExtension(Extension):
    """Assign text-derived ids and permalink anchors to headings."""

    def extendMarkdown(self, md: Markdown) -> None:  # type: ignore[override]  # noqa: N802
        """Register the heading treeprocessor on the Markdown instance."""
        md.treeprocessors.register(
            HeadingAnchorTreeprocessor(md), "spec_heading_anchors", 15
        )


class HeadingAnchorTreeprocessor(Treeprocessor):
    """Rewrite heading elements in place once inline parsing has finished."""

    def run(self, root: Element) -> Element:
        """Attach ``id`` attributes and anchor links to every heading."""
        used: set[str] = set()
        fallback_counter = 0
        for element in root.iter():
            depth = HEADING_TAGS.get(element.tag)
            if depth is None:
                continue
            text = "".join(element.itertext()).strip()
            base = slugify_heading(text)
            if not base:
                fallback_counter += 1
                base = f"section-{depth}-{fallback_counter}"
            anchor_id = _unique_anchor(base, used)
            element.set("id", anchor_id)
            _append_anchor(element, anchor_id)
        return root


def _unique_anchor(base: str, used: set[str]) -> str:
    """Return a unique anchor, appending numeric suffixes and mutating ``used``."""
    candidate = base
    suffix = 2
    while candidate in used:
        candidate = f"{base}-{suffix}"
        suffix += 1
    used.add(candidate)
    return candidate


def _append_anchor(element: Element, anchor_id: str) -> None:
    if len(element):
        last = element[-1]
        last.tail = f"{last.tail or ''} "
    else:
        element.text = f"{element.text or ''} "
    link = element.makeelement(
        "a",
        {
            "href": f"#{anchor_id}",
            "class": HEADER_ANCHOR_CLASS,
            "aria-label": "Link to this section",
        },
    )
    link.text = "#"
    element.append(link)


class InteractiveBlockExtension(Extension):
    """Render fenced interactive examples as playground containers."""

    def __init__(self, fence: str = "jmespath-interactive") -> None:
        super().__init__()
        self.fence = fence

    def extendMarkdown(self, md: Markdown) -> None:  # type: ignore[override]  # noqa: N802
        """Register the interactive-block preprocessor ahead of fenced code."""
        md.preprocessors.register(
            InteractiveBlockPreprocessor(md, self.fence), "spec_interactive_blocks", 30
        )


class InteractiveBlockPreprocessor(Preprocessor):
    """Replace interactive fenced blocks with stashed playground HTML."""

    def __init__(self, md: Markdown, fence: str) -> None:
        super().__init__(md)
        self.pattern = re.compile(
            rf"^(?P<fence>`{{3,}}|~{{3,}})[ \t]*{re.escape(fence)}(?P<options>[^\n]*)\n"
            r"(?P<body>.*?)\n?^(?P=fence)[ \t]*$",
            re.MULTILINE | re.DOTALL,
        )

    def run(self, lines: list[str]) -> list[str]:
        """Return ``lines`` with every interactive block replaced by a placeholder."""
        text = "\n".join(lines)
        counter = 0

        def _replace(match: re.Match[str]) -> str:
            nonlocal counter
            counter += 1
            expanded, title = _parse_options(match.group("options"))
            block = render_interactive_block(
                match.group("body"), title=title, expanded=expanded, suffix=str(counter)
            )
            placeholder = self.md.htmlStash.store(block)
            return f"\n{placeholder}\n"

        return self.pattern.sub(_replace, text).split("\n")


def _parse_options(raw: str) -> tuple[bool, str]:
    """Split ``[expanded] [Title]`` from the fence info string."""
    remaining = raw.strip()
    expanded = False
    if remaining.startswith("expanded"):
        expanded = True
        remaining = remaining[len("expanded") :].strip()
    return expanded, remaining


def render_interactive_block(
    body: str, *, title: str = "", expanded: bool = False, suffix: str = "1"
) -> str:
    """Return the playground HTML for an interactive example ``body``.

    Parameters
    ----------
    body : str
        Initial JSON and query separated by a ``---JMESPATH---`` line.
    title : str, optional
        Toggle label; defaults to ``"Interactive Example"``.
    expanded : bool, optional
        Whether the playground starts open.
    suffix : str, optional
        Per-document counter used to build unique element ids.
    """
    parts = [part.strip() for part in _SEPARATOR_PATTERN.split(body, maxsplit=1)]
    initial_json = parts[0] if parts else ""
    initial_query = parts[1] if len(parts) > 1 else ""
    is_valid_json = _is_valid_json(initial_json)
    json_warning = bool(initial_json) and not is_valid_json

    template = get_environment().get_template("playground.jinja")
    return template.render(
        classes=PLAYGROUND_CLASSES,
        suffix=suffix,
        title=title or "Interactive Example",
        expanded=expanded,
        initial_json=initial_json,
        initial_query=initial_query,
        json_warning=json_warning,
    )


def _is_valid_json(text: str) -> bool:
    if not text:
        return False
    try:
        json.loads(text)
    except json.JSONDecodeError:
        return False
    return True


__all__ = [
    "HeadingAnchorExtension",
    "HeadingAnchorTreeprocessor",
    "InteractiveBlockExtension",
    "InteractiveBlockPreprocessor",
    "render_interactive_block",
    "slugify_heading",
]
