"""Render a navigation tree as sidebar HTML or a plain-text outline."""

from __future__ import annotations

import typing as typ

from spec_pages.templating import get_environment

from .tree import ContainerNode, NavNode, PageNode, StatusGroupNode, node_key

if typ.TYPE_CHECKING:
    from pathlib import Path

    from .state import NavigationState

EMPTY_VERSION_MESSAGE = "No documents found for this version."


class NavItem(typ.TypedDict):
    """Template-facing view of one navigation node."""

    key: str
    kind: str
    label: str
    href: str | None
    file: str | None
    expanded: bool
    active: bool
    children: list[NavItem]


def build_items(
    nodes: typ.Sequence[NavNode], version_id: str, state: NavigationState
) -> list[NavItem]:
    """Convert nodes into template items, handling every node kind."""
    items: list[NavItem] = []
    for node in nodes:
        match node:
            case PageNode(page=page):
                kind, href, file = "page", f"#{version_id}/{page.file}", page.file
            case StatusGroupNode():
                kind, href, file = "group", None, None
            case ContainerNode():
                kind, href, file = "container", None, None
        items.append(
            {
                "key": node_key(node),
                "kind": kind,
                "label": node.label,
                "href": href,
                "file": file,
                "expanded": state.is_expanded(node),
                "active": state.is_active(node),
                "children": build_items(node.children, version_id, state),
            }
        )
    return items


class NavigationRenderer:
    """Render the sidebar list for one version with ``nav.jinja``."""

    def __init__(self, templates_dir: Path | None = None) -> None:
        self.env = get_environment(templates_dir)
        self.template = self.env.get_template("nav.jinja")

    def render(self, version_id: str, state: NavigationState) -> str:
        """Return the ``<li>`` markup for the sidebar list.

        An empty tree renders the single line
        ``"No documents found for this version."``.
        """
        return self.template.render(
            items=build_items(state.tree, version_id, state),
            version_id=version_id,
            empty_message=EMPTY_VERSION_MESSAGE,
        )


def render_outline(state: NavigationState, *, indent: str = "  ") -> str:
    """Return an indented text outline with the active page marked ``*``.

    Collapsed containers still list their children so the whole tree is
    visible; expanded ones are marked ``-`` and collapsed ones ``+``.
    """
    if not state.tree:
        return EMPTY_VERSION_MESSAGE
    lines: list[str] = []

    def _emit(nodes: typ.Sequence[NavNode], depth: int) -> None:
        for node in nodes:
            match node:
                case PageNode(page=page):
                    suffix = f" ({page.file})"
                case StatusGroupNode() | ContainerNode():
                    suffix = ""
            if node.children:
                marker = "-" if state.is_expanded(node) else "+"
            else:
                marker = " "
            active = "*" if state.is_active(node) else " "
            lines.append(f"{indent * depth}{marker}{active} {node.label}{suffix}")
            _emit(node.children, depth + 1)

    _emit(state.tree, 0)
    return "\n".join(lines)


__all__ = ["EMPTY_VERSION_MESSAGE", "NavItem", "NavigationRenderer", "build_items", "render_outline"]
