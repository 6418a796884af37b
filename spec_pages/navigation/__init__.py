"""Navigation tree building, active state, rendering, and fragment routing."""

from .renderer import NavigationRenderer, render_outline
from .router import NavigationTarget, ResolvedTarget, parse_fragment, resolve_target
from .state import NavigationState
from .tree import (
    ContainerNode,
    NavNode,
    PageNode,
    StatusGroupNode,
    build_navigation_tree,
)

__all__ = [
    "ContainerNode",
    "NavNode",
    "NavigationRenderer",
    "NavigationState",
    "NavigationTarget",
    "PageNode",
    "ResolvedTarget",
    "StatusGroupNode",
    "build_navigation_tree",
    "parse_fragment",
    "render_outline",
    "resolve_target",
]
