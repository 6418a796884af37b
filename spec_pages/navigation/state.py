"""Expand/collapse and active-page state for a rendered navigation tree."""

from __future__ import annotations

import logging
import typing as typ

from .tree import NavNode, PageNode, node_key, walk

logger = logging.getLogger(__name__)


class NavigationState:
    """Track which container nodes are expanded and which page is active.

    The state is keyed by :func:`~spec_pages.navigation.tree.node_key`, so it
    survives re-rendering the same tree. Only :meth:`update_active` expands
    more than one node at a time; :meth:`toggle` flips a single node.
    """

    def __init__(self, tree: typ.Sequence[NavNode]) -> None:
        self.tree = list(tree)
        self.expanded: set[str] = set()
        self.active_file: str | None = None
        self.active_key: str | None = None
        self._ancestors: dict[str, tuple[str, ...]] = {}
        self._by_file: dict[str, str] = {}
        self._has_children: set[str] = set()
        for node, ancestors in walk(self.tree):
            key = node_key(node)
            self._ancestors[key] = tuple(node_key(parent) for parent in ancestors)
            if node.children:
                self._has_children.add(key)
            if isinstance(node, PageNode):
                self._by_file.setdefault(node.file, key)

    def is_expanded(self, node: NavNode | str) -> bool:
        """Return True when ``node`` (or its key) is expanded."""
        key = node if isinstance(node, str) else node_key(node)
        return key in self.expanded

    def is_active(self, node: NavNode) -> bool:
        """Return True for the page node showing the active file."""
        return self.active_key is not None and node_key(node) == self.active_key

    def ancestors_of(self, key: str) -> tuple[str, ...]:
        """Return the keys of every ancestor of ``key``, outermost first."""
        return self._ancestors.get(key, ())

    def update_active(self, file: str | None) -> str | None:
        """Mark the node for ``file`` active and expand its whole ancestry.

        The active node is expanded too when it has children. Containers off
        the active path keep whatever state they had.

        Returns
        -------
        str | None
            Key of the active node, or None when no page shows ``file``.
        """
        self.active_file = file
        self.active_key = self._by_file.get(file) if file else None
        if self.active_key is None:
            if file:
                logger.debug("No navigation entry for %s", file)
            return None
        for key in (*self.ancestors_of(self.active_key), self.active_key):
            if key in self._has_children:
                self.expanded.add(key)
        return self.active_key

    def toggle(self, node: NavNode | str) -> bool:
        """Flip one container's expanded state and return the new state."""
        key = node if isinstance(node, str) else node_key(node)
        if key not in self._has_children:
            logger.warning("Toggle requested for %s, which has no children.", key)
            return False
        if key in self.expanded:
            self.expanded.discard(key)
            return False
        self.expanded.add(key)
        return True


__all__ = ["NavigationState"]
