"""Rebuild the sidebar hierarchy from a version's flat page list.

Pages are linked through their ``parent`` ids; a parent that cannot be found
makes the page a root instead of dropping it. Ordinary siblings are ordered by
``nav_order`` (pages that define it first, ascending) and then by title.

Proposal pages (those carrying ``proposal_meta``) are handled separately: they
are linked among themselves, and the root proposals are grouped into one
:class:`StatusGroupNode` per status, all inside a single trailing
:class:`ContainerNode`. Groups follow a fixed status priority and proposals
within a group are ordered by proposal number.

The tree is a closed variant of three node types, so renderers match on the
node class instead of checking ad hoc flags.

Example
-------
>>> from spec_pages.generator.models import PageRecord
>>> from spec_pages.navigation.tree import build_navigation_tree
>>> tree = build_navigation_tree([
...     PageRecord(id="a", file="a.html", title="Intro", nav_order=1),
...     PageRecord(id="b", file="b.html", title="Guide", parent="a", nav_order=1),
... ])
>>> [(node.id, [child.id for child in node.children]) for node in tree]
[('a', ['b'])]
"""

from __future__ import annotations

import dataclasses as dc
import logging
import math
import re
import typing as typ

if typ.TYPE_CHECKING:
    from spec_pages.generator.models import PageRecord

logger = logging.getLogger(__name__)

STATUS_PRIORITY = {"accepted": 0, "draft": 1, "obsoleted": 2, "rejected": 3}
PROPOSAL_CONTAINER_ID = "proposals"
DEFAULT_PROPOSAL_LABEL = "Proposals"
_NUMBER_PATTERN = re.compile(r"(\d+)")


@dc.dataclass(slots=True)
class PageNode:
    """A navigable page and its child nodes."""

    page: PageRecord
    children: list[NavNode] = dc.field(default_factory=list)

    @property
    def id(self) -> str:
        """Return the page id."""
        return self.page.id

    @property
    def label(self) -> str:
        """Return the sidebar label of the page."""
        return self.page.label

    @property
    def file(self) -> str:
        """Return the page's output file."""
        return self.page.file


@dc.dataclass(slots=True)
class StatusGroupNode:
    """Synthetic group of root proposals sharing one status."""

    status: str
    children: list[NavNode] = dc.field(default_factory=list)

    @property
    def id(self) -> str:
        """Return the synthesized group id."""
        return f"{PROPOSAL_CONTAINER_ID}-status-{self.status}"

    @property
    def label(self) -> str:
        """Return the display label, e.g. ``"Accepted"``."""
        return self.status.replace("-", " ").replace("_", " ").title()


@dc.dataclass(slots=True)
class ContainerNode:
    """Synthetic top-level container holding every proposal status group."""

    label: str = DEFAULT_PROPOSAL_LABEL
    children: list[NavNode] = dc.field(default_factory=list)
    id: str = PROPOSAL_CONTAINER_ID


NavNode = PageNode | StatusGroupNode | ContainerNode


def node_key(node: NavNode) -> str:
    """Return a key unique across node kinds, used for expand/active state.

    Page ids and synthetic ids live in separate namespaces so a page whose id
    happens to be ``"proposals"`` never shares state with the container.
    """
    match node:
        case PageNode():
            return f"page:{node.id}"
        case StatusGroupNode():
            return f"group:{node.status}"
        case ContainerNode():
            return f"container:{node.id}"


def nav_sort_key(page: PageRecord) -> tuple[int, float, str]:
    """Order pages with ``nav_order`` first (ascending), then by title."""
    if page.nav_order is None:
        return (1, 0.0, page.title)
    return (0, page.nav_order, page.title)


def proposal_sort_key(page: PageRecord) -> tuple[float, str, str]:
    """Order proposals by numeric number, then the full number string.

    >>> from spec_pages.generator.models import PageRecord, ProposalMeta
    >>> pages = [
    ...     PageRecord(id=n, file=f"{n}.html", title=n, proposal_meta=ProposalMeta(n, "draft"))
    ...     for n in ("012b", "002", "012a")
    ... ]
    >>> [p.id for p in sorted(pages, key=proposal_sort_key)]
    ['002', '012a', '012b']
    """
    number = page.proposal_meta.number if page.proposal_meta else None
    if not number:
        return (math.inf, "", page.title)
    match = _NUMBER_PATTERN.match(number)
    numeric = float(int(match.group(1))) if match else math.inf
    return (numeric, number, page.title)


def status_sort_key(status: str) -> tuple[int, str]:
    """Known statuses by fixed priority; unknown ones afterwards by name."""
    return (STATUS_PRIORITY.get(status, len(STATUS_PRIORITY)), status)


def link_pages(
    pages: typ.Sequence[PageRecord],
    sort_key: typ.Callable[[PageRecord], typ.Any],
) -> list[PageNode]:
    """Link ``pages`` by parent id and return the sorted roots.

    Each page is attached exactly once. Pages whose parent is missing from
    ``pages``, or whose parent chain loops back to themselves, become roots.
    """
    nodes: dict[str, PageNode] = {}
    for page in pages:
        if page.id in nodes:
            logger.warning("Duplicate page id %r in navigation; keeping the first.", page.id)
            continue
        nodes[page.id] = PageNode(page)

    roots: list[PageNode] = []
    for node in nodes.values():
        parent_id = node.page.parent
        if parent_id and parent_id in nodes and not _creates_cycle(node.id, parent_id, nodes):
            nodes[parent_id].children.append(node)
        else:
            if parent_id and parent_id not in nodes:
                logger.debug("Parent %r of %r not found; treating as root.", parent_id, node.id)
            roots.append(node)

    _sort_pages(roots, sort_key)
    return roots


def _creates_cycle(node_id: str, parent_id: str, nodes: dict[str, PageNode]) -> bool:
    seen: set[str] = set()
    current: str | None = parent_id
    while current and current in nodes and current not in seen:
        if current == node_id:
            return True
        seen.add(current)
        current = nodes[current].page.parent
    return False


def _sort_pages(
    nodes: list[PageNode], sort_key: typ.Callable[[PageRecord], typ.Any]
) -> None:
    nodes.sort(key=lambda node: sort_key(node.page))
    for node in nodes:
        children = typ.cast("list[PageNode]", node.children)
        _sort_pages(children, sort_key)


def build_proposal_container(
    proposals: typ.Sequence[PageRecord], *, label: str = DEFAULT_PROPOSAL_LABEL
) -> ContainerNode | None:
    """Group proposal pages by status inside one container node."""
    if not proposals:
        return None
    groups: dict[str, StatusGroupNode] = {}
    for root in link_pages(proposals, proposal_sort_key):
        meta = root.page.proposal_meta
        status = (meta.status if meta else "") or "draft"
        groups.setdefault(status, StatusGroupNode(status)).children.append(root)
    ordered = [groups[status] for status in sorted(groups, key=status_sort_key)]
    return ContainerNode(label=label, children=list(ordered))


def build_navigation_tree(
    pages: typ.Sequence[PageRecord],
    *,
    proposal_label: str = DEFAULT_PROPOSAL_LABEL,
) -> list[NavNode]:
    """Return the ordered navigation forest for a version's pages.

    Parameters
    ----------
    pages : Sequence[PageRecord]
        Non-obsoleted pages of one version; obsoleted pages that slip through
        are ignored.
    proposal_label : str, optional
        Label of the synthetic proposal container.

    Returns
    -------
    list[NavNode]
        Ordinary roots in sibling order, followed by the proposal container
        when any proposal pages exist.
    """
    visible = [page for page in pages if not page.is_obsoleted]
    ordinary = [page for page in visible if page.proposal_meta is None]
    proposals = [page for page in visible if page.proposal_meta is not None]

    tree: list[NavNode] = list(link_pages(ordinary, nav_sort_key))
    container = build_proposal_container(proposals, label=proposal_label)
    if container is not None:
        tree.append(container)
    return tree


def walk(
    nodes: typ.Sequence[NavNode], ancestors: tuple[NavNode, ...] = ()
) -> typ.Iterator[tuple[NavNode, tuple[NavNode, ...]]]:
    """Yield every node depth-first with its ancestors (outermost first)."""
    for node in nodes:
        yield node, ancestors
        yield from walk(node.children, (*ancestors, node))


__all__ = [
    "DEFAULT_PROPOSAL_LABEL",
    "STATUS_PRIORITY",
    "ContainerNode",
    "NavNode",
    "PageNode",
    "StatusGroupNode",
    "build_navigation_tree",
    "build_proposal_container",
    "link_pages",
    "nav_sort_key",
    "node_key",
    "proposal_sort_key",
    "status_sort_key",
    "walk",
]
