"""Single controller that owns the client-side view state.

:class:`DocsClient` holds everything the browser client used to keep in
module globals: the site manifest, the current version, the navigation state
of its sidebar and the search session. Each navigation request is resolved
through the router; a version change repopulates the sidebar and starts a
search index load for the new version.
"""

from __future__ import annotations

import asyncio
import dataclasses as dc
import logging
import typing as typ

from spec_pages.navigation.renderer import NavigationRenderer
from spec_pages.navigation.router import parse_fragment, resolve_target
from spec_pages.navigation.state import NavigationState
from spec_pages.navigation.tree import DEFAULT_PROPOSAL_LABEL, build_navigation_tree

if typ.TYPE_CHECKING:
    from spec_pages.manifest import SiteManifest, VersionManifest
    from spec_pages.navigation.router import ResolvedTarget
    from spec_pages.search.session import SearchSession

logger = logging.getLogger(__name__)


@dc.dataclass(frozen=True, slots=True)
class ClientView:
    """What the client shows after handling one navigation request."""

    target: ResolvedTarget | None
    sidebar_html: str
    version_changed: bool = False


class DocsClient:
    """Resolve navigation targets and keep sidebar and search in step."""

    def __init__(
        self,
        manifest: SiteManifest,
        session: SearchSession,
        *,
        renderer: NavigationRenderer | None = None,
        proposal_label: str = DEFAULT_PROPOSAL_LABEL,
    ) -> None:
        self.manifest = manifest
        self.session = session
        self.renderer = renderer or NavigationRenderer()
        self.proposal_label = proposal_label
        self.current_version: VersionManifest | None = None
        self.nav_state = NavigationState([])
        self.load_task: asyncio.Task[bool] | None = None

    @property
    def current_version_id(self) -> str | None:
        """Return the id of the version whose sidebar is shown."""
        return self.current_version.id if self.current_version else None

    def populate(self, version: VersionManifest) -> NavigationState:
        """Rebuild the sidebar tree for ``version`` with fresh expand state."""
        self.current_version = version
        tree = build_navigation_tree(version.pages, proposal_label=self.proposal_label)
        self.nav_state = NavigationState(tree)
        return self.nav_state

    def sidebar_html(self) -> str:
        """Render the current sidebar."""
        if self.current_version is None:
            return ""
        return self.renderer.render(self.current_version.id, self.nav_state)

    def navigate(self, fragment: str | None) -> ClientView:
        """Handle a location fragment; must run inside an event loop.

        A version change schedules the search index load as
        :attr:`load_task`; the search session discards it if another version
        is requested before it completes.
        """
        target = resolve_target(self.manifest, parse_fragment(fragment))
        if target is None:
            self.nav_state.update_active(None)
            return ClientView(target=None, sidebar_html=self.sidebar_html())

        version_changed = target.version.id != self.current_version_id
        if version_changed:
            logger.info("Switching to version %s", target.version.id)
            self.populate(target.version)
            self.load_task = asyncio.get_running_loop().create_task(
                self.session.load_version(target.version.id)
            )
        self.nav_state.update_active(target.file)
        return ClientView(
            target=target,
            sidebar_html=self.sidebar_html(),
            version_changed=version_changed,
        )

    def toggle(self, key: str) -> bool:
        """Flip one sidebar container and return its new expanded state."""
        return self.nav_state.toggle(key)


__all__ = ["ClientView", "DocsClient"]
