"""Client-side search lifecycle for the active documentation version.

:class:`SearchSession` owns the loaded index of exactly one version and moves
through ``UNLOADED -> LOADING -> READY``, briefly entering ``QUERYING`` while a
query runs. A failed load leaves it ``UNAVAILABLE`` until the next version
change.

Every :meth:`SearchSession.load_version` call takes a new generation number.
When an older load finishes after a newer one started, its result is thrown
away, so rapid version switching always settles on the last requested
version.

Keystrokes go through :meth:`SearchSession.on_input`, which debounces queries:
each call replaces the pending timer and only the last query typed within the
delay runs.

Example
-------
>>> import asyncio
>>> from pathlib import Path
>>> from spec_pages.search.artifacts import load_search_artifacts
>>> session = SearchSession(lambda vid: load_search_artifacts(Path("public") / vid))
>>> asyncio.run(session.load_version("v2"))  # doctest: +SKIP
True
>>> session.search_now("slices").results[0].href  # doctest: +SKIP
'#v2/spec.html#slices'
"""

from __future__ import annotations

import asyncio
import enum
import logging
import typing as typ

from spec_pages._constants import SEARCH_DEBOUNCE_SECONDS
from spec_pages.templating import get_environment

from .engine import SEARCH_NOT_READY, ResultView, SearchEngine, SearchOutcome
from .index import IndexArtifactError

if typ.TYPE_CHECKING:
    from pathlib import Path

    from .artifacts import SearchArtifacts

logger = logging.getLogger(__name__)

SEARCH_FAILED_TO_LOAD = "Search failed to load"
SELECT_VERSION_FIRST = "Select version first"
LOADING_PLACEHOLDER = "Loading search..."
READY_PLACEHOLDER = "Search docs..."


class SearchState(enum.Enum):
    """Lifecycle states of a search session."""

    UNLOADED = "unloaded"
    LOADING = "loading"
    READY = "ready"
    QUERYING = "querying"
    UNAVAILABLE = "unavailable"


ArtifactLoader = typ.Callable[[str], "SearchArtifacts"]


class SearchSession:
    """Hold the active version's search engine and the visible results."""

    def __init__(
        self,
        loader: ArtifactLoader,
        *,
        debounce: float = SEARCH_DEBOUNCE_SECONDS,
        templates_dir: Path | None = None,
    ) -> None:
        """Create an unloaded session.

        Parameters
        ----------
        loader : Callable[[str], SearchArtifacts]
            Blocking function returning the artifacts of a version id; it runs
            in a worker thread and signals failure with ``IndexArtifactError``.
        debounce : float, optional
            Delay in seconds before a typed query runs.
        templates_dir : Path, optional
            Override for the Jinja template directory.
        """
        self._loader = loader
        self.debounce = debounce
        self.templates_dir = templates_dir
        self.state = SearchState.UNLOADED
        self.version_id: str | None = None
        self.engine: SearchEngine | None = None
        self.placeholder = LOADING_PLACEHOLDER
        self.outcome: SearchOutcome | None = None
        self.highlighted = -1
        self._generation = 0
        self._pending: asyncio.Task[SearchOutcome] | None = None

    @property
    def generation(self) -> int:
        """Return the number of the most recent load request."""
        return self._generation

    @property
    def is_ready(self) -> bool:
        """Return True when queries can run."""
        return self.engine is not None and self.state in {
            SearchState.READY,
            SearchState.QUERYING,
        }

    @property
    def results(self) -> tuple[ResultView, ...]:
        """Return the currently visible results."""
        return self.outcome.results if self.outcome else ()

    async def load_version(self, version_id: str | None) -> bool:
        """Replace the loaded index with ``version_id``'s artifacts.

        Returns
        -------
        bool
            True when this load completed and became the active index; False
            when it failed or was superseded by a later load.
        """
        self._generation += 1
        generation = self._generation
        self._cancel_pending()
        self.engine = None
        self.outcome = None
        self.highlighted = -1
        self.version_id = version_id
        self.state = SearchState.LOADING
        self.placeholder = LOADING_PLACEHOLDER

        if not version_id:
            logger.error("No version ID provided to load search index.")
            self._mark_unavailable(SELECT_VERSION_FIRST)
            return False

        try:
            artifacts = await asyncio.to_thread(self._loader, version_id)
        except IndexArtifactError:
            if generation != self._generation:
                return False
            logger.exception("Error loading search index for version %s", version_id)
            self._mark_unavailable(SEARCH_FAILED_TO_LOAD)
            return False

        if generation != self._generation:
            logger.debug(
                "Discarding stale search index for %s (generation %d, current %d)",
                version_id,
                generation,
                self._generation,
            )
            return False

        self.engine = SearchEngine(artifacts.index, artifacts.search_map, version_id)
        self.state = SearchState.READY
        self.placeholder = READY_PLACEHOLDER
        logger.info("Search index loaded for version %s", version_id)
        return True

    def _mark_unavailable(self, placeholder: str) -> None:
        self.engine = None
        self.state = SearchState.UNAVAILABLE
        self.placeholder = placeholder

    def search_now(self, query: str) -> SearchOutcome:
        """Run ``query`` immediately and make its outcome the visible one."""
        self.highlighted = -1
        if self.engine is None:
            self.outcome = SearchOutcome(query=query.strip(), error=SEARCH_NOT_READY)
            return self.outcome

        self.state = SearchState.QUERYING
        try:
            self.outcome = self.engine.query(query)
        finally:
            self.state = SearchState.READY
        return self.outcome

    def on_input(self, query: str) -> asyncio.Task[SearchOutcome] | None:
        """Handle a keystroke; must be called from a running event loop.

        Whitespace-only input clears the results at once. Anything else
        (re)starts the debounce timer and returns the task that will run the
        query when it fires.
        """
        self._cancel_pending()
        if not query.strip():
            self.clear()
            return None
        self._pending = asyncio.get_running_loop().create_task(self._debounced(query))
        return self._pending

    async def _debounced(self, query: str) -> SearchOutcome:
        await asyncio.sleep(self.debounce)
        return self.search_now(query)

    async def settle(self) -> SearchOutcome | None:
        """Wait for the pending debounced query, if any, and return the outcome."""
        pending = self._pending
        if pending is None:
            return self.outcome
        try:
            await pending
        except asyncio.CancelledError:
            if not pending.cancelled():
                raise
        return self.outcome

    def _cancel_pending(self) -> None:
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
        self._pending = None

    def clear(self) -> None:
        """Hide results and reset the highlight."""
        self.outcome = None
        self.highlighted = -1

    def move_highlight(self, step: int) -> int:
        """Move the highlighted result by ``step`` with wrap-around.

        >>> session = SearchSession(lambda vid: None)  # type: ignore[arg-type]
        >>> session.move_highlight(1)
        -1
        """
        count = len(self.results)
        if not count:
            return self.highlighted
        if self.highlighted < 0 and step < 0:
            self.highlighted = count - 1
        else:
            self.highlighted = (self.highlighted + step) % count
        return self.highlighted

    def activate(self) -> ResultView | None:
        """Return the highlighted result (or the first) and clear the results."""
        results = self.results
        if not results:
            return None
        index = self.highlighted if 0 <= self.highlighted < len(results) else 0
        chosen = results[index]
        self.clear()
        return chosen

    def dismiss(self) -> None:
        """Close the result list without choosing anything."""
        self._cancel_pending()
        self.clear()

    def render(self) -> str:
        """Render the visible outcome with ``search_results.jinja``."""
        if self.outcome is None:
            return ""
        template = get_environment(self.templates_dir).get_template("search_results.jinja")
        return template.render(
            message=self.outcome.message,
            results=self.outcome.results,
            highlighted=self.highlighted,
        )


__all__ = [
    "SEARCH_FAILED_TO_LOAD",
    "ArtifactLoader",
    "SearchSession",
    "SearchState",
]
