"""Cyclopts CLI entrypoint for building and inspecting versioned doc sites.

The ``spec-pages`` console script renders every configured documentation
version into static HTML fragments, a search index and ``versions.json``, and
offers two inspection commands that exercise the client library against a
built site: ``search`` runs a ranked query and ``nav`` prints the sidebar tree.

Examples
--------
Build every version declared in the default configuration:

>>> from spec_pages.cli import main
>>> main()  # doctest: +SKIP

Query a built version:

>>> from spec_pages.cli import app
>>> app.run(["search", "slices", "--version", "v2"])  # doctest: +SKIP
"""

from __future__ import annotations

import logging
import typing as typ
from pathlib import Path

import cyclopts
from cyclopts import App, Parameter

from .config import load_site_config
from .generator.version_builder import SiteBuilder
from .manifest import load_site_manifest
from .navigation.renderer import render_outline
from .navigation.router import NavigationTarget, resolve_target
from .navigation.state import NavigationState
from .navigation.tree import DEFAULT_PROPOSAL_LABEL, build_navigation_tree
from .search.artifacts import load_search_artifacts
from .search.engine import SearchEngine
from .search.index import IndexArtifactError
from .search.session import SEARCH_FAILED_TO_LOAD

DEFAULT_CONFIG = Path("config/site.yaml")
DEFAULT_OUTPUT_DIR = Path("public")

app = App(name="spec-pages", config=cyclopts.config.Env("INPUT_", command=False))  # type: ignore[unknown-argument]


def _format_path(path: Path) -> str:
    """Return a cwd-relative path when possible, otherwise the absolute path."""
    if path.is_absolute():
        try:
            return str(path.relative_to(Path.cwd()))
        except ValueError:  # pragma: no cover - fallback for different roots
            return str(path)
    return str(path)


def _configure_logging(*, verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )


@app.command(help="Build documentation versions, search indexes, and versions.json.")
def build(
    *,
    config: typ.Annotated[
        Path, Parameter(help="Path to site config", env_var="INPUT_CONFIG")
    ] = DEFAULT_CONFIG,
    version: typ.Annotated[
        str | None,
        Parameter(help="Build only this version id", env_var="INPUT_VERSION"),
    ] = None,
    verbose: typ.Annotated[
        bool, Parameter(help="Enable debug logging", env_var="INPUT_VERBOSE")
    ] = False,
) -> None:
    """Build one or all configured versions.

    Parameters
    ----------
    config : Path, optional
        Path to the ``site.yaml`` configuration file (overridable via
        ``INPUT_CONFIG``).
    version : str or None, optional
        Version id to build; all versions are built when omitted.
    verbose : bool, optional
        Log per-file progress.

    Returns
    -------
    None
        Prints every written artifact and a page count per built version.

    Raises
    ------
    KeyError
        If ``version`` is not declared in the configuration.
    """
    _configure_logging(verbose=verbose)
    site_config = load_site_config(config)
    builder = SiteBuilder(site_config)
    written = builder.run([version] if version else None)
    for path in written:
        print(f"wrote {_format_path(path)}")
    for version_id, result in builder.results.items():
        print(
            f"{version_id}: {len(result.manifest.pages)} page(s), "
            f"{result.succeeded} processed, {result.failed} failed"
        )


@app.command(help="Run a ranked search query against a built version.")
def search(
    query: str,
    *,
    output_dir: typ.Annotated[
        Path, Parameter(help="Built site folder", env_var="INPUT_OUTPUT_DIR")
    ] = DEFAULT_OUTPUT_DIR,
    version: typ.Annotated[
        str | None, Parameter(help="Version id to search", env_var="INPUT_VERSION")
    ] = None,
) -> None:
    """Print ``score  title  href`` lines for ``query`` or the user message."""
    manifest = load_site_manifest(output_dir)
    target = resolve_target(manifest, NavigationTarget(version_id=version))
    if target is None:
        print("No versions found.")
        return
    try:
        artifacts = load_search_artifacts(output_dir / target.version.id)
    except IndexArtifactError as exc:
        logging.getLogger(__name__).error("%s", exc)
        print(SEARCH_FAILED_TO_LOAD)
        return
    engine = SearchEngine(artifacts.index, artifacts.search_map, target.version.id)
    outcome = engine.query(query)
    if outcome.message:
        print(outcome.message)
    for result in outcome.results:
        flag = " (Obsoleted)" if result.is_obsoleted else ""
        print(f"{result.score:g}  {result.title}{flag}  {result.href}")


@app.command(help="Print the navigation tree of a built version.")
def nav(
    *,
    output_dir: typ.Annotated[
        Path, Parameter(help="Built site folder", env_var="INPUT_OUTPUT_DIR")
    ] = DEFAULT_OUTPUT_DIR,
    version: typ.Annotated[
        str | None, Parameter(help="Version id to show", env_var="INPUT_VERSION")
    ] = None,
    file: typ.Annotated[
        str | None, Parameter(help="File to mark active", env_var="INPUT_FILE")
    ] = None,
    proposal_label: typ.Annotated[
        str, Parameter(help="Label of the proposal container")
    ] = DEFAULT_PROPOSAL_LABEL,
) -> None:
    """Print an indented outline of the sidebar with the active file marked."""
    manifest = load_site_manifest(output_dir)
    target = resolve_target(manifest, NavigationTarget(version_id=version, file=file))
    if target is None:
        print("No versions found.")
        return
    tree = build_navigation_tree(target.version.pages, proposal_label=proposal_label)
    state = NavigationState(tree)
    state.update_active(target.file)
    print(f"{target.version.label} ({target.fragment})")
    print(render_outline(state))


def main() -> None:
    """Invoke the Cyclopts application that powers the ``spec-pages`` command.

    Examples
    --------
    >>> main()  # doctest: +SKIP
    """
    app()


if __name__ == "__main__":  # pragma: no cover - manual invocation helper
    main()
