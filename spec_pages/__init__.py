"""Build and browse versioned documentation with search and navigation.

This package exposes the CLI entry points used by ``spec-pages`` to build
documentation versions and to inspect a built site's search index and
navigation tree.

Exports
-------
- ``app``: Cyclopts application entry for subcommands.
- ``main``: Convenience function that invokes the Cyclopts app.

Examples
--------
>>> from spec_pages import main
>>> main()  # doctest: +SKIP
"""

from __future__ import annotations

from .cli import app, main

__all__ = ["app", "main"]
