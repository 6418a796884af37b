"""Load and validate site configuration YAML for versioned documentation builds.

This subpackage parses the project's ``site.yaml`` file, merges global defaults
with per-version overrides, resolves source directories, and produces strongly
typed dataclasses (:class:`SiteConfig`, :class:`VersionConfig`, etc.) that the
build pipeline consumes. The primary entry point is :func:`load_site_config`.

Examples
--------
>>> from pathlib import Path
>>> from spec_pages.config import load_site_config
>>> site = load_site_config(Path("config/site.yaml"))  # doctest: +SKIP
>>> version = site.get_version(None)  # doctest: +SKIP
>>> version.label  # doctest: +SKIP
'Current'
"""

from .loader import load_site_config
from .models import (
    InteractiveConfig,
    ProposalConfig,
    SiteConfig,
    SiteConfigError,
    SourceConfig,
    VersionConfig,
)

__all__ = [
    "InteractiveConfig",
    "ProposalConfig",
    "SiteConfig",
    "SiteConfigError",
    "SourceConfig",
    "VersionConfig",
    "load_site_config",
]
