"""Typed dataclasses describing spec_pages site configuration structures."""

from __future__ import annotations

import dataclasses as dc
from pathlib import Path


class SiteConfigError(ValueError):
    """Raised when the site configuration is invalid or incomplete."""


@dc.dataclass(slots=True)
class ProposalConfig:
    """Rules that identify and normalise the proposal document class."""

    prefix: str = "jep"
    metadata_key: str = "jep"
    number_width: int = 3
    default_status: str = "draft"
    label: str = "Proposals"


@dc.dataclass(slots=True)
class InteractiveConfig:
    """Fenced-code marker used for embedded interactive example blocks."""

    fence: str = "jmespath-interactive"


@dc.dataclass(slots=True)
class SourceConfig:
    """One directory of markdown sources feeding a version."""

    kind: str
    root: Path
    include_globs: list[str]
    exclude_globs: list[str]
    copy_assets: bool = False


@dc.dataclass(slots=True)
class VersionConfig:
    """A fully resolved documentation version sourced from YAML config."""

    id: str
    label: str
    ref: str | None
    sources: list[SourceConfig]


@dc.dataclass(slots=True)
class SiteConfig:
    """Collection of version configs alongside shared build settings."""

    versions: dict[str, VersionConfig]
    output_dir: Path = Path("public")
    default_version: str | None = None
    pygments_style: str = "monokai"
    max_workers: int = 8
    proposals: ProposalConfig = dc.field(default_factory=ProposalConfig)
    interactive: InteractiveConfig = dc.field(default_factory=InteractiveConfig)

    @property
    def default_version_id(self) -> str:
        """Return the id of the default version, falling back to the first one."""
        return self._get_default_version().id

    def get_version(self, version_id: str | None) -> VersionConfig:
        """Return the requested version or fall back to the configured default."""
        if version_id is None:
            return self._get_default_version()
        try:
            return self.versions[version_id]
        except KeyError as exc:
            available = ", ".join(sorted(self.versions))
            msg = f"Unknown version '{version_id}'. Known versions: {available}"
            raise KeyError(msg) from exc

    def _get_default_version(self) -> VersionConfig:
        """Return the configured default version or the first defined version."""
        if self.default_version and self.default_version in self.versions:
            return self.versions[self.default_version]
        if not self.versions:  # pragma: no cover - configuration error
            msg = "No versions configured in site file."
            raise SiteConfigError(msg)
        first_key = next(iter(self.versions))
        return self.versions[first_key]


__all__ = [
    "InteractiveConfig",
    "ProposalConfig",
    "SiteConfig",
    "SiteConfigError",
    "SourceConfig",
    "VersionConfig",
]
