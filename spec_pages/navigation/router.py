"""Parse navigation fragments and resolve them against the version manifest.

A navigation target is written ``#<version id>/<file>[#<section id>]``, for
example ``#v2/guides/intro.html#usage``. Resolution never yields a blank view:
an unknown or missing version falls back to the manifest default and an
unknown or missing file falls back to that version's default file. Either
fallback is logged as a warning and drops the section id.

Example
-------
>>> parse_fragment("#v1/dir/page.html#intro")
NavigationTarget(version_id='v1', file='dir/page.html', section_id='intro')
>>> parse_fragment("")
NavigationTarget(version_id=None, file=None, section_id=None)
"""

from __future__ import annotations

import dataclasses as dc
import logging
import typing as typ

if typ.TYPE_CHECKING:
    from spec_pages.manifest import SiteManifest, VersionManifest

logger = logging.getLogger(__name__)


@dc.dataclass(frozen=True, slots=True)
class NavigationTarget:
    """Version, file, and optional section addressed by a fragment."""

    version_id: str | None = None
    file: str | None = None
    section_id: str | None = None

    def to_fragment(self) -> str:
        """Return the ``#version/file#section`` form of the target."""
        return format_fragment(self.version_id, self.file, self.section_id)


@dc.dataclass(frozen=True, slots=True)
class ResolvedTarget:
    """A target guaranteed to exist in the manifest."""

    version: VersionManifest
    file: str
    section_id: str | None
    fell_back: bool = False

    @property
    def fragment(self) -> str:
        """Return the canonical fragment of the resolved target."""
        return format_fragment(self.version.id, self.file, self.section_id)


def parse_fragment(fragment: str | None) -> NavigationTarget:
    """Split a location fragment into version, file, and section id."""
    raw = (fragment or "").removeprefix("#")
    if not raw:
        return NavigationTarget()
    path_part, _, section = raw.partition("#")
    version, _, file = path_part.partition("/")
    return NavigationTarget(
        version_id=version or None,
        file=file or None,
        section_id=section.split("#", 1)[0] or None,
    )


def format_fragment(
    version_id: str | None, file: str | None, section_id: str | None = None
) -> str:
    """Return ``#version/file`` with an optional ``#section`` suffix.

    >>> format_fragment("v2", "spec.html", "slices")
    '#v2/spec.html#slices'
    """
    fragment = f"#{version_id or ''}/{file or ''}"
    if section_id:
        fragment = f"{fragment}#{section_id}"
    return fragment


def resolve_version(
    manifest: SiteManifest, version_id: str | None
) -> VersionManifest | None:
    """Return the requested version or the manifest default, warning on fallback."""
    version = manifest.get(version_id) if version_id else None
    if version is not None:
        return version
    fallback = manifest.default_version
    fallback_id = fallback.id if fallback else None
    if version_id:
        logger.warning(
            "Version '%s' not found. Falling back to default '%s'.", version_id, fallback_id
        )
    else:
        logger.warning("Version missing. Falling back to default '%s'.", fallback_id)
    return fallback


def resolve_file(version: VersionManifest, file: str | None) -> str:
    """Return ``file`` when the version has it, else the version's default file."""
    if file and version.has_file(file):
        return file
    if file:
        logger.warning(
            "File '%s' not found for version '%s'. Falling back to default '%s'.",
            file,
            version.id,
            version.default_file,
        )
    else:
        logger.warning(
            "File missing for version '%s'. Falling back to default '%s'.",
            version.id,
            version.default_file,
        )
    return version.default_file


def resolve_target(
    manifest: SiteManifest, target: NavigationTarget
) -> ResolvedTarget | None:
    """Resolve ``target`` to an existing version and file.

    Returns
    -------
    ResolvedTarget | None
        None only when the manifest lists no versions at all.
    """
    version = resolve_version(manifest, target.version_id)
    if version is None:
        logger.error("No versions available to resolve %s", target.to_fragment())
        return None
    file = resolve_file(version, target.file)
    exact = version.id == target.version_id and file == target.file
    return ResolvedTarget(
        version=version,
        file=file,
        section_id=target.section_id if exact else None,
        fell_back=not exact,
    )


__all__ = [
    "NavigationTarget",
    "ResolvedTarget",
    "format_fragment",
    "parse_fragment",
    "resolve_file",
    "resolve_target",
    "resolve_version",
]
