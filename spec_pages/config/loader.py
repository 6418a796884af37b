"""Load site configuration YAML into typed dataclasses."""

from __future__ import annotations

import dataclasses as dc
import typing as typ
from pathlib import Path

from ruamel.yaml import YAML

from .helpers import (
    DEFAULT_INCLUDE_GLOBS,
    _build_interactive_config,
    _build_proposal_config,
    _optional_str,
    _positive_int,
    _string_list,
    _title_from_key,
)
from .models import SiteConfig, SiteConfigError, SourceConfig, VersionConfig


def load_site_config(path: Path) -> SiteConfig:
    """Load the YAML configuration describing versions and build settings.

    Parameters
    ----------
    path : Path
        Filesystem path to the YAML site configuration file (for example,
        ``config/site.yaml``). Relative directories inside the file resolve
        against the file's own directory.

    Returns
    -------
    SiteConfig
        Parsed site configuration, including version definitions, output
        directory, proposal rules, and the default version.

    Raises
    ------
    FileNotFoundError
        If the configuration file does not exist at ``path``.
    TypeError
        If the top-level YAML structure is not a mapping.
    SiteConfigError
        If required sections or fields are missing or invalid in the
        configuration (for example, no versions are defined).
    YAMLError
        If the YAML content cannot be parsed by the underlying loader.

    Examples
    --------
    >>> from pathlib import Path
    >>> from spec_pages.config import load_site_config
    >>> config = load_site_config(Path("config/site.yaml"))  # doctest: +SKIP
    >>> config.default_version_id  # doctest: +SKIP
    'current'
    """
    if not path.exists():
        msg = f"Configuration file '{path}' not found."
        raise FileNotFoundError(msg)

    loader = YAML(typ="safe")
    loader.version = (1, 2)
    with path.open("r", encoding="utf-8") as handle:
        loaded = loader.load(handle) or {}
    if not isinstance(loaded, dict):
        msg = "Top-level YAML structure must be a mapping."
        raise TypeError(msg)
    raw: dict[str, typ.Any] = dict(loaded)
    defaults = raw.get("defaults", {}) or {}
    base_dir = path.resolve().parent

    versions_raw = raw.get("versions") or {}
    if not versions_raw:
        msg = "No versions defined in site configuration."
        raise SiteConfigError(msg)

    version_defaults = _VersionDefaults(
        base_dir=base_dir,
        sources_dir=_resolve_dir(base_dir, defaults.get("sources_dir", ".build/sources")),
        include_globs=_string_list(
            defaults.get("include_globs"),
            field="defaults.include_globs",
            fallback=list(DEFAULT_INCLUDE_GLOBS),
        ),
        exclude_globs=_string_list(
            defaults.get("exclude_globs"), field="defaults.exclude_globs", fallback=[]
        ),
    )

    versions: dict[str, VersionConfig] = {}
    for key, payload in versions_raw.items():
        match payload:
            case dict():
                versions[str(key)] = _build_version_config(
                    key=str(key), payload=payload, defaults=version_defaults
                )
            case None:
                versions[str(key)] = _build_version_config(
                    key=str(key), payload={}, defaults=version_defaults
                )
            case _:
                continue

    return SiteConfig(
        versions=versions,
        output_dir=_resolve_dir(base_dir, defaults.get("output_dir", "public")),
        default_version=_optional_str(defaults.get("default_version")),
        pygments_style=defaults.get("pygments_style", "monokai"),
        max_workers=_positive_int(
            defaults.get("max_workers"), field="defaults.max_workers", fallback=8
        ),
        proposals=_build_proposal_config(raw.get("proposals")),
        interactive=_build_interactive_config(raw.get("interactive")),
    )


@dc.dataclass(slots=True)
class _VersionDefaults:
    """Internal container for version default configuration values."""

    base_dir: Path
    sources_dir: Path
    include_globs: list[str]
    exclude_globs: list[str]


def _resolve_dir(base_dir: Path, value: object) -> Path:
    """Return ``value`` as a path, anchoring relative paths at ``base_dir``."""
    candidate = Path(str(value))
    if candidate.is_absolute():
        return candidate
    return base_dir / candidate


def _build_version_config(
    *,
    key: str,
    payload: typ.Mapping[str, typ.Any],
    defaults: _VersionDefaults,
) -> VersionConfig:
    """Build a VersionConfig for a single version entry using defaults and overrides."""
    label = _optional_str(payload.get("label")) or _title_from_key(key)
    source_path = _optional_str(payload.get("source_path")) or ""
    sources = [
        SourceConfig(
            kind="primary",
            root=defaults.sources_dir / key / source_path,
            include_globs=_string_list(
                payload.get("include_globs"),
                field=f"versions.{key}.include_globs",
                fallback=defaults.include_globs,
            ),
            exclude_globs=_string_list(
                payload.get("exclude_globs"),
                field=f"versions.{key}.exclude_globs",
                fallback=defaults.exclude_globs,
            ),
        )
    ]

    local_docs_path = _optional_str(payload.get("local_docs_path"))
    if local_docs_path:
        sources.append(
            SourceConfig(
                kind="local",
                root=_resolve_dir(defaults.base_dir, local_docs_path),
                include_globs=_string_list(
                    payload.get("local_include_globs"),
                    field=f"versions.{key}.local_include_globs",
                    fallback=list(DEFAULT_INCLUDE_GLOBS),
                ),
                exclude_globs=_string_list(
                    payload.get("local_exclude_globs"),
                    field=f"versions.{key}.local_exclude_globs",
                    fallback=[],
                ),
                copy_assets=True,
            )
        )

    return VersionConfig(
        id=key,
        label=label,
        ref=_optional_str(payload.get("ref")),
        sources=sources,
    )


__all__ = ["load_site_config"]
