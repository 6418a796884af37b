"""Utility helpers shared by the spec_pages configuration loader."""

from __future__ import annotations

import typing as typ

from .models import InteractiveConfig, ProposalConfig, SiteConfigError

DEFAULT_INCLUDE_GLOBS = ("**/*.md",)


def _optional_str(value: object | None) -> str | None:
    """Return a stripped string value or None when empty."""
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _string_list(value: object | None, *, field: str, fallback: list[str]) -> list[str]:
    """Normalize a YAML glob list, rejecting scalars and mappings."""
    match value:
        case None:
            return list(fallback)
        case str():
            return [value]
        case list():
            return [str(item) for item in value if str(item).strip()]
        case _:
            msg = f"'{field}' must be a list of glob patterns."
            raise SiteConfigError(msg)


def _positive_int(value: object | None, *, field: str, fallback: int) -> int:
    """Return ``value`` as a positive integer or raise SiteConfigError."""
    if value is None:
        return fallback
    try:
        number = int(str(value).strip())
    except (TypeError, ValueError) as exc:
        msg = f"'{field}' must be an integer, got {value!r}."
        raise SiteConfigError(msg) from exc
    if number < 1:
        msg = f"'{field}' must be positive, got {number}."
        raise SiteConfigError(msg)
    return number


def _title_from_key(key: str) -> str:
    """Return a display label derived from a version key."""
    return key.replace("-", " ").replace("_", " ").title()


def _build_proposal_config(payload: typ.Mapping[str, typ.Any] | None) -> ProposalConfig:
    """Build a ProposalConfig from the ``proposals`` mapping."""
    base = ProposalConfig()
    if not payload:
        return base
    prefix = _optional_str(payload.get("prefix")) or base.prefix
    return ProposalConfig(
        prefix=prefix.lower(),
        metadata_key=_optional_str(payload.get("metadata_key")) or prefix.lower(),
        number_width=_positive_int(
            payload.get("number_width"),
            field="proposals.number_width",
            fallback=base.number_width,
        ),
        default_status=(
            _optional_str(payload.get("default_status")) or base.default_status
        ).lower(),
        label=_optional_str(payload.get("label")) or base.label,
    )


def _build_interactive_config(
    payload: typ.Mapping[str, typ.Any] | None,
) -> InteractiveConfig:
    """Build an InteractiveConfig from the ``interactive`` mapping."""
    base = InteractiveConfig()
    if not payload:
        return base
    return InteractiveConfig(fence=_optional_str(payload.get("fence")) or base.fence)


__all__ = [
    "DEFAULT_INCLUDE_GLOBS",
    "_build_interactive_config",
    "_build_proposal_config",
    "_optional_str",
    "_positive_int",
    "_string_list",
    "_title_from_key",
]
