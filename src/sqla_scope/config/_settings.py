"""Application settings resolved by ``ConfigLookup`` values."""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType
from typing import Any

from sqla_scope.exceptions import ConfigLookupError

__all__ = ["lookup_setting", "register_settings", "_reset_settings", "_snapshot_settings"]

_settings: dict[tuple[str, str], Mapping[str, Any]] = {}


def register_settings(app: str, env: str, values: Mapping[str, Any]) -> None:
    """Register a group of settings for ``ConfigLookup(app, env, key)``.

    Registering the same ``(app, env)`` again replaces the group.

    Example::

        register_settings("blog", "moderation", {"admin_role": "admin"})
    """
    _settings[(app, env)] = MappingProxyType(dict(values))


def lookup_setting(app: str, env: str, key: str) -> Any:
    """Return a registered setting.

    Raises:
        ConfigLookupError: If the group or the key is not registered.
    """
    group = _settings.get((app, env))
    if group is None or key not in group:
        raise ConfigLookupError(app=app, env=env, key=key)
    return group[key]


def _snapshot_settings() -> dict[tuple[str, str], Mapping[str, Any]]:
    """Copy of every registered settings group. For testing only."""
    return dict(_settings)


def _reset_settings(snapshot: Mapping[tuple[str, str], Mapping[str, Any]] | None = None) -> None:
    """Drop every registered settings group, or restore *snapshot*. For testing only."""
    _settings.clear()
    if snapshot is not None:
        _settings.update(snapshot)
