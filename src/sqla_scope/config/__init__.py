"""Configuration module for sqla-scope."""

from __future__ import annotations

from sqla_scope.config._config import ScopeConfig, configure, get_global_config
from sqla_scope.config._settings import lookup_setting, register_settings

__all__ = [
    "ScopeConfig",
    "configure",
    "get_global_config",
    "lookup_setting",
    "register_settings",
]
