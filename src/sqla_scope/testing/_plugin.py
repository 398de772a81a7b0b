"""sqla-scope pytest plugin -- auto-discovered via pytest11 entry point.

This module is registered as a pytest plugin in ``pyproject.toml``::

    [project.entry-points.pytest11]
    sqla_scope = "sqla_scope.testing._plugin"

All fixtures defined here are automatically available in projects
that install sqla-scope.
"""

from __future__ import annotations

# Re-export fixtures so they are auto-discovered by pytest.
from sqla_scope.testing._fixtures import (  # noqa: F401
    isolated_scope_state,
    scope_config,
    scope_registry,
)

__all__ = ["isolated_scope_state", "scope_config", "scope_registry"]
