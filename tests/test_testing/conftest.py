"""Import fixtures from sqla_scope.testing for test discovery."""

from sqla_scope.testing._fixtures import isolated_scope_state, scope_config, scope_registry

__all__ = ["isolated_scope_state", "scope_config", "scope_registry"]
