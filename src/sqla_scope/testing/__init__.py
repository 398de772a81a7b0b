"""sqla-scope testing utilities — actors, loaders, assertions and fixtures.

Provides test helpers for verifying scopes:

- **MockActor**: Lightweight identity-bearing principal.
- **CountingLoader**: Relation loader that counts loads per edge.
- **Assertion helpers**: ``assert_scoped``, ``assert_denied``,
  ``assert_query_contains``.
- **Fixtures**: ``scope_registry``, ``scope_config``, ``isolated_scope_state``.

Example::

    from sqla_scope.testing import MockActor, assert_scoped

    def test_owner_reads_comments(session, sample_data, schema):
        assert_scoped(session, select(Comment), schema=schema,
                      context={"user": MockActor(id=1)}, action="read")
"""

from sqla_scope.testing._actors import MockActor
from sqla_scope.testing._assertions import (
    assert_denied,
    assert_query_contains,
    assert_scoped,
)
from sqla_scope.testing._fixtures import isolated_scope_state, scope_config, scope_registry
from sqla_scope.testing._isolation import isolated_scope
from sqla_scope.testing._loaders import CountingLoader

__all__ = [
    "CountingLoader",
    "MockActor",
    "assert_denied",
    "assert_query_contains",
    "assert_scoped",
    "isolated_scope",
    "isolated_scope_state",
    "scope_config",
    "scope_registry",
]
