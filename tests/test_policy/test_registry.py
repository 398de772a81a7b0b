"""Tests for ScopeRegistry."""

from __future__ import annotations

from sqla_scope.expression._ast import Leaf, PathValue
from sqla_scope.policy._base import ScopeRegistration
from sqla_scope.policy._registry import ScopeRegistry, get_default_registry
from tests.conftest import Comment, Post

OWN = Leaf("eq", ["**", "user"], PathValue(["user"]))
PUBLISHED = Leaf("eq", ["is_published"], True)


class TestRegister:
    def test_returns_registration(self):
        registry = ScopeRegistry()
        registration = registry.register(Post, "read", PUBLISHED, name="published")
        assert isinstance(registration, ScopeRegistration)
        assert registration.resource_type is Post
        assert registration.action == "read"
        assert registration.expression is PUBLISHED
        assert registration.name == "published"
        assert registration.description == ""

    def test_multiple_scopes_kept_in_order(self):
        registry = ScopeRegistry()
        registry.register(Comment, "read", OWN, name="own")
        registry.register(Comment, "read", PUBLISHED, name="published", description="Public.")
        names = [r.name for r in registry.lookup(Comment, "read")]
        assert names == ["own", "published"]

    def test_keys_are_independent(self):
        registry = ScopeRegistry()
        registry.register(Comment, "read", OWN, name="own")
        assert registry.lookup(Comment, "update") == []
        assert registry.lookup(Post, "read") == []


class TestLookup:
    def test_empty(self):
        assert ScopeRegistry().lookup(Post, "read") == []

    def test_returns_copy(self):
        registry = ScopeRegistry()
        registry.register(Post, "read", PUBLISHED, name="published")
        registry.lookup(Post, "read").clear()
        assert len(registry.lookup(Post, "read")) == 1


class TestIntrospection:
    def test_has_scope(self):
        registry = ScopeRegistry()
        assert not registry.has_scope(Post, "read")
        registry.register(Post, "read", PUBLISHED, name="published")
        assert registry.has_scope(Post, "read")

    def test_registered_entities(self):
        registry = ScopeRegistry()
        registry.register(Post, "read", PUBLISHED, name="published")
        registry.register(Comment, "read", OWN, name="own")
        registry.register(Comment, "delete", OWN, name="own")
        assert registry.registered_entities("read") == {Post, Comment}
        assert registry.registered_entities("delete") == {Comment}
        assert registry.registered_entities("update") == set()

    def test_clear(self):
        registry = ScopeRegistry()
        registry.register(Post, "read", PUBLISHED, name="published")
        registry.clear()
        assert not registry.has_scope(Post, "read")


class TestDefaultRegistry:
    def test_singleton(self):
        assert get_default_registry() is get_default_registry()
        assert isinstance(get_default_registry(), ScopeRegistry)
