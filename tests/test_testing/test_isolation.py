"""Tests for sqla_scope.testing._isolation — isolated_scope context manager."""

from __future__ import annotations

import pytest

from sqla_scope.config._config import ScopeConfig, configure, get_global_config
from sqla_scope.config._settings import lookup_setting, register_settings
from sqla_scope.exceptions import ConfigLookupError
from sqla_scope.expression._ast import Leaf
from sqla_scope.policy._registry import ScopeRegistry, get_default_registry
from sqla_scope.testing._isolation import isolated_scope
from tests.conftest import Post

PUBLISHED = Leaf("eq", ["is_published"], True)


class TestIsolatedScope:
    def setup_method(self) -> None:
        get_default_registry().clear()

    def teardown_method(self) -> None:
        get_default_registry().clear()

    def test_resets_config_on_entry(self) -> None:
        configure(on_missing_scope="raise")
        with isolated_scope() as (cfg, _reg):
            assert cfg.on_missing_scope == "deny"

    def test_restores_config_on_exit(self) -> None:
        configure(on_missing_scope="raise", join_kind="inner")
        with isolated_scope():
            configure(join_kind="left")
        restored = get_global_config()
        assert restored.on_missing_scope == "raise"
        assert restored.join_kind == "inner"

    def test_restores_on_exception(self) -> None:
        configure(on_missing_scope="raise")
        get_default_registry().register(Post, "read", PUBLISHED, name="p")
        with pytest.raises(RuntimeError):
            with isolated_scope():
                raise RuntimeError("boom")
        assert get_global_config().on_missing_scope == "raise"
        assert len(get_default_registry().lookup(Post, "read")) == 1

    def test_applies_config_override(self) -> None:
        with isolated_scope(config=ScopeConfig(on_unknown_field="warn")) as (cfg, _reg):
            assert cfg.on_unknown_field == "warn"
            assert get_global_config() is cfg

    def test_clears_registry_on_entry(self) -> None:
        get_default_registry().register(Post, "read", PUBLISHED, name="p")
        with isolated_scope() as (_cfg, reg):
            assert reg.lookup(Post, "read") == []

    def test_restores_registry_on_exit(self) -> None:
        get_default_registry().register(Post, "read", PUBLISHED, name="p")
        with isolated_scope() as (_cfg, reg):
            reg.register(Post, "update", PUBLISHED, name="q")
        registry = get_default_registry()
        assert len(registry.lookup(Post, "read")) == 1
        assert not registry.has_scope(Post, "update")

    def test_isolates_settings(self) -> None:
        register_settings("blog", "moderation", {"role": "admin"})
        with isolated_scope():
            with pytest.raises(ConfigLookupError):
                lookup_setting("blog", "moderation", "role")
            register_settings("blog", "moderation", {"role": "editor"})
        assert lookup_setting("blog", "moderation", "role") == "admin"

    def test_yields_config_and_registry(self) -> None:
        with isolated_scope() as result:
            cfg, reg = result
            assert isinstance(cfg, ScopeConfig)
            assert isinstance(reg, ScopeRegistry)
