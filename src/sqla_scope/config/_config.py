"""Layered configuration for sqla-scope."""

from __future__ import annotations

from dataclasses import dataclass

from sqla_scope._types import JoinKind, OnMissingScope, OnUnknownField, OnUnloadedRelationship

__all__ = [
    "ScopeConfig",
    "configure",
    "get_global_config",
    "_reset_global_config",
    "_set_global_config",
]

_VALID_MISSING_SCOPE: set[str] = {"deny", "raise"}
_VALID_UNKNOWN_FIELD: set[str] = {"deny", "warn"}
_VALID_UNLOADED_RELATIONSHIP: set[str] = {"deny", "raise", "warn"}
_VALID_JOIN_KINDS: set[str] = {"inner", "left"}


@dataclass(frozen=True, slots=True)
class ScopeConfig:
    """Layered configuration with merge semantics (global -> request).

    Attributes:
        on_missing_scope: Behavior when no scope is registered.
            ``"deny"`` returns zero rows (WHERE FALSE).
            ``"raise"`` raises ``NoScopeError``.
        on_unknown_field: ``"deny"`` compiles unknown path segments to an
            always-false filter silently, ``"warn"`` also logs a warning.
        on_unloaded_relationship: What the evaluator does with a relation
            that is not loaded on a detached instance.
        join_kind: Join kind used when compiling relation hops.
        log_scope_decisions: Emit audit records on the ``sqla_scope`` logger.
        relation_load_timeout: Wall-clock limit in seconds for all relation
            loads of one evaluation, or ``None`` for no limit.

    Example::

        config = ScopeConfig(on_missing_scope="raise")
        merged = config.merge(join_kind="inner")
    """

    on_missing_scope: OnMissingScope = "deny"
    on_unknown_field: OnUnknownField = "deny"
    on_unloaded_relationship: OnUnloadedRelationship = "deny"
    join_kind: JoinKind = "left"
    log_scope_decisions: bool = False
    relation_load_timeout: float | None = None

    def __post_init__(self) -> None:
        if self.on_missing_scope not in _VALID_MISSING_SCOPE:
            raise ValueError(
                f"on_missing_scope must be one of {_VALID_MISSING_SCOPE!r}, "
                f"got {self.on_missing_scope!r}"
            )
        if self.on_unknown_field not in _VALID_UNKNOWN_FIELD:
            raise ValueError(
                f"on_unknown_field must be one of {_VALID_UNKNOWN_FIELD!r}, "
                f"got {self.on_unknown_field!r}"
            )
        if self.on_unloaded_relationship not in _VALID_UNLOADED_RELATIONSHIP:
            raise ValueError(
                f"on_unloaded_relationship must be one of "
                f"{_VALID_UNLOADED_RELATIONSHIP!r}, "
                f"got {self.on_unloaded_relationship!r}"
            )
        if self.join_kind not in _VALID_JOIN_KINDS:
            raise ValueError(
                f"join_kind must be one of {_VALID_JOIN_KINDS!r}, got {self.join_kind!r}"
            )
        if self.relation_load_timeout is not None and self.relation_load_timeout <= 0:
            raise ValueError(
                f"relation_load_timeout must be positive or None, "
                f"got {self.relation_load_timeout!r}"
            )

    def merge(
        self,
        *,
        on_missing_scope: OnMissingScope | None = None,
        on_unknown_field: OnUnknownField | None = None,
        on_unloaded_relationship: OnUnloadedRelationship | None = None,
        join_kind: JoinKind | None = None,
        log_scope_decisions: bool | None = None,
        relation_load_timeout: float | None = None,
    ) -> ScopeConfig:
        """Return a new config with non-None overrides applied.

        Args:
            on_missing_scope: Override for on_missing_scope (ignored if None).
            on_unknown_field: Override for on_unknown_field (ignored if None).
            on_unloaded_relationship: Override for on_unloaded_relationship (ignored if None).
            join_kind: Override for join_kind (ignored if None).
            log_scope_decisions: Override for log_scope_decisions (ignored if None).
            relation_load_timeout: Override for relation_load_timeout (ignored if None).

        Returns:
            A new ``ScopeConfig`` with overrides merged.

        Example::

            base = ScopeConfig()
            request_cfg = base.merge(relation_load_timeout=0.5)
        """
        return ScopeConfig(
            on_missing_scope=(
                on_missing_scope if on_missing_scope is not None else self.on_missing_scope
            ),
            on_unknown_field=(
                on_unknown_field if on_unknown_field is not None else self.on_unknown_field
            ),
            on_unloaded_relationship=(
                on_unloaded_relationship
                if on_unloaded_relationship is not None
                else self.on_unloaded_relationship
            ),
            join_kind=join_kind if join_kind is not None else self.join_kind,
            log_scope_decisions=(
                log_scope_decisions
                if log_scope_decisions is not None
                else self.log_scope_decisions
            ),
            relation_load_timeout=(
                relation_load_timeout
                if relation_load_timeout is not None
                else self.relation_load_timeout
            ),
        )


# ---------------------------------------------------------------------------
# Global configuration singleton
# ---------------------------------------------------------------------------

_global_config = ScopeConfig()


def get_global_config() -> ScopeConfig:
    """Return the current global configuration.

    Example::

        config = get_global_config()
        print(config.on_missing_scope)  # "deny"
    """
    return _global_config


def configure(
    *,
    on_missing_scope: OnMissingScope | None = None,
    on_unknown_field: OnUnknownField | None = None,
    on_unloaded_relationship: OnUnloadedRelationship | None = None,
    join_kind: JoinKind | None = None,
    log_scope_decisions: bool | None = None,
    relation_load_timeout: float | None = None,
) -> ScopeConfig:
    """Update the global configuration by merging overrides.

    Only non-None values are applied. Returns the new global config.

    Example::

        configure(on_missing_scope="raise")
        # Now missing scopes raise NoScopeError instead of denying
    """
    global _global_config
    _global_config = _global_config.merge(
        on_missing_scope=on_missing_scope,
        on_unknown_field=on_unknown_field,
        on_unloaded_relationship=on_unloaded_relationship,
        join_kind=join_kind,
        log_scope_decisions=log_scope_decisions,
        relation_load_timeout=relation_load_timeout,
    )
    return _global_config


def _set_global_config(cfg: ScopeConfig) -> None:
    """Replace global config with an exact snapshot. For testing only."""
    global _global_config
    _global_config = cfg


def _reset_global_config() -> None:
    """Reset global config to defaults. For testing only."""
    global _global_config
    _global_config = ScopeConfig()
