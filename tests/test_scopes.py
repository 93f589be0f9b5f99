"""Tests for scope registration."""

import pytest

from fluentrecords.errors import ConfigurationError, InvalidScopeArgumentError, UnknownScopeError
from fluentrecords.models import ElementModel
from fluentrecords.queries.scopes import ScopeRegistry, normalize_direction, scope


def test_scope_without_query_argument_is_rejected():
    """Test that a scope that cannot take the builder fails at class creation."""
    with pytest.raises(ConfigurationError):

        class Broken(ElementModel):
            IBLOCK_ID = 1

            @scope
            def broken():
                return None


def test_named_scope_and_override():
    """Test registering under a custom name and overriding an inherited scope."""

    class Events(ElementModel):
        IBLOCK_ID = 9

        @scope(name="upcoming")
        def _upcoming(query):
            return query.filter({">=ACTIVE_FROM": "2024-01-01"})

        @scope
        def active(query):
            query.filter({"ACTIVE": "Y", "!CODE": False})

    assert "upcoming" in Events.scopes
    assert "active" in Events.scopes
    assert "upcoming" not in ElementModel.scopes
    assert list(Events.scopes.names()) == sorted(Events.scopes.names())


def test_scope_returning_none_keeps_builder():
    """Test that in-place scopes still return the builder."""
    registry = ScopeRegistry("Sample")
    calls = []
    registry.register("touch", lambda query: calls.append(query))

    builder = object()
    assert registry.apply(builder, "touch") is builder
    assert calls == [builder]


def test_registry_errors():
    """Test unknown names, bad arity and non-callables."""
    registry = ScopeRegistry("Sample")
    registry.register("by_id", lambda query, id: query)

    with pytest.raises(UnknownScopeError):
        registry.apply(object(), "missing")
    with pytest.raises(InvalidScopeArgumentError):
        registry.apply(object(), "by_id", (1, 2))
    with pytest.raises(ConfigurationError):
        registry.register("bad", "not callable")


def test_normalize_direction():
    assert normalize_direction("asc") == "ASC"
    assert normalize_direction("Desc") == "DESC"
    with pytest.raises(InvalidScopeArgumentError):
        normalize_direction(1)
