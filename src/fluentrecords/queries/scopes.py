"""Named, reusable query mutations registered on model classes.

Scopes are declared in a model body with the ``@scope`` decorator::

    class News(ElementModel):
        @scope
        def published(query):
            return query.filter({"ACTIVE": "Y"})

and applied either by name (``query.scope("published")``) or fluently
(``query.published()``). A scope receives the builder first and returns it;
returning None is accepted for scopes that mutate in place.
"""

import inspect
from typing import Any, Callable, Dict, Iterable, Optional, Tuple

from fluentrecords.errors import ConfigurationError, InvalidScopeArgumentError, UnknownScopeError

SCOPE_MARKER = "__scope_name__"

ALLOWED_DIRECTIONS = ("ASC", "DESC")


def scope(func: Optional[Callable] = None, *, name: Optional[str] = None):
    """Mark a function in a model body as a query scope."""

    def decorate(target: Callable):
        setattr(target, SCOPE_MARKER, name or target.__name__)
        return staticmethod(target)

    if func is not None:
        return decorate(func)
    return decorate


def normalize_direction(direction: Any) -> str:
    """
    Upper-case a sort direction.

    Raises:
        InvalidScopeArgumentError: If the value is not asc/desc
    """
    if not isinstance(direction, str) or direction.upper() not in ALLOWED_DIRECTIONS:
        raise InvalidScopeArgumentError(f"Sort direction must be ASC or DESC, got {direction!r}")
    return direction.upper()


class ScopeRegistry:
    """Scope name -> function, inherited along the model class hierarchy."""

    def __init__(self, owner: str, inherited: Optional["ScopeRegistry"] = None):
        self.owner = owner
        self._scopes: Dict[str, Callable] = dict(inherited._scopes) if inherited else {}
        self._signatures: Dict[str, inspect.Signature] = dict(inherited._signatures) if inherited else {}

    @classmethod
    def collect(cls, owner: str, namespace: Dict[str, Any], inherited: Optional["ScopeRegistry"] = None) -> "ScopeRegistry":
        """Build a registry from a class body, starting from the parent's scopes."""
        registry = cls(owner, inherited)
        for attr_name, value in namespace.items():
            func = value.__func__ if isinstance(value, staticmethod) else value
            scope_name = getattr(func, SCOPE_MARKER, None)
            if scope_name:
                registry.register(scope_name, func)
        return registry

    def register(self, name: str, func: Callable) -> None:
        """
        Register a scope.

        Raises:
            ConfigurationError: If ``func`` cannot take the query builder as
                its first positional argument
        """
        if not callable(func):
            raise ConfigurationError(f"Scope '{name}' on {self.owner} is not callable")
        signature = inspect.signature(func)
        positional = [
            param
            for param in signature.parameters.values()
            if param.kind in (param.POSITIONAL_ONLY, param.POSITIONAL_OR_KEYWORD, param.VAR_POSITIONAL)
        ]
        if not positional:
            raise ConfigurationError(
                f"Scope '{name}' on {self.owner} must accept the query builder as first argument"
            )
        self._scopes[name] = func
        self._signatures[name] = signature

    def __contains__(self, name: str) -> bool:
        return name in self._scopes

    def names(self) -> Iterable[str]:
        return sorted(self._scopes)

    def apply(self, query: Any, name: str, args: Tuple[Any, ...] = (), kwargs: Optional[Dict[str, Any]] = None) -> Any:
        """
        Run scope ``name`` against ``query``.

        Raises:
            UnknownScopeError: If no scope is registered under ``name``
            InvalidScopeArgumentError: If the arguments don't fit the scope
        """
        kwargs = kwargs or {}
        if name not in self._scopes:
            raise UnknownScopeError(name, self.owner)
        try:
            self._signatures[name].bind(query, *args, **kwargs)
        except TypeError as exc:
            raise InvalidScopeArgumentError(f"Scope '{name}' on {self.owner}: {exc}") from exc

        result = self._scopes[name](query, *args, **kwargs)
        return query if result is None else result
