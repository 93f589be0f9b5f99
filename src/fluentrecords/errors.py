"""Exception hierarchy for fluentrecords.

"No result" is never an error here: terminal query methods return ``None`` or
an empty collection. Adapter exceptions are not translated and propagate to the
caller unchanged.
"""

from typing import Optional


class FluentRecordsError(Exception):
    """Base class for every error raised by the core."""


class ConfigurationError(FluentRecordsError):
    """Required entity configuration is missing or invalid (e.g. unset IBLOCK_ID)."""


class UnknownScopeError(FluentRecordsError, LookupError):
    """A scope name was requested that the model never registered."""

    def __init__(self, scope_name: str, model_name: str):
        self.scope_name = scope_name
        self.model_name = model_name
        super().__init__(f"Scope '{scope_name}' is not registered on {model_name}")


class InvalidScopeArgumentError(FluentRecordsError, TypeError):
    """A scope was invoked with the wrong arity or argument type."""


class CreationError(FluentRecordsError):
    """The adapter rejected a create call."""

    def __init__(self, diagnostic: Optional[str]):
        self.diagnostic = diagnostic or "unknown error"
        super().__init__(f"Entity creation failed: {self.diagnostic}")


class NotSetModelIdError(FluentRecordsError):
    """An operation that needs a persisted entity was called on a model without id."""

    def __init__(self, operation: str = "save"):
        self.operation = operation
        super().__init__(f"Cannot {operation} a model that has no id")
