"""Fluent, lazily-hydrated models and query builders over legacy record APIs."""

from .adapters.base import CreateResult, DataAdapter, Page
from .adapters.memory import InMemoryAdapter
from .collection import ResultCollection
from .context import Caller, ModelContext
from .errors import (
    ConfigurationError,
    CreationError,
    FluentRecordsError,
    InvalidScopeArgumentError,
    NotSetModelIdError,
    UnknownScopeError,
)
from .models import ElementModel, SectionModel, UserModel
from .queries.scopes import scope

__version__ = "0.1.0"

__all__ = [
    "Caller",
    "ConfigurationError",
    "CreateResult",
    "CreationError",
    "DataAdapter",
    "ElementModel",
    "FluentRecordsError",
    "InMemoryAdapter",
    "InvalidScopeArgumentError",
    "ModelContext",
    "NotSetModelIdError",
    "Page",
    "ResultCollection",
    "SectionModel",
    "UnknownScopeError",
    "UserModel",
    "scope",
]
