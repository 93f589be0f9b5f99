"""Explicit per-request context handed to every model and query builder."""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from pydantic import BaseModel, Field

from fluentrecords.config.loader import EntityConfig, ModelsConfig
from fluentrecords.errors import ConfigurationError

if TYPE_CHECKING:
    from fluentrecords.adapters.base import DataAdapter


class Caller(BaseModel):
    """The user on whose behalf the current request runs."""

    user_id: Optional[Any] = Field(default=None, description="Identifier of the operating user, None for anonymous")
    group_ids: List[Any] = Field(default_factory=list, description="Group memberships already known for the caller")
    authorized: bool = Field(default=False, description="Whether the caller passed authentication")


@dataclass
class ModelContext:
    """
    Adapters, caller and configuration for one logical operation.

    ``adapters`` is keyed by entity kind ("element", "section", "user").
    Instances are request-scoped and not shared between threads.
    """

    adapters: Dict[str, "DataAdapter"]
    caller: Caller = field(default_factory=Caller)
    config: Optional[ModelsConfig] = None

    def adapter(self, entity: str) -> "DataAdapter":
        """
        Get the adapter serving an entity kind.

        Raises:
            ConfigurationError: If no adapter is registered for ``entity``
        """
        try:
            return self.adapters[entity]
        except KeyError:
            raise ConfigurationError(f"No adapter registered for entity '{entity}'") from None

    def entity_config(self, key: Optional[str]) -> EntityConfig:
        """Entity settings for ``key``; empty settings when unconfigured."""
        if self.config is None:
            return EntityConfig()
        return self.config.entity_or_default(key)

    @property
    def admin_group_id(self) -> int:
        if self.config is None:
            return 1
        return self.config.defaults.admin_group_id
