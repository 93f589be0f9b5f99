"""Entity configuration loaded from YAML.

Example ``fluentrecords.config.yaml``::

    version: 1
    defaults:
      key_by: null
      admin_group_id: 1
    entities:
      news:
        iblock_id: 3
        filter_aliases: {SECTION: SECTION_ID}
        default_sort: {ACTIVE_FROM: DESC}
"""

from copy import deepcopy
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError

from fluentrecords.errors import ConfigurationError

DEFAULT_CONFIG_PATH = Path("fluentrecords.config.yaml")

ALLOWED_SORT_DIRECTIONS = ("ASC", "DESC")


class EntityConfig(BaseModel):
    """Settings for one model class, looked up by the model's ``config_key``."""

    iblock_id: Optional[int] = Field(default=None, description="Info-block the entity lives in")
    filter_aliases: Dict[str, str] = Field(default_factory=dict, description="Extra alias -> adapter key substitutions")
    default_sort: Dict[str, str] = Field(default_factory=dict, description="Sort used when the caller sets none")
    key_by: Optional[str] = Field(default=None, description="Field keying list results")


class ConfigDefaults(BaseModel):
    key_by: Optional[str] = None
    admin_group_id: int = 1


class ModelsConfig(BaseModel):
    """Validated top-level configuration."""

    version: int
    defaults: ConfigDefaults = Field(default_factory=ConfigDefaults)
    entities: Dict[str, EntityConfig] = Field(default_factory=dict)

    def entity(self, key: str) -> EntityConfig:
        """
        Get the configuration block for an entity.

        Raises:
            ConfigurationError: If no block is configured under ``key``
        """
        if key not in self.entities:
            raise ConfigurationError(f"No entity configuration found for '{key}'")
        return self.entities[key]

    def entity_or_default(self, key: Optional[str]) -> EntityConfig:
        """Get the entity block, or one built from the global defaults."""
        if key and key in self.entities:
            return self.entities[key]
        return EntityConfig(key_by=self.defaults.key_by)


def _normalize_entity_entry(name: str, entry: Dict[str, Any], defaults: Dict[str, Any]) -> Dict[str, Any]:
    """Upper-case sort directions and apply the global key_by default."""
    normalized = deepcopy(entry)
    normalized.setdefault("key_by", defaults.get("key_by"))

    sort = normalized.get("default_sort") or {}
    if not isinstance(sort, dict):
        raise ValueError(f"Entity '{name}' default_sort must be a dictionary")
    normalized["default_sort"] = {}
    for field, direction in sort.items():
        direction = str(direction).upper()
        if direction not in ALLOWED_SORT_DIRECTIONS:
            raise ValueError(f"Entity '{name}' has invalid sort direction for {field}: {direction}")
        normalized["default_sort"][field] = direction

    aliases = normalized.get("filter_aliases") or {}
    if not isinstance(aliases, dict):
        raise ValueError(f"Entity '{name}' filter_aliases must be a dictionary")
    normalized["filter_aliases"] = aliases
    return normalized


def parse_models_config(raw: Any) -> ModelsConfig:
    """
    Validate an already-parsed config mapping.

    Raises:
        ValueError: If the structure is invalid
    """
    if not isinstance(raw, dict):
        raise ValueError("Models config must be a dictionary")
    if "version" not in raw:
        raise ValueError("Models config must have 'version' field")

    entities = raw.get("entities") or {}
    if not isinstance(entities, dict):
        raise ValueError("Models config 'entities' must be a dictionary")

    defaults = raw.get("defaults") or {}
    normalized = {
        "version": raw["version"],
        "defaults": defaults,
        "entities": {},
    }
    for name, entry in entities.items():
        if not isinstance(entry, dict):
            raise ValueError(f"Entity '{name}' must be a dictionary")
        normalized["entities"][name] = _normalize_entity_entry(name, entry, defaults)

    try:
        return ModelsConfig.model_validate(normalized)
    except ValidationError as exc:
        raise ValueError(f"Invalid models config: {exc}") from exc


def load_models_config(path: Path | None = None) -> ModelsConfig:
    """
    Load and validate the models configuration file.

    Args:
        path: Optional path to the YAML file. Defaults to fluentrecords.config.yaml

    Returns:
        Validated ModelsConfig

    Raises:
        FileNotFoundError: If the config file doesn't exist
        ValueError: If config structure is invalid
    """
    cfg_path = path or DEFAULT_CONFIG_PATH
    if not cfg_path.exists():
        raise FileNotFoundError(f"Models config file not found: {cfg_path}")
    with cfg_path.open("r", encoding="utf-8") as f:
        raw = yaml.safe_load(f)
    return parse_models_config(raw)
