"""Lazily-hydrated model shared by every entity type."""

from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Type

from fluentrecords.adapters.base import DataAdapter
from fluentrecords.context import ModelContext
from fluentrecords.errors import ConfigurationError, CreationError, NotSetModelIdError
from fluentrecords.models.attributes import AttributeBag, FieldValue
from fluentrecords.queries.base import BaseQuery
from fluentrecords.queries.scopes import ScopeRegistry
from fluentrecords.relations.resolvers import RelationResolver
from fluentrecords.utils.logging import get_logger

logger = get_logger(__name__)


class BaseModel:
    """
    One entity instance: an id plus an attribute bag.

    Attributes are fetched on first read (once) and kept until ``refresh()``.
    Relations are fetched on first ``get_related()`` and kept until
    ``refresh_related()``. ``save()`` writes but never re-reads; call
    ``refresh()`` to observe values the data source computed.
    """

    entity: str = ""
    config_key: Optional[str] = None
    query_class: Type[BaseQuery] = BaseQuery
    relations: Dict[str, RelationResolver] = {}
    field_aliases: Dict[str, str] = {}
    save_blacklist: Tuple[str, ...] = ("ID",)
    save_excluded_prefixes: Tuple[str, ...] = ()
    scopes: ScopeRegistry = ScopeRegistry("BaseModel")

    def __init_subclass__(cls, **kwargs: Any):
        super().__init_subclass__(**kwargs)
        if "config_key" not in cls.__dict__:
            cls.config_key = cls.__name__
        inherited = getattr(cls, "scopes", None)
        cls.scopes = ScopeRegistry.collect(cls.__name__, dict(cls.__dict__), inherited)

    def __init__(self, context: ModelContext, id: Any = None, fields: Optional[Mapping[str, FieldValue]] = None):
        self.context = context
        self.id = id
        self.fields = AttributeBag()
        self.fields_are_fetched = False
        self.related_fetched: Dict[str, bool] = {name: False for name in self.relations}
        if fields is not None:
            self._fill(fields)
            self.fields_are_fetched = True

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.id}>"

    def __getattribute__(self, name: str) -> Any:
        # record fields win over upper-case class constants such as IBLOCK_ID
        if name[:1].isupper() and "fields" in object.__getattribute__(self, "__dict__"):
            fields = object.__getattribute__(self, "get_fields")()
            if name in fields:
                return fields[name]
        return object.__getattribute__(self, name)

    def __getattr__(self, name: str) -> Any:
        # model.NAME / model.groups read through the attribute bag
        if name.startswith("_") or "fields" not in self.__dict__:
            raise AttributeError(name)
        if name in self.field_aliases or name[:1].isupper():
            return self.get(name)
        raise AttributeError(f"{type(self).__name__} has no attribute '{name}'")

    def __setattr__(self, name: str, value: Any) -> None:
        if name in self.field_aliases or name[:1].isupper():
            self.set(name, value)
        else:
            object.__setattr__(self, name, value)

    def __getitem__(self, name: str) -> FieldValue:
        field = self._field_name(name)
        return self._fields_with_relation(field)[field]

    def __setitem__(self, name: str, value: FieldValue) -> None:
        self.set(name, value)

    def __contains__(self, name: str) -> bool:
        field = self._field_name(name)
        return field in self._fields_with_relation(field)

    # -- factories -----------------------------------------------------------

    @classmethod
    def query(cls, context: ModelContext) -> BaseQuery:
        """Fresh query builder for this model class."""
        return cls.query_class(context, cls)

    def new_query(self) -> BaseQuery:
        return type(self).query(self.context)

    @classmethod
    def prepare_create_fields(cls, context: ModelContext, fields: Dict[str, FieldValue]) -> Dict[str, FieldValue]:
        """Hook for entity-specific defaults added before ``create``."""
        return fields

    @classmethod
    def create(cls, context: ModelContext, fields: Mapping[str, FieldValue]) -> "BaseModel":
        """
        Create a new entity through the adapter.

        Returns:
            Model pre-seeded with ``fields`` plus the new ID (no refetch)

        Raises:
            CreationError: If the adapter rejects the record
        """
        payload = cls.prepare_create_fields(context, dict(fields))
        result = context.adapter(cls.entity).create(payload)
        if not result.ok:
            logger.warning(f"Creating {cls.__name__} failed: {result.error}")
            raise CreationError(result.error)

        payload["ID"] = result.id
        logger.debug(f"Created {cls.__name__} {result.id}")
        return cls(context, result.id, payload)

    # -- attribute access ----------------------------------------------------

    def adapter(self) -> DataAdapter:
        return self.context.adapter(self.entity)

    def _field_name(self, name: str) -> str:
        return self.field_aliases.get(name, name)

    def _fill(self, fields: Mapping[str, FieldValue]) -> None:
        self.fields = fields.copy() if isinstance(fields, AttributeBag) else AttributeBag(fields)
        self.after_fill()

    def after_fill(self) -> None:
        """Synthesize derived keys; runs once per hydration and must be idempotent."""

    def get_fields(self) -> AttributeBag:
        """Attribute bag, fetching it first if it was never loaded."""
        if not self.fields_are_fetched and self.id is not None:
            self.refresh_fields()
        return self.fields

    def _relation_serving(self, field: str) -> Optional[str]:
        for name, resolver in self.relations.items():
            if resolver.serves(field):
                return name
        return None

    def _fields_with_relation(self, field: str) -> AttributeBag:
        """Attribute bag, loading the relation stored under ``field`` if it is not cached yet."""
        self.get_fields()
        relation = self._relation_serving(field)
        if relation is not None and not self.related_fetched.get(relation):
            self.get_related(relation)
        return self.fields

    def get(self, name: str, default: FieldValue = None) -> FieldValue:
        field = self._field_name(name)
        return self._fields_with_relation(field).get(field, default)

    def set(self, name: str, value: FieldValue) -> None:
        """
        Assign a field; a persisted model is hydrated first so the write isn't lost.

        Writing a relation field replaces the cached relation until
        ``refresh_related()``.
        """
        field = self._field_name(name)
        fields = self.get_fields()
        relation = self._relation_serving(field)
        if relation is not None and self.relations[relation].field == field:
            self.relations[relation].store(self, value)
            self.related_fetched[relation] = True
        else:
            fields[field] = value

    def to_dict(self) -> Dict[str, FieldValue]:
        return self.get_fields().to_dict()

    # -- refresh -------------------------------------------------------------

    def refresh(self) -> AttributeBag:
        """Re-sync with the data source."""
        return self.refresh_fields()

    def refresh_fields(self) -> AttributeBag:
        """
        Refetch attributes, keeping cached relation values the raw fetch lacks.

        A model without id gets an empty bag and no adapter call.
        """
        if self.id is None:
            self.fields = AttributeBag()
            return self.fields

        preserved = {
            name: self.fields.get(resolver.field)
            for name, resolver in self.relations.items()
            if self.related_fetched.get(name) and resolver.field in self.fields
        }

        fresh = self.new_query().get_by_id(self.id)
        if fresh is None:
            logger.warning(f"{type(self).__name__} {self.id} not found while refreshing")
            self.fields = AttributeBag()
        else:
            self.fields = fresh.fields

        for name, value in preserved.items():
            resolver = self.relations[name]
            if resolver.field not in self.fields:
                resolver.store(self, value)

        self.fields_are_fetched = True
        return self.fields

    # -- relations -----------------------------------------------------------

    def _resolver(self, name: str) -> RelationResolver:
        try:
            return self.relations[name]
        except KeyError:
            raise ConfigurationError(f"{type(self).__name__} has no relation '{name}'") from None

    def get_related(self, name: str) -> Any:
        """Related collection from cache, fetching it on first use."""
        resolver = self._resolver(name)
        if self.related_fetched.get(name):
            return self.fields.get(resolver.field)
        return self.refresh_related(name)

    def refresh_related(self, name: str) -> Any:
        """Refetch a relation; the cache flag is only set after a successful fetch."""
        resolver = self._resolver(name)
        if self.id is None:
            return resolver.empty()

        value = resolver.fetch(self)
        resolver.store(self, value)
        self.related_fetched[name] = True
        return value

    # -- save ----------------------------------------------------------------

    def collect_fields_for_save(self, selected_fields: Optional[Iterable[str]] = None) -> Dict[str, FieldValue]:
        """
        Build the update payload from the attribute bag.

        Skips the identifier and blacklisted fields, derived keys, raw
        variants and excluded prefixes; keeps only ``selected_fields`` when given.
        """
        selected = [self._field_name(name) for name in selected_fields] if selected_fields else []
        payload: Dict[str, FieldValue] = {}
        for field, value in self.fields.writable_items():
            if selected and field not in selected:
                continue
            if field in self.save_blacklist:
                continue
            if any(field.startswith(prefix) for prefix in self.save_excluded_prefixes):
                continue
            payload[field] = value
        return payload

    def save(self, selected_fields: Optional[List[str]] = None) -> bool:
        """
        Write the attribute bag back through the adapter.

        Local state is not updated from the data source afterwards.

        Raises:
            NotSetModelIdError: If the model was never persisted
        """
        if self.id is None:
            raise NotSetModelIdError("save")
        payload = self.collect_fields_for_save(selected_fields)
        logger.debug(f"Saving {self!r} fields {sorted(payload)}")
        return bool(self.adapter().update(self.id, payload))


class IblockModel(BaseModel):
    """Base for entities stored inside an info-block (elements and sections)."""

    IBLOCK_ID: Optional[int] = None
    save_blacklist = ("ID", "IBLOCK_ID")

    @classmethod
    def iblock_id(cls, context: Optional[ModelContext] = None) -> int:
        """
        Info-block id from the class constant or the entity configuration.

        Raises:
            ConfigurationError: If neither is set
        """
        if cls.IBLOCK_ID:
            return cls.IBLOCK_ID
        if context is not None:
            configured = context.entity_config(cls.config_key).iblock_id
            if configured:
                return configured
        raise ConfigurationError(
            f"You must set IBLOCK_ID on {cls.__name__} or configure iblock_id for entity '{cls.config_key}'"
        )

    @classmethod
    def prepare_create_fields(cls, context: ModelContext, fields: Dict[str, FieldValue]) -> Dict[str, FieldValue]:
        fields.setdefault("IBLOCK_ID", cls.iblock_id(context))
        return fields
