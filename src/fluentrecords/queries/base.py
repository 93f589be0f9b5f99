"""Fluent, lazily-executed query builder shared by every entity type."""

from functools import partial
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional, Type, Union

from fluentrecords.adapters.base import Page
from fluentrecords.adapters.filtering import split_filter_key
from fluentrecords.collection import ResultCollection, key_by as collect_by_key
from fluentrecords.utils.logging import get_logger

if TYPE_CHECKING:
    from fluentrecords.context import ModelContext
    from fluentrecords.models.base import BaseModel

logger = get_logger(__name__)

# Selection markers that never reach the adapter as-is
FIELDS_MARKER = "FIELDS"
PROPS_MARKERS = ("PROPS", "PROPERTIES")


class BaseQuery:
    """
    Accumulates filter, sort, selection and pagination state for one model
    class and runs it against the model's adapter on a terminal call
    (``get_list``, ``first``, ``get_by_id``, ``find``, ``count``).

    The first explicit ``sort()``/``select()`` replaces the entity defaults;
    later calls merge into what is already there. Builders are single-use
    and not safe to share between threads.
    """

    default_sort: Dict[str, str] = {}
    default_select: List[str] = [FIELDS_MARKER]
    standard_fields: List[str] = ["ID"]
    filter_aliases: Dict[str, str] = {}
    props_wildcard: Optional[str] = None
    # select marker -> relation name resolved for every returned model
    relation_select_fields: Dict[str, str] = {}
    # select marker -> raw fields the adapter must return for it
    select_expansions: Dict[str, List[str]] = {}

    def __init__(self, context: "ModelContext", model_class: Type["BaseModel"]):
        self.context = context
        self.model_class = model_class
        self.adapter = context.adapter(model_class.entity)
        self.entity_config = context.entity_config(model_class.config_key)

        self.filter_conditions: Dict[str, Any] = {}
        self.sort_order: Dict[str, str] = {}
        self.select_fields: List[str] = list(self.default_select)
        self.page_spec: Optional[Page] = None
        self.key_by_field: Optional[str] = self.entity_config.key_by
        self.query_should_be_stopped = False
        self._select_is_default = True

    def __repr__(self) -> str:
        return (
            f"<{type(self).__name__} {self.model_class.__name__} filter={self.filter_conditions} "
            f"sort={self.sort_order} stopped={self.query_should_be_stopped}>"
        )

    def __getattr__(self, name: str):
        # Fluent scope calls: query.sort_by_date("DESC")
        if name.startswith("_"):
            raise AttributeError(name)
        model_class = self.__dict__.get("model_class")
        if model_class is not None and name in model_class.scopes:
            return partial(self.scope, name)
        raise AttributeError(f"{type(self).__name__} has no attribute or scope '{name}'")

    # -- state building ----------------------------------------------------

    def filter(self, conditions: Optional[Mapping[str, Any]] = None, **kwargs: Any) -> "BaseQuery":
        """Merge filter conditions into the builder."""
        self.filter_conditions.update(conditions or {})
        self.filter_conditions.update(kwargs)
        return self

    def sort(self, by: Union[str, Mapping[str, str]], direction: str = "ASC") -> "BaseQuery":
        """Merge sort order: ``sort("NAME")``, ``sort("NAME", "DESC")`` or ``sort({...})``."""
        spec = dict(by) if isinstance(by, Mapping) else {by: direction}
        for field, field_direction in spec.items():
            self.sort_order[field] = str(field_direction).upper()
        return self

    def select(self, *fields: Union[str, List[str]]) -> "BaseQuery":
        """Select fields; accepts varargs or a single list."""
        if len(fields) == 1 and isinstance(fields[0], (list, tuple)):
            fields = tuple(fields[0])
        if self._select_is_default:
            self.select_fields = []
            self._select_is_default = False
        for field in fields:
            if field not in self.select_fields:
                self.select_fields.append(field)
        return self

    def navigation(self, page: Union[Page, Mapping[str, Any], None]) -> "BaseQuery":
        """Set pagination from a Page or a ``{"size": .., "number": ..}`` mapping."""
        if page is None or isinstance(page, Page):
            self.page_spec = page
        else:
            self.page_spec = Page(**page)
        return self

    def limit(self, size: int) -> "BaseQuery":
        current = self.page_spec or Page()
        self.page_spec = current.model_copy(update={"size": size})
        return self

    def page(self, number: int) -> "BaseQuery":
        current = self.page_spec or Page()
        self.page_spec = current.model_copy(update={"number": number})
        return self

    def key_by(self, field: Optional[str]) -> "BaseQuery":
        """Key list results by ``field`` (None for positional results)."""
        self.key_by_field = field
        return self

    def stop_query(self) -> "BaseQuery":
        """Mark the result set as provably empty; terminal calls skip the adapter."""
        self.query_should_be_stopped = True
        return self

    def scope(self, name: str, *args: Any, **kwargs: Any) -> "BaseQuery":
        """Apply a scope registered on the model class."""
        return self.model_class.scopes.apply(self, name, args, kwargs)

    # -- normalization -----------------------------------------------------

    @staticmethod
    def substitute_field(conditions: Dict[str, Any], old: str, new: str) -> None:
        """
        Rename filter field ``old`` to ``new`` in place, keeping operator
        prefixes. An already-present ``new`` key wins over the alias.
        """
        for key in list(conditions):
            prefix, field = split_filter_key(key)
            if field != old:
                continue
            value = conditions.pop(key)
            conditions.setdefault(prefix + new, value)

    def _aliases(self) -> Dict[str, str]:
        aliases = dict(self.filter_aliases)
        aliases.update(self.entity_config.filter_aliases)
        return aliases

    def _extra_filter(self) -> Dict[str, Any]:
        """Conditions every query of this entity must carry."""
        return {}

    def normalize_filter(self) -> Dict[str, Any]:
        conditions = dict(self.filter_conditions)
        for old, new in self._aliases().items():
            self.substitute_field(conditions, old, new)
        conditions.update(self._extra_filter())
        return conditions

    def normalize_sort(self) -> Dict[str, str]:
        if self.sort_order:
            return dict(self.sort_order)
        if self.entity_config.default_sort:
            return dict(self.entity_config.default_sort)
        return dict(self.default_sort)

    def fields_must_be_selected(self) -> bool:
        return FIELDS_MARKER in self.select_fields

    def props_must_be_selected(self) -> bool:
        return any(marker in self.select_fields for marker in PROPS_MARKERS)

    def requested_relations(self) -> List[str]:
        relations: List[str] = []
        for field in self.select_fields:
            relation = self.relation_select_fields.get(field)
            if relation and relation not in relations:
                relations.append(relation)
        return relations

    def normalize_select(self) -> List[str]:
        fields: List[str] = []
        if self.fields_must_be_selected():
            fields.extend(self.standard_fields)
        fields.extend(self.select_fields)
        if self.props_must_be_selected() and self.props_wildcard:
            fields.append(self.props_wildcard)
        for marker, expansion in self.select_expansions.items():
            if marker in self.select_fields:
                fields.extend(expansion)
        fields.append("ID")
        return self.clear_select(fields)

    def clear_select(self, fields: List[str]) -> List[str]:
        """Drop virtual markers and duplicates, keeping first-seen order."""
        virtual = {FIELDS_MARKER, *PROPS_MARKERS, *self.relation_select_fields, *self.select_expansions}
        cleared: List[str] = []
        for field in fields:
            if field in virtual or field in cleared:
                continue
            cleared.append(field)
        return cleared

    def normalized_params(self) -> Dict[str, Any]:
        """The exact arguments ``get_list`` would hand to the adapter."""
        return {
            "filter": self.normalize_filter(),
            "sort": self.normalize_sort(),
            "select": self.normalize_select(),
            "navigation": self.page_spec,
        }

    # -- terminal operations -------------------------------------------------

    def make_model(self, record: Dict[str, Any]) -> "BaseModel":
        """Wrap a raw record into a pre-seeded model (no refetch)."""
        return self.model_class(self.context, record.get("ID"), record)

    def get_list(self) -> ResultCollection:
        """Run the query and return the matching models."""
        results = ResultCollection()
        if self.query_should_be_stopped:
            logger.debug(f"{self!r} stopped, skipping adapter call")
            return results

        params = self.normalized_params()
        records = self.adapter.list_records(
            params["filter"], params["sort"], params["select"], params["navigation"]
        )
        relations = self.requested_relations()
        for record in records:
            model = self.make_model(record)
            for relation in relations:
                model.get_related(relation)
            key = record.get(self.key_by_field) if self.key_by_field else None
            collect_by_key(results, key, model)
        logger.debug(f"{type(self).__name__} fetched {len(results)} {self.model_class.__name__} models")
        return results

    def first(self) -> Optional["BaseModel"]:
        """First matching model, or None when nothing matches."""
        previous = self.page_spec
        self.page_spec = Page(size=1)
        try:
            return self.get_list().first()
        finally:
            self.page_spec = previous

    def get_by_id(self, id: Any) -> Optional["BaseModel"]:
        """
        Model with primary key ``id`` through the normal query path, or None.

        Sort order set earlier on the builder is dropped.
        """
        if not id or self.query_should_be_stopped:
            return None
        self.sort_order = {}
        self.filter({"ID": id})
        return self.first()

    def find(self, id: Any) -> Optional["BaseModel"]:
        """Direct primary-key fetch that bypasses filter/select normalization."""
        if not id or self.query_should_be_stopped:
            return None
        record = self.adapter.fetch_by_id(id)
        if record is None:
            return None
        return self.make_model(record)

    def count(self) -> int:
        """Number of matching records; selection and pagination are not applied."""
        if self.query_should_be_stopped:
            return 0
        return int(self.adapter.count(self.normalize_filter()))


class IblockQuery(BaseQuery):
    """Query for entities that live inside an info-block (elements, sections)."""

    def _extra_filter(self) -> Dict[str, Any]:
        return {"IBLOCK_ID": self.model_class.iblock_id(self.context)}

    def get_by_code(self, code: str) -> Optional["BaseModel"]:
        self.filter({"CODE": code})
        return self.first()

    def get_by_external_id(self, xml_id: str) -> Optional["BaseModel"]:
        self.filter({"XML_ID": xml_id})
        return self.first()
