"""Strategies that fetch and cache a model's related collection."""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, List, Optional, Type

from fluentrecords.adapters.filtering import loose_equal
from fluentrecords.utils.logging import get_logger

if TYPE_CHECKING:
    from fluentrecords.models.base import BaseModel

logger = get_logger(__name__)


class RelationResolver(ABC):
    """
    Fetches one relation of a model and stores it under ``field`` in the
    model's attribute bag. The model owns the cache flag; resolvers only
    fetch and store, so a raising ``fetch`` leaves the flag untouched.
    """

    field: str = ""

    def empty(self) -> Any:
        """Value returned for models that are not persisted yet."""
        return []

    @abstractmethod
    def fetch(self, model: "BaseModel") -> Any:
        """Load the relation from the adapter (or the caller context)."""

    def serves(self, field: str) -> bool:
        """Whether reading ``field`` needs this relation loaded."""
        return field == self.field

    def store(self, model: "BaseModel", value: Any) -> None:
        model.fields[self.field] = value


class HierarchyResolver(RelationResolver):
    """
    Tree-section relation.

    Memberships come from ``fetch_related_hierarchy``; the direct parent is a
    scalar already present on the raw record, so id-only access costs no call.
    """

    def __init__(self, field: str = "IBLOCK_SECTION", parent_field: str = "IBLOCK_SECTION_ID"):
        self.field = field
        self.parent_field = parent_field

    def fetch(self, model: "BaseModel") -> List[Any]:
        logger.debug(f"Fetching sections of {model!r}")
        return list(model.adapter().fetch_related_hierarchy(model.id, ids_only=True))

    def parent_id(self, model: "BaseModel") -> Any:
        return model.get(self.parent_field)

    def parent(self, model: "BaseModel", parent_class: Type["BaseModel"], with_props: bool = False) -> Optional["BaseModel"]:
        """
        Parent container as a model.

        Without ``with_props`` a lazy model carrying only the id is returned;
        with it the parent is queried through its own query builder.
        """
        parent_id = self.parent_id(model)
        if not parent_id:
            return None
        if with_props:
            return parent_class.query(model.context).get_by_id(parent_id)
        return parent_class(model.context, parent_id)


class GroupResolver(RelationResolver):
    """
    Group-membership relation.

    For the caller the request already runs as, the groups known on the
    context are used instead of an adapter call. ``mirror_field`` keeps a
    derived copy under a legacy name.
    """

    def __init__(self, field: str = "GROUP_ID", mirror_field: Optional[str] = "GROUPS"):
        self.field = field
        self.mirror_field = mirror_field

    def serves(self, field: str) -> bool:
        return field == self.field or (self.mirror_field is not None and field == self.mirror_field)

    @staticmethod
    def is_current(model: "BaseModel") -> bool:
        caller = model.context.caller
        return caller.user_id is not None and loose_equal(model.id, caller.user_id)

    def fetch(self, model: "BaseModel") -> List[Any]:
        if self.is_current(model):
            logger.debug(f"Using caller groups for {model!r}")
            return list(model.context.caller.group_ids)
        logger.debug(f"Fetching groups of {model!r}")
        return list(model.adapter().fetch_related_group(model.id))

    def store(self, model: "BaseModel", value: Any) -> None:
        super().store(model, value)
        if self.mirror_field:
            model.fields.set_derived(self.mirror_field, value)
