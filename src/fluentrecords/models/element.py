"""Info-block element model."""

import re
from typing import Any, Dict, List, Optional, Type

from fluentrecords.errors import ConfigurationError, NotSetModelIdError
from fluentrecords.models.attributes import FieldValue
from fluentrecords.models.base import BaseModel, IblockModel
from fluentrecords.queries.element_query import ElementQuery
from fluentrecords.queries.scopes import normalize_direction, scope
from fluentrecords.relations.resolvers import HierarchyResolver
from fluentrecords.utils.logging import get_logger

logger = get_logger(__name__)

PROPERTY_VALUE_KEY = re.compile(r"^PROPERTY_(.+)_VALUE$")


class ElementModel(IblockModel):
    """
    Element of one info-block.

    Subclasses set ``IBLOCK_ID`` (or configure ``iblock_id``) and, to use the
    section helpers, ``SECTION_MODEL``. Custom properties arrive nested under
    ``PROPERTIES`` and are flattened to ``PROPERTY_<CODE>_VALUE``,
    ``PROPERTY_<CODE>_DESCRIPTION`` and ``PROPERTY_<CODE>_VALUE_ID``.
    """

    entity = "element"
    query_class = ElementQuery
    SECTION_MODEL: Optional[Type[BaseModel]] = None
    relations = {"sections": HierarchyResolver()}
    save_blacklist = ("ID", "IBLOCK_ID", "PROPERTIES", "PROPERTY_VALUES")
    save_excluded_prefixes = ("PROPERTY_",)

    @classmethod
    def section_model(cls) -> Type[BaseModel]:
        """
        Model class of this info-block's sections.

        Raises:
            ConfigurationError: If SECTION_MODEL is not set
        """
        if cls.SECTION_MODEL is None:
            raise ConfigurationError(f"You must set SECTION_MODEL on {cls.__name__} to use its sections")
        return cls.SECTION_MODEL

    # -- scopes ----------------------------------------------------------------

    @scope
    def sort_by_date(query, direction="DESC"):
        return query.sort({"ACTIVE_FROM": normalize_direction(direction)})

    @scope
    def from_section_with_id(query, id):
        return query.filter({"SECTION_ID": id})

    @scope
    def from_section_with_code(query, code):
        return query.filter({"SECTION_CODE": code})

    @scope
    def active(query):
        return query.filter({"ACTIVE": "Y"})

    # -- hydration -------------------------------------------------------------

    def after_fill(self) -> None:
        self.normalize_property_format()

    def normalize_property_format(self) -> None:
        """Flatten the nested PROPERTIES map into derived top-level keys."""
        properties = self.fields.get("PROPERTIES")
        if not properties:
            return

        for code, prop in properties.items():
            prop = prop or {}
            prefix = f"PROPERTY_{code}"
            self.fields.set_derived(f"{prefix}_VALUE", prop.get("VALUE"))
            self.fields.set_raw(f"{prefix}_VALUE", prop.get("~VALUE", prop.get("VALUE")))
            self.fields.set_derived(f"{prefix}_DESCRIPTION", prop.get("DESCRIPTION"))
            self.fields.set_raw(f"{prefix}_DESCRIPTION", prop.get("~DESCRIPTION", prop.get("DESCRIPTION")))
            self.fields.set_derived(f"{prefix}_VALUE_ID", prop.get("PROPERTY_VALUE_ID"))

    # -- sections --------------------------------------------------------------

    def get_sections(self) -> List[Any]:
        """Ids of every section the element belongs to (cached)."""
        return self.get_related("sections")

    def refresh_sections(self) -> List[Any]:
        return self.refresh_related("sections")

    def get_section(self, with_props: bool = False) -> Any:
        """
        Direct parent section.

        Returns:
            The section id without ``with_props``; otherwise the section's
            attributes as a dict, or False when the element has no section
        """
        section_id = self.get("IBLOCK_SECTION_ID")
        if not with_props:
            return section_id

        section_class = self.section_model()
        if not section_id:
            return False
        section = section_class.query(self.context).get_by_id(section_id)
        return section.to_dict() if section is not None else False

    def section(self, with_props: bool = False) -> Optional[BaseModel]:
        """Direct parent section as a model (lazy unless ``with_props``)."""
        section_class = self.section_model()
        return self.relations["sections"].parent(self, section_class, with_props=with_props)

    # -- saving ----------------------------------------------------------------

    def construct_property_values_for_save(self, selected: Optional[List[str]] = None) -> Dict[str, FieldValue]:
        """CODE -> value from the flat PROPERTY_<CODE>_VALUE keys."""
        values: Dict[str, FieldValue] = {}
        for field, value in self.get_fields().items():
            if selected and field not in selected:
                continue
            match = PROPERTY_VALUE_KEY.match(field)
            if match:
                values[match.group(1)] = value
        return values

    def save_props(self, selected: Optional[List[str]] = None) -> bool:
        """
        Write custom property values.

        Without ``selected`` the element's whole property set is replaced;
        with it only the listed ``PROPERTY_<CODE>_VALUE`` keys are written
        and other properties are left alone.

        Returns:
            False when there is nothing to write, else the adapter's result

        Raises:
            NotSetModelIdError: If the element was never persisted
        """
        if self.id is None:
            raise NotSetModelIdError("save_props")

        values = self.construct_property_values_for_save(selected)
        if not values:
            return False

        logger.debug(f"Saving properties {sorted(values)} of {self!r}")
        return bool(self.adapter().update_properties(self.id, values, only_selected=bool(selected)))
