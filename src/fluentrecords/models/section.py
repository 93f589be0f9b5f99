"""Info-block section model."""

from typing import Any, Optional

from fluentrecords.models.base import IblockModel
from fluentrecords.queries.scopes import normalize_direction, scope
from fluentrecords.queries.section_query import SectionQuery
from fluentrecords.relations.resolvers import HierarchyResolver


class SectionModel(IblockModel):
    """Section (tree container) of one info-block."""

    entity = "section"
    query_class = SectionQuery
    hierarchy = HierarchyResolver(field="PARENT", parent_field="IBLOCK_SECTION_ID")

    @scope
    def from_parent_with_id(query, id):
        return query.filter({"SECTION_ID": id})

    @scope
    def sort_by_date(query, direction="DESC"):
        return query.sort({"DATE_CREATE": normalize_direction(direction)})

    @scope
    def active(query):
        return query.filter({"ACTIVE": "Y"})

    def get_parent_id(self) -> Any:
        return self.hierarchy.parent_id(self)

    def parent(self, with_props: bool = False) -> Optional["SectionModel"]:
        """Parent section; None for a top-level section."""
        return self.hierarchy.parent(self, type(self), with_props=with_props)
