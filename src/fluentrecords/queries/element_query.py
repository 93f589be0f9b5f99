from typing import Dict, List

from fluentrecords.queries.base import IblockQuery


class ElementQuery(IblockQuery):
    """Query for info-block elements."""

    default_sort: Dict[str, str] = {"SORT": "ASC"}
    default_select: List[str] = ["FIELDS", "PROPS"]
    standard_fields: List[str] = [
        "ID",
        "IBLOCK_ID",
        "NAME",
        "CODE",
        "XML_ID",
        "ACTIVE",
        "ACTIVE_FROM",
        "ACTIVE_TO",
        "SORT",
        "IBLOCK_SECTION_ID",
        "PREVIEW_TEXT",
        "DETAIL_TEXT",
        "DATE_CREATE",
        "TIMESTAMP_X",
    ]
    props_wildcard = "PROPERTY_*"
    relation_select_fields: Dict[str, str] = {
        "IBLOCK_SECTION": "sections",
        "SECTIONS": "sections",
    }
    select_expansions: Dict[str, List[str]] = {
        "SECTION": ["IBLOCK_SECTION_ID"],
    }
