from typing import Dict, List

from fluentrecords.queries.base import IblockQuery


class SectionQuery(IblockQuery):
    """Query for info-block sections (tree containers)."""

    default_sort: Dict[str, str] = {"SORT": "ASC"}
    standard_fields: List[str] = [
        "ID",
        "IBLOCK_ID",
        "IBLOCK_SECTION_ID",
        "NAME",
        "CODE",
        "XML_ID",
        "ACTIVE",
        "SORT",
        "DEPTH_LEVEL",
        "DESCRIPTION",
        "DATE_CREATE",
        "TIMESTAMP_X",
    ]
    filter_aliases: Dict[str, str] = {"PARENT_ID": "SECTION_ID"}
    select_expansions: Dict[str, List[str]] = {
        "PARENT": ["IBLOCK_SECTION_ID"],
    }
