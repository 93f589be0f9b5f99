"""Model classes and raw records shared by the test modules."""

from fluentrecords.models import ElementModel, SectionModel
from fluentrecords.queries.scopes import scope


class NewsSection(SectionModel):
    IBLOCK_ID = 3


class News(ElementModel):
    IBLOCK_ID = 3
    SECTION_MODEL = NewsSection

    @scope
    def with_code_like(query, fragment):
        return query.filter({"%CODE": fragment})


class ConfiguredArticle(ElementModel):
    """Info-block id comes from configuration only."""


class UnconfiguredElement(ElementModel):
    """Neither IBLOCK_ID nor SECTION_MODEL is set."""


ELEMENT_RECORDS = [
    {
        "ID": 1,
        "IBLOCK_ID": 3,
        "NAME": "First",
        "CODE": "first",
        "XML_ID": "ext-1",
        "ACTIVE": "Y",
        "SORT": 100,
        "ACTIVE_FROM": "2024-01-05T10:00:00Z",
        "IBLOCK_SECTION_ID": 5,
        "PROPERTIES": {
            "COLOR": {
                "VALUE": "red",
                "~VALUE": "<b>red</b>",
                "DESCRIPTION": "main",
                "~DESCRIPTION": "main",
                "PROPERTY_VALUE_ID": 11,
            },
        },
    },
    {
        "ID": 2,
        "IBLOCK_ID": 3,
        "NAME": "Second",
        "CODE": "second",
        "ACTIVE": "N",
        "SORT": 200,
        "ACTIVE_FROM": "2024-03-01T10:00:00Z",
        "IBLOCK_SECTION_ID": 5,
    },
    {
        "ID": 3,
        "IBLOCK_ID": 3,
        "NAME": "Third",
        "CODE": "third",
        "ACTIVE": "Y",
        "SORT": 300,
        "ACTIVE_FROM": "2024-02-01T10:00:00Z",
        "IBLOCK_SECTION_ID": None,
    },
    {
        "ID": 4,
        "IBLOCK_ID": 7,
        "NAME": "Other",
        "CODE": "other",
        "ACTIVE": "Y",
        "SORT": 50,
    },
]

ELEMENT_HIERARCHY = {1: [5, 6]}

SECTION_RECORDS = [
    {
        "ID": 5,
        "IBLOCK_ID": 3,
        "NAME": "News",
        "CODE": "news",
        "IBLOCK_SECTION_ID": None,
        "ACTIVE": "Y",
        "SORT": 10,
        "DATE_CREATE": "2024-01-01T00:00:00Z",
    },
    {
        "ID": 6,
        "IBLOCK_ID": 3,
        "NAME": "Archive",
        "CODE": "archive",
        "IBLOCK_SECTION_ID": 5,
        "ACTIVE": "Y",
        "SORT": 20,
        "DATE_CREATE": "2024-02-01T00:00:00Z",
    },
    {
        "ID": 8,
        "IBLOCK_ID": 3,
        "NAME": "Deep",
        "CODE": "deep",
        "IBLOCK_SECTION_ID": 6,
        "ACTIVE": "N",
        "SORT": 30,
        "DATE_CREATE": "2024-03-01T00:00:00Z",
    },
]

USER_RECORDS = [
    {"ID": 1, "LOGIN": "admin", "EMAIL": "admin@example.com", "NAME": "Ada", "LAST_NAME": "Admin", "ACTIVE": "Y"},
    {"ID": 2, "LOGIN": "jdoe", "EMAIL": "jdoe@example.com", "NAME": "John", "LAST_NAME": "Doe", "ACTIVE": "Y"},
    {"ID": 3, "LOGIN": "blocked", "EMAIL": None, "NAME": "Zoe", "LAST_NAME": "Zed", "ACTIVE": "N"},
]

USER_GROUPS = {1: [1, 2], 2: [2, 5], 3: []}
