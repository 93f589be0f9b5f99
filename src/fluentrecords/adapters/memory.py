"""Dictionary-backed adapter used for tests, demos and fixtures."""

from copy import deepcopy
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from fluentrecords.adapters.base import CreateResult, DataAdapter, Page, Record
from fluentrecords.adapters.filtering import loose_equal, record_matches, sort_records
from fluentrecords.utils.logging import get_logger

logger = get_logger(__name__)


class InMemoryAdapter(DataAdapter):
    """
    Keeps raw records in memory and evaluates the legacy filter grammar.

    Selection is ignored: full records are always returned. ``groups`` maps an
    entity id to its group ids (exposed to filters as GROUPS_ID);
    ``hierarchy`` maps an entity id to the section ids it belongs to (exposed
    to filters as SECTION_ID, falling back to IBLOCK_SECTION_ID, and as
    SECTION_CODE through ``sections``).
    """

    def __init__(
        self,
        records: Optional[Iterable[Record]] = None,
        groups: Optional[Mapping[Any, Sequence[Any]]] = None,
        hierarchy: Optional[Mapping[Any, Sequence[Any]]] = None,
        sections: Optional[Mapping[Any, Record]] = None,
        required_fields: Sequence[str] = (),
    ):
        self.records: Dict[Any, Record] = {}
        for record in records or []:
            self.records[record["ID"]] = deepcopy(dict(record))
        self.groups: Dict[Any, List[Any]] = {k: list(v) for k, v in (groups or {}).items()}
        self.hierarchy: Dict[Any, List[Any]] = {k: list(v) for k, v in (hierarchy or {}).items()}
        self.sections: Dict[Any, Record] = deepcopy(dict(sections or {}))
        self.required_fields = tuple(required_fields)
        self.virtual_fields: Dict[str, Callable[[Mapping[str, Any]], Any]] = {
            "GROUPS_ID": lambda record: self.groups.get(record.get("ID"), []),
            "SECTION_ID": self._section_ids_of,
            "SECTION_CODE": self._section_codes_of,
            "LOGIN_EQUAL_EXACT": lambda record: record.get("LOGIN"),
        }

    def _section_ids_of(self, record: Mapping[str, Any]) -> List[Any]:
        if record.get("ID") in self.hierarchy:
            return self.hierarchy[record["ID"]]
        parent = record.get("IBLOCK_SECTION_ID")
        return [parent] if parent else []

    def _section_codes_of(self, record: Mapping[str, Any]) -> List[Any]:
        return [
            self.sections[section_id].get("CODE")
            for section_id in self._section_ids_of(record)
            if section_id in self.sections
        ]

    def _lookup(self, id: Any) -> Optional[Record]:
        if id in self.records:
            return self.records[id]
        for key, record in self.records.items():
            if loose_equal(key, id):
                return record
        return None

    def list_records(
        self,
        filter: Dict[str, Any],
        sort: Dict[str, str],
        select: List[str],
        navigation: Optional[Page] = None,
    ) -> List[Record]:
        matched = [
            record
            for record in self.records.values()
            if record_matches(record, filter, self.virtual_fields)
        ]
        matched = sort_records(matched, sort)
        if navigation is not None and navigation.size:
            matched = matched[navigation.offset:navigation.offset + navigation.size]
        logger.debug(f"InMemoryAdapter.list_records matched {len(matched)} records for {filter}")
        return [deepcopy(record) for record in matched]

    def fetch_by_id(self, id: Any) -> Optional[Record]:
        record = self._lookup(id)
        return deepcopy(record) if record is not None else None

    def count(self, filter: Dict[str, Any]) -> int:
        return sum(1 for record in self.records.values() if record_matches(record, filter, self.virtual_fields))

    def create(self, fields: Record) -> CreateResult:
        for name in self.required_fields:
            if not fields.get(name):
                return CreateResult(error=f"Field '{name}' is required.")

        numeric_ids = [key for key in self.records if isinstance(key, int)]
        new_id = max(numeric_ids, default=0) + 1
        record = deepcopy(dict(fields))
        record["ID"] = new_id
        self.records[new_id] = record
        logger.debug(f"InMemoryAdapter created record {new_id}")
        return CreateResult(id=new_id)

    def update(self, id: Any, fields: Record) -> bool:
        record = self._lookup(id)
        if record is None:
            return False
        record.update(deepcopy(dict(fields)))
        if "GROUP_ID" in fields:
            self.groups[record["ID"]] = list(fields["GROUP_ID"] or [])
        return True

    def fetch_related_group(self, id: Any) -> List[Any]:
        return list(self.groups.get(id, []))

    def fetch_related_hierarchy(self, id: Any, ids_only: bool = True) -> Union[List[Any], List[Record]]:
        record = self._lookup(id)
        section_ids = self._section_ids_of(record) if record is not None else []
        if ids_only:
            return list(section_ids)
        return [deepcopy(self.sections[sid]) for sid in section_ids if sid in self.sections]

    def update_properties(self, id: Any, values: Dict[str, Any], only_selected: bool = False) -> bool:
        record = self._lookup(id)
        if record is None:
            return False
        properties = dict(record.get("PROPERTIES") or {}) if only_selected else {}
        for code, value in values.items():
            prop = dict(properties.get(code) or {})
            prop.update({"VALUE": value, "~VALUE": value})
            prop.setdefault("DESCRIPTION", None)
            prop.setdefault("~DESCRIPTION", None)
            prop.setdefault("PROPERTY_VALUE_ID", None)
            properties[code] = prop
        record["PROPERTIES"] = properties
        return True
