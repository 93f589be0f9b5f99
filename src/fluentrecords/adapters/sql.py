"""SQLAlchemy-backed adapters over the tables in ``fluentrecords.database.schema``."""

import json
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Type, Union

from sqlalchemy import and_, not_, or_
from sqlalchemy import select as sql_select
from sqlalchemy.orm import Query, Session

from fluentrecords.adapters.base import CreateResult, DataAdapter, Page, Record
from fluentrecords.adapters.filtering import parse_filter_key
from fluentrecords.config.loader import ModelsConfig
from fluentrecords.context import Caller, ModelContext
from fluentrecords.database.schema import (
    Base,
    Element,
    ElementProperty,
    ElementSection,
    Section,
    User,
    UserGroup,
)
from fluentrecords.utils.logging import get_logger
from fluentrecords.utils.time import to_utc_z, utc_now_z

logger = get_logger(__name__)

PROPERTY_WILDCARD = "PROPERTY_*"
USER_FIELD_WILDCARD = "UF_*"


def _as_list(value: Any) -> List[Any]:
    if isinstance(value, (list, tuple, set)):
        return list(value)
    return [value]


def build_condition(operator: str, column: Any, value: Any):
    """Translate one parsed filter condition into a SQL expression."""
    if operator in ("eq", "ne"):
        values = _as_list(value)
        if len(values) == 1:
            condition = column.is_(None) if values[0] is None else column == values[0]
        else:
            condition = column.in_(values)
        return condition if operator == "eq" else not_(condition)
    if operator in ("like", "not_like"):
        condition = column.ilike(f"%{str(value).strip('%')}%")
        return condition if operator == "like" else not_(condition)
    if operator == "gt":
        return column > value
    if operator == "lt":
        return column < value
    if operator == "ge":
        return column >= value
    if operator == "le":
        return column <= value
    raise ValueError(f"Unsupported filter operator: {operator}")


def _membership_condition(operator: str, id_column: Any, subquery: Any):
    condition = id_column.in_(subquery)
    return not_(condition) if operator == "ne" else condition


class SqlTableAdapter(DataAdapter):
    """
    Generic adapter for one table.

    Subclasses set ``row_class`` and may register ``filter_hooks`` for keys
    that are not plain columns (relations, exact-match variants).
    """

    row_class: Type[Base] = None
    required_fields: tuple = ()
    hidden_fields: tuple = ()
    entity: str = ""

    def __init__(self, session: Session, autocommit: bool = False):
        self.session = session
        self.autocommit = autocommit
        self.columns: Dict[str, str] = {
            column.name.upper(): column.name for column in self.row_class.__table__.columns
        }
        self.filter_hooks: Dict[str, Callable[[str, Any], Any]] = {}

    # -- record conversion ------------------------------------------------

    def _record(self, row: Base, select: Optional[List[str]] = None) -> Record:
        select = select or []
        record: Record = {}
        for key, attr in self.columns.items():
            if key in self.hidden_fields and key not in select:
                continue
            if select and key not in select:
                continue
            record[key] = getattr(row, attr)
        self._extend_record(row, record, select)
        return record

    def _extend_record(self, row: Base, record: Record, select: List[str]) -> None:
        """Hook for nested/wildcard data (properties, custom user fields)."""

    def _assign_columns(self, row: Base, fields: Record) -> None:
        for key, value in fields.items():
            if key == "ID" or key not in self.columns:
                continue
            if isinstance(value, datetime):
                value = to_utc_z(value)
            setattr(row, self.columns[key], value)

    def _finish(self) -> None:
        if self.autocommit:
            self.session.commit()
        else:
            self.session.flush()

    # -- query building ---------------------------------------------------

    def _apply_filter(self, query: Query, filter: Dict[str, Any]) -> Query:
        conditions = []
        for key, value in filter.items():
            operator, field = parse_filter_key(key)
            if field in self.filter_hooks:
                conditions.append(self.filter_hooks[field](operator, value))
            elif field in self.columns:
                column = getattr(self.row_class, self.columns[field])
                conditions.append(build_condition(operator, column, value))
            else:
                conditions.append(self._unknown_filter(operator, field, value))
        if conditions:
            query = query.filter(and_(*conditions))
        return query

    def _unknown_filter(self, operator: str, field: str, value: Any):
        raise ValueError(f"Unknown filter field for {self.entity}: {field}")

    def _apply_sort(self, query: Query, sort: Dict[str, str]) -> Query:
        for field, direction in sort.items():
            key = field.upper()
            if key not in self.columns:
                raise ValueError(f"Unknown sort field for {self.entity}: {field}")
            column = getattr(self.row_class, self.columns[key])
            query = query.order_by(column.desc() if str(direction).upper() == "DESC" else column.asc())
        return query

    # -- contract ----------------------------------------------------------

    def list_records(
        self,
        filter: Dict[str, Any],
        sort: Dict[str, str],
        select: List[str],
        navigation: Optional[Page] = None,
    ) -> List[Record]:
        query = self._apply_filter(self.session.query(self.row_class), filter)
        query = self._apply_sort(query, sort)
        if navigation is not None and navigation.size:
            query = query.offset(navigation.offset).limit(navigation.size)
        rows = query.all()
        logger.debug(f"{type(self).__name__}.list_records returned {len(rows)} rows for {filter}")
        return [self._record(row, select) for row in rows]

    def fetch_by_id(self, id: Any) -> Optional[Record]:
        row = self.session.get(self.row_class, id)
        return self._record(row) if row is not None else None

    def count(self, filter: Dict[str, Any]) -> int:
        return self._apply_filter(self.session.query(self.row_class), filter).count()

    def create(self, fields: Record) -> CreateResult:
        for name in self.required_fields:
            if not fields.get(name):
                return CreateResult(error=f"Field '{name}' is required.")
        error = self._validate_create(fields)
        if error:
            return CreateResult(error=error)

        row = self.row_class()
        self._assign_columns(row, fields)
        self._before_insert(row)
        self.session.add(row)
        self.session.flush()
        self._after_write(row, fields)
        self._finish()
        logger.debug(f"Created {self.entity} {row.id}")
        return CreateResult(id=row.id)

    def update(self, id: Any, fields: Record) -> bool:
        row = self.session.get(self.row_class, id)
        if row is None:
            logger.debug(f"Update skipped, {self.entity} {id} not found")
            return False
        self._assign_columns(row, fields)
        if "TIMESTAMP_X" in self.columns:
            row.timestamp_x = utc_now_z()
        self._after_write(row, fields)
        self._finish()
        return True

    def _validate_create(self, fields: Record) -> Optional[str]:
        return None

    def _before_insert(self, row: Base) -> None:
        now = utc_now_z()
        for attr in ("date_create", "timestamp_x"):
            if hasattr(row, attr) and getattr(row, attr) is None:
                setattr(row, attr, now)

    def _after_write(self, row: Base, fields: Record) -> None:
        """Hook for writes that touch side tables."""


class SqlSectionAdapter(SqlTableAdapter):
    row_class = Section
    required_fields = ("NAME", "IBLOCK_ID")
    entity = "section"

    def __init__(self, session: Session, autocommit: bool = False):
        super().__init__(session, autocommit)
        self.filter_hooks["SECTION_ID"] = lambda op, value: build_condition(op, Section.iblock_section_id, value)

    def fetch_related_hierarchy(self, id: Any, ids_only: bool = True) -> Union[List[Any], List[Record]]:
        row = self.session.get(Section, id)
        if row is None or row.iblock_section_id is None:
            return []
        if ids_only:
            return [row.iblock_section_id]
        parent = self.session.get(Section, row.iblock_section_id)
        return [self._record(parent)] if parent is not None else []


class SqlElementAdapter(SqlTableAdapter):
    row_class = Element
    required_fields = ("NAME", "IBLOCK_ID")
    entity = "element"

    def __init__(self, session: Session, autocommit: bool = False):
        super().__init__(session, autocommit)
        self.filter_hooks["SECTION_ID"] = self._section_id_condition
        self.filter_hooks["SECTION_CODE"] = self._section_code_condition

    def _section_id_condition(self, operator: str, value: Any):
        members = sql_select(ElementSection.element_id).where(
            ElementSection.section_id.in_(_as_list(value))
        )
        condition = or_(Element.id.in_(members), Element.iblock_section_id.in_(_as_list(value)))
        return not_(condition) if operator == "ne" else condition

    def _section_code_condition(self, operator: str, value: Any):
        section_ids = [
            section_id
            for (section_id,) in self.session.query(Section.id).filter(Section.code.in_(_as_list(value)))
        ]
        return self._section_id_condition(operator, section_ids)

    def _unknown_filter(self, operator: str, field: str, value: Any):
        if field.startswith("PROPERTY_"):
            code = field[len("PROPERTY_"):]
            if code.endswith("_VALUE"):
                code = code[: -len("_VALUE")]
            inner_operator = "eq" if operator == "ne" else operator
            matching = sql_select(ElementProperty.element_id).where(
                ElementProperty.code == code,
                build_condition(inner_operator, ElementProperty.value, value),
            )
            return _membership_condition(operator, Element.id, matching)
        return super()._unknown_filter(operator, field, value)

    def _properties_of(self, element_id: Any) -> Dict[str, Dict[str, Any]]:
        rows = (
            self.session.query(ElementProperty)
            .filter(ElementProperty.element_id == element_id)
            .order_by(ElementProperty.id)
            .all()
        )
        grouped: Dict[str, List[ElementProperty]] = {}
        for prop in rows:
            grouped.setdefault(prop.code, []).append(prop)

        properties: Dict[str, Dict[str, Any]] = {}
        for code, values in grouped.items():
            if len(values) == 1:
                prop = values[0]
                value, description, value_id = prop.value, prop.description, prop.id
            else:
                value = [prop.value for prop in values]
                description = [prop.description for prop in values]
                value_id = [prop.id for prop in values]
            properties[code] = {
                "VALUE": value,
                "~VALUE": value,
                "DESCRIPTION": description,
                "~DESCRIPTION": description,
                "PROPERTY_VALUE_ID": value_id,
            }
        return properties

    def _extend_record(self, row: Element, record: Record, select: List[str]) -> None:
        if not select or PROPERTY_WILDCARD in select:
            record["PROPERTIES"] = self._properties_of(row.id)

    def _after_write(self, row: Element, fields: Record) -> None:
        if "PROPERTY_VALUES" in fields:
            self._write_properties(row.id, fields["PROPERTY_VALUES"] or {}, only_selected=False)
        if "IBLOCK_SECTION" in fields:
            self.session.query(ElementSection).filter(ElementSection.element_id == row.id).delete()
            for section_id in _as_list(fields["IBLOCK_SECTION"] or []):
                self.session.add(ElementSection(element_id=row.id, section_id=section_id))

    def _write_properties(self, element_id: Any, values: Dict[str, Any], only_selected: bool) -> None:
        query = self.session.query(ElementProperty).filter(ElementProperty.element_id == element_id)
        if only_selected:
            query = query.filter(ElementProperty.code.in_(list(values)))
        query.delete(synchronize_session=False)
        for code, value in values.items():
            for item in _as_list(value):
                if item is None:
                    continue
                self.session.add(ElementProperty(element_id=element_id, code=code, value=item))

    def update_properties(self, id: Any, values: Dict[str, Any], only_selected: bool = False) -> bool:
        if self.session.get(Element, id) is None:
            return False
        self._write_properties(id, values, only_selected)
        self._finish()
        return True

    def fetch_related_hierarchy(self, id: Any, ids_only: bool = True) -> Union[List[Any], List[Record]]:
        section_ids = [
            section_id
            for (section_id,) in self.session.query(ElementSection.section_id)
            .filter(ElementSection.element_id == id)
            .order_by(ElementSection.section_id)
        ]
        if not section_ids:
            row = self.session.get(Element, id)
            if row is not None and row.iblock_section_id:
                section_ids = [row.iblock_section_id]
        if ids_only:
            return section_ids
        sections = SqlSectionAdapter(self.session)
        rows = self.session.query(Section).filter(Section.id.in_(section_ids)).order_by(Section.id).all()
        return [sections._record(row) for row in rows]


class SqlUserAdapter(SqlTableAdapter):
    row_class = User
    required_fields = ("LOGIN",)
    hidden_fields = ("PASSWORD", "EXTRA_JSON")
    entity = "user"

    def __init__(self, session: Session, autocommit: bool = False):
        super().__init__(session, autocommit)
        self.filter_hooks["GROUPS_ID"] = self._groups_condition
        self.filter_hooks["LOGIN_EQUAL_EXACT"] = lambda op, value: build_condition(op, User.login, value)

    def _groups_condition(self, operator: str, value: Any):
        members = sql_select(UserGroup.user_id).where(UserGroup.group_id.in_(_as_list(value)))
        return _membership_condition(operator, User.id, members)

    @staticmethod
    def _extra(row: User) -> Dict[str, Any]:
        if not row.extra_json:
            return {}
        try:
            return json.loads(row.extra_json)
        except (json.JSONDecodeError, TypeError):
            return {}

    def _extend_record(self, row: User, record: Record, select: List[str]) -> None:
        extra = self._extra(row)
        for key, value in extra.items():
            if not select or USER_FIELD_WILDCARD in select or key in select:
                record[key] = value

    def _validate_create(self, fields: Record) -> Optional[str]:
        exists = self.session.query(User.id).filter(User.login == fields["LOGIN"]).first()
        if exists:
            return f"Login '{fields['LOGIN']}' is already taken."
        return None

    def _before_insert(self, row: User) -> None:
        now = utc_now_z()
        if row.date_register is None:
            row.date_register = now
        if row.timestamp_x is None:
            row.timestamp_x = now

    def _after_write(self, row: User, fields: Record) -> None:
        custom = {key: value for key, value in fields.items() if key.startswith("UF_")}
        if custom:
            extra = self._extra(row)
            extra.update(custom)
            row.extra_json = json.dumps(extra)
        if "GROUP_ID" in fields:
            self.session.query(UserGroup).filter(UserGroup.user_id == row.id).delete()
            for group_id in _as_list(fields["GROUP_ID"] or []):
                self.session.add(UserGroup(user_id=row.id, group_id=group_id))

    def fetch_related_group(self, id: Any) -> List[Any]:
        return [
            group_id
            for (group_id,) in self.session.query(UserGroup.group_id)
            .filter(UserGroup.user_id == id)
            .order_by(UserGroup.group_id)
        ]


def context_for_session(
    session: Session,
    caller: Optional[Caller] = None,
    config: Optional[ModelsConfig] = None,
    autocommit: bool = False,
) -> ModelContext:
    """Build a ModelContext whose adapters all share ``session``."""
    return ModelContext(
        adapters={
            "element": SqlElementAdapter(session, autocommit),
            "section": SqlSectionAdapter(session, autocommit),
            "user": SqlUserAdapter(session, autocommit),
        },
        caller=caller or Caller(),
        config=config,
    )
