"""Relational layout backing the SQL reference adapters.

Column attributes are lower-case; adapters expose them as upper-case record
keys (``name`` -> ``NAME``).
"""

from sqlalchemy import (
    Column,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class Element(Base):
    __tablename__ = "elements"

    id = Column(Integer, primary_key=True, autoincrement=True)
    iblock_id = Column(Integer, nullable=False, index=True)
    name = Column(String, nullable=False)
    code = Column(String, nullable=True, index=True)
    xml_id = Column(String, nullable=True)
    active = Column(String(1), nullable=False, default="Y")  # Y | N
    active_from = Column(String, nullable=True)  # ISO 8601 string
    active_to = Column(String, nullable=True)  # ISO 8601 string
    sort = Column(Integer, nullable=False, default=500)
    iblock_section_id = Column(Integer, nullable=True)  # main section
    preview_text = Column(Text, nullable=True)
    detail_text = Column(Text, nullable=True)
    date_create = Column(String, nullable=True)
    timestamp_x = Column(String, nullable=True)


class ElementProperty(Base):
    __tablename__ = "element_properties"

    id = Column(Integer, primary_key=True, autoincrement=True)
    element_id = Column(Integer, nullable=False)
    code = Column(String, nullable=False)
    value = Column(Text, nullable=True)
    description = Column(Text, nullable=True)

    __table_args__ = (
        Index('idx_element_properties_element_code', 'element_id', 'code'),
    )


class ElementSection(Base):
    """Membership of an element in a section (an element can sit in several)."""

    __tablename__ = "element_sections"

    element_id = Column(Integer, primary_key=True)
    section_id = Column(Integer, primary_key=True)


class Section(Base):
    __tablename__ = "sections"

    id = Column(Integer, primary_key=True, autoincrement=True)
    iblock_id = Column(Integer, nullable=False, index=True)
    iblock_section_id = Column(Integer, nullable=True, index=True)  # parent section
    name = Column(String, nullable=False)
    code = Column(String, nullable=True, index=True)
    xml_id = Column(String, nullable=True)
    active = Column(String(1), nullable=False, default="Y")
    sort = Column(Integer, nullable=False, default=500)
    depth_level = Column(Integer, nullable=False, default=1)
    description = Column(Text, nullable=True)
    date_create = Column(String, nullable=True)
    timestamp_x = Column(String, nullable=True)


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    login = Column(String, nullable=False, unique=True)
    email = Column(String, nullable=True, index=True)
    password = Column(String, nullable=True)
    name = Column(String, nullable=True)
    last_name = Column(String, nullable=True)
    second_name = Column(String, nullable=True)
    active = Column(String(1), nullable=False, default="Y")
    date_register = Column(String, nullable=True)
    last_login = Column(String, nullable=True)
    personal_phone = Column(String, nullable=True)
    work_company = Column(String, nullable=True)
    work_position = Column(String, nullable=True)
    xml_id = Column(String, nullable=True)
    lid = Column(String, nullable=True)
    timestamp_x = Column(String, nullable=True)
    extra_json = Column(Text, nullable=True)  # UF_* custom fields as a JSON object


class UserGroup(Base):
    __tablename__ = "user_groups"

    user_id = Column(Integer, primary_key=True)
    group_id = Column(Integer, primary_key=True)
