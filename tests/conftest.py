"""Pytest configuration and fixtures."""

from unittest.mock import Mock

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from fluentrecords.adapters.memory import InMemoryAdapter
from fluentrecords.context import Caller, ModelContext
from fluentrecords.database.schema import Base

from sample_models import (
    ELEMENT_HIERARCHY,
    ELEMENT_RECORDS,
    SECTION_RECORDS,
    USER_GROUPS,
    USER_RECORDS,
)


@pytest.fixture
def session():
    """Create a temporary in-memory database session for testing."""
    engine = create_engine("sqlite:///:memory:", echo=False)
    Base.metadata.create_all(engine)

    SessionLocal = sessionmaker(bind=engine)
    session = SessionLocal()

    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def element_store():
    """In-memory element records, sections and memberships."""
    sections = {record["ID"]: record for record in SECTION_RECORDS}
    return InMemoryAdapter(
        records=ELEMENT_RECORDS,
        hierarchy=ELEMENT_HIERARCHY,
        sections=sections,
        required_fields=("NAME",),
    )


@pytest.fixture
def section_store():
    return InMemoryAdapter(records=SECTION_RECORDS, required_fields=("NAME",))


@pytest.fixture
def user_store():
    return InMemoryAdapter(records=USER_RECORDS, groups=USER_GROUPS, required_fields=("LOGIN",))


@pytest.fixture
def make_context(element_store, section_store, user_store):
    """
    Build a ModelContext over the in-memory stores.

    Each adapter is wrapped in ``Mock(wraps=...)`` so tests can count calls
    while the real adapter still answers them.
    """

    def _make(caller=None, config=None):
        adapters = {
            "element": Mock(wraps=element_store),
            "section": Mock(wraps=section_store),
            "user": Mock(wraps=user_store),
        }
        return ModelContext(adapters=adapters, caller=caller or Caller(), config=config)

    return _make


@pytest.fixture
def context(make_context):
    """Anonymous-caller context without configuration."""
    return make_context()
