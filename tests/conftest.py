"""Pytest configuration and shared fixtures."""
from typing import Iterator, Optional

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool

from flexcols import FlexContents, Record, flex_column, init_flexcols
from flexcols.persistence.store import RecordStore

FIELD_NAMES = ("wants_email", "something", "something_else")


@pytest.fixture
def engine() -> Iterator[Engine]:
    """One in-memory SQLite database shared by every session of a test."""
    engine = create_engine(
        "sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool
    )
    yield engine
    engine.dispose()


@pytest.fixture
def store(engine: Engine) -> Iterator[RecordStore]:
    original = Record._store
    store = init_flexcols(engine)
    yield store
    Record._store = original


def make_user_class(**options) -> type:
    """User record with one flex column holding the three standard fields."""

    class User(Record):
        table_name = "flexcols_spec_users"

        name: Optional[str] = None
        user_attributes: Optional[str] = None

        @flex_column("user_attributes", **options)
        class UserAttributes(FlexContents):
            wants_email: Optional[str] = None
            something: Optional[str] = None
            something_else: Optional[str] = None

    return User


@pytest.fixture
def user_class():
    """Factory building a fresh User class with the given flex column options."""
    return make_user_class
