"""
Environment-driven settings.

    FLEXCOLS_DATABASE_URL   SQLAlchemy URL (default: in-memory SQLite)
    FLEXCOLS_ECHO_SQL       "1"/"true" to log emitted SQL

A `.env` file in the working directory is honoured via python-dotenv.
"""

from __future__ import annotations

import os

from dotenv import load_dotenv
from pydantic import BaseModel

_TRUTHY = {"1", "true", "yes", "on"}


class FlexColsSettings(BaseModel):
    database_url: str = "sqlite://"
    echo_sql: bool = False


def load_settings() -> FlexColsSettings:
    load_dotenv()
    return FlexColsSettings(
        database_url=os.getenv("FLEXCOLS_DATABASE_URL") or "sqlite://",
        echo_sql=os.getenv("FLEXCOLS_ECHO_SQL", "").strip().lower() in _TRUTHY,
    )
