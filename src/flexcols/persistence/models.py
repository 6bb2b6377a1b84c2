"""
Single-table schema: every saved version of every Record lives here.
"""

import uuid
import datetime as dt

from sqlalchemy import JSON, Column, DateTime, Integer, String, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def now_utc() -> dt.datetime:  # compact timezone‑aware timestamp
    return dt.datetime.now(tz=dt.timezone.utc)


class RecordRow(Base):
    """Single table that stores **all** record versions.

    `table_name` is the logical table of the record class, so two record
    classes with the same `table_name` read and write the same rows.
    """

    __tablename__ = "records"

    version_id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    version = Column(Integer, nullable=False)
    table_name = Column(String, nullable=False, index=True)
    created_ts = Column(DateTime(timezone=True), default=now_utc, nullable=False)
    data = Column(JSON().with_variant(JSONB, "postgresql"), nullable=False)
