"""
Thin data-access layer around the `records` table.
Flex columns travel inside `data` as the raw strings the record holds.
"""

from __future__ import annotations

import logging
import uuid
from typing import TYPE_CHECKING, Any, Dict, Iterator

from sqlalchemy import insert, select
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from .models import RecordRow

if TYPE_CHECKING:
    from ..core.record import Record

logger = logging.getLogger(__name__)


class RecordStore:
    """Thin data‑access layer around the `records` table."""

    def __init__(self, engine: Engine):
        self.engine = engine

    def _new_session(self) -> Session:  # separate to keep pylint happy
        return Session(bind=self.engine)

    # ---- writes ---------------------------------------------------------
    def append(self, rec: "Record") -> None:
        """Insert an immutable version row for `rec` in its own transaction."""
        row_vals = {
            "version_id": rec.version_id,
            "id": rec.id,
            "version": rec.version,
            "table_name": rec.table_name,
            "data": rec.model_dump(mode="json"),
        }
        with self._new_session() as s:
            s.execute(insert(RecordRow).values(**row_vals))
            s.commit()
        logger.debug(
            "appended %s %s v%d", rec.table_name, rec.id, rec.version
        )

    # ---- reads ----------------------------------------------------------
    def stream(self, rec_id: uuid.UUID, table_name: str) -> Iterator[RecordRow]:
        """Yield rows *oldest→newest*."""
        with self._new_session() as s:
            q = (
                select(RecordRow)
                .where(RecordRow.id == rec_id, RecordRow.table_name == table_name)
                .order_by(RecordRow.version)
            )
            yield from (row for (row,) in s.execute(q))

    def latest(self, rec_id: uuid.UUID, table_name: str) -> Dict[str, Any]:
        """Return latest ``data`` snapshot for `rec_id` or empty dict."""
        with self._new_session() as s:
            q = (
                select(RecordRow.data)
                .where(RecordRow.id == rec_id, RecordRow.table_name == table_name)
                .order_by(RecordRow.version.desc())
                .limit(1)
            )
            row = s.execute(q).first()
            return row.data if row else {}
