"""
Single entry-point that wires SQLAlchemy into flexcols.
Call once during application start-up, before saving or loading records.
"""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine

from .core.record import Record
from .persistence.models import Base
from .persistence.store import RecordStore
from .settings import FlexColsSettings, load_settings

logger = logging.getLogger(__name__)


def init_flexcols(
    engine: Optional[Engine] = None, *, settings: Optional[FlexColsSettings] = None
) -> RecordStore:
    """
    Create the `records` table and inject a RecordStore into `Record`
    (and therefore every subclass). Without an engine, one is built from
    `settings` (or the environment).
    """
    if engine is None:
        settings = settings or load_settings()
        engine = create_engine(settings.database_url, echo=settings.echo_sql, pool_pre_ping=True)

    Base.metadata.create_all(engine)  # ← this line creates table
    store = RecordStore(engine)
    Record._store = store  # type: ignore[attr-defined]
    logger.debug("flexcols store bound to %s", engine.url)
    return store
