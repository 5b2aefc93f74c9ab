"""SqlKeyValueStore — KeyValueStore on any SQLAlchemy engine."""

from __future__ import annotations

from datetime import datetime, timezone

import structlog
from sqlalchemy import Engine
from sqlalchemy.orm import Session, sessionmaker

from livewager_core.db.base import Base
from livewager_core.db.engine import init_engine
from livewager_core.db.tables.kv import KeyValueRow

log = structlog.get_logger("sql_store")


class SqlKeyValueStore:
    """Upsert-by-key blob table (``kv_blobs``), created on construction."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine
        self._sessions: sessionmaker[Session] = sessionmaker(bind=engine)
        Base.metadata.create_all(engine, tables=[KeyValueRow.__table__])

    @classmethod
    def from_url(cls, url: str) -> "SqlKeyValueStore":
        return cls(init_engine(url))

    def load(self, key: str) -> bytes | None:
        with self._sessions() as session:
            row = session.get(KeyValueRow, key)
            return bytes(row.payload) if row is not None else None

    def save(self, key: str, payload: bytes) -> None:
        now = datetime.now(timezone.utc)
        with self._sessions() as session:
            row = session.get(KeyValueRow, key)
            if row is None:
                session.add(KeyValueRow(key=key, payload=payload, updated_at=now))
            else:
                row.payload = payload
                row.updated_at = now
            session.commit()
        log.debug("blob_saved", key=key, bytes=len(payload))
