"""
Record store for the ``streams`` table.

The store owns no connection of its own: the SQLAlchemy engine is created
by the application factory and handed in, so tests can run the same code
against SQLite. Every operation runs in its own transaction.
"""
from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Iterator, Mapping

from sqlalchemy import delete, func, insert, select, update
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from .errors import NotFound, StorageUnavailable
from .models import StreamRecord, as_utc, metadata, streams
from .validation import NewStream, normalize, normalize_changes

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

_TICK = timedelta(microseconds=1)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@contextmanager
def _storage_errors(action: str) -> Iterator[None]:
    try:
        yield
    except SQLAlchemyError as e:
        raise StorageUnavailable(f"{action} failed: {e}") from e


class RecordStore:
    def __init__(self, engine: Engine, clock: Clock = utcnow):
        self._engine = engine
        self._clock = clock

    @property
    def engine(self) -> Engine:
        return self._engine

    def ensure_schema(self) -> None:
        """Create the streams table if it is missing. Never touches existing rows."""
        with _storage_errors("ensure schema"):
            metadata.create_all(self._engine, tables=[streams], checkfirst=True)
        logger.debug("Ensured streams table exists")

    def ping(self) -> Any:
        """Return the database server's current timestamp."""
        with _storage_errors("ping"):
            with self._engine.connect() as conn:
                return conn.execute(select(func.current_timestamp())).scalar_one()

    def list_all(self) -> list[StreamRecord]:
        """All records, newest first."""
        stmt = select(streams).order_by(streams.c.created_at.desc(), streams.c.id.desc())
        with _storage_errors("list streams"):
            with self._engine.connect() as conn:
                rows = conn.execute(stmt).all()
        return [StreamRecord.from_row(row) for row in rows]

    def insert(self, candidate: NewStream | Mapping[str, Any]) -> StreamRecord:
        """
        Persist a candidate. Raw mappings are normalized first, so a
        candidate without title or streamer raises ValidationError.
        """
        new = candidate if isinstance(candidate, NewStream) else normalize(candidate)
        now = self._clock()
        stmt = (
            insert(streams)
            .values(**new.model_dump(), created_at=now, updated_at=now)
            .returning(*streams.c)
        )
        with _storage_errors("insert stream"):
            with self._engine.begin() as conn:
                row = conn.execute(stmt).one()
        return StreamRecord.from_row(row)

    def update(self, stream_id: int, fields: Mapping[str, Any]) -> StreamRecord:
        """
        Apply a partial update. ``updated_at`` always moves strictly forward,
        even if the clock has not advanced since the last write.
        """
        changes = normalize_changes(fields)
        with _storage_errors(f"update stream {stream_id}"):
            with self._engine.begin() as conn:
                prior = conn.execute(
                    select(streams.c.updated_at)
                    .where(streams.c.id == stream_id)
                    .with_for_update()
                ).scalar_one_or_none()
                if prior is None:
                    raise NotFound(stream_id)

                stamp = max(self._clock(), as_utc(prior) + _TICK)
                row = conn.execute(
                    update(streams)
                    .where(streams.c.id == stream_id)
                    .values(**changes, updated_at=stamp)
                    .returning(*streams.c)
                ).one()
        return StreamRecord.from_row(row)

    def remove_by_id(self, stream_id: int) -> StreamRecord:
        stmt = delete(streams).where(streams.c.id == stream_id).returning(*streams.c)
        with _storage_errors(f"delete stream {stream_id}"):
            with self._engine.begin() as conn:
                row = conn.execute(stmt).one_or_none()
        if row is None:
            raise NotFound(stream_id)
        return StreamRecord.from_row(row)

    def clear(self) -> int:
        """Delete every record. Returns how many rows were removed."""
        with _storage_errors("clear streams"):
            with self._engine.begin() as conn:
                result = conn.execute(delete(streams))
        return result.rowcount
