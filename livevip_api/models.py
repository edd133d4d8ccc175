from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Mapping

from sqlalchemy import Column, DateTime, Integer, MetaData, String, Table, func

DEFAULT_CATEGORY = "General"

metadata = MetaData()

# sqlite_autoincrement keeps ids from being reused on SQLite; SERIAL never
# reuses them on PostgreSQL.
streams = Table(
    "streams",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("title", String(255), nullable=False),
    Column("streamer", String(255), nullable=False),
    Column("thumbnail", String(500), nullable=False, server_default=""),
    Column("viewers", Integer, nullable=False, server_default="0"),
    Column("category", String(100), nullable=False, server_default=DEFAULT_CATEGORY),
    Column("avatar", String(500), nullable=False, server_default=""),
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column("updated_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    sqlite_autoincrement=True,
)


def as_utc(value: datetime) -> datetime:
    """SQLite hands timestamps back naive; they are always written in UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass(frozen=True)
class StreamRecord:
    """One persisted live-stream metadata entry."""

    id: int
    title: str
    streamer: str
    thumbnail: str
    viewers: int
    category: str
    avatar: str
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_row(cls, row: Any) -> StreamRecord:
        data: Mapping[str, Any] = row._mapping
        return cls(
            id=int(data["id"]),
            title=data["title"],
            streamer=data["streamer"],
            thumbnail=data["thumbnail"] or "",
            viewers=int(data["viewers"] or 0),
            category=data["category"] or DEFAULT_CATEGORY,
            avatar=data["avatar"] or "",
            created_at=as_utc(data["created_at"]),
            updated_at=as_utc(data["updated_at"]),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "streamer": self.streamer,
            "thumbnail": self.thumbnail,
            "viewers": self.viewers,
            "category": self.category,
            "avatar": self.avatar,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }
