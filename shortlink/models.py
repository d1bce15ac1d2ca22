"""SQLAlchemy ORM models for the shortlink service.

This module defines the database schema using SQLAlchemy declarative models.
The unique index on short_code is what makes code uniqueness hold under
concurrent creators; nothing in the application layer checks it first.

Data Model Layout
=================
::
    links table
    ├─ id (VARCHAR(36) PRIMARY KEY, uuid4)
    ├─ target_url (VARCHAR(2048) NOT NULL)
    ├─ short_code (VARCHAR(32) UNIQUE INDEX)
    ├─ created_at (TIMESTAMPTZ NOT NULL, INDEXED)
    ├─ expires_at (TIMESTAMPTZ NULL, >= created_at)
    └─ clicks (INTEGER NOT NULL DEFAULT 0, >= 0)

How to Use
===========
**Step 1 — Import**::
    from shortlink.models import Link

**Step 2 — Build a record (the store inserts it)**::
    link = Link(short_code="AbC123", target_url="https://example.com", created_at=now)

**Step 3 — Check expiry at read time**::
    if link.is_expired(now):
        ...

Key Behaviours
===============
- short_code carries a unique index; duplicate inserts raise IntegrityError.
- created_at is indexed for the recent-links listing.
- clicks is only ever changed through an atomic ``clicks + 1`` UPDATE.
- Expiry is a read-time predicate; expired rows are never deleted here.
- Datetimes are always returned timezone-aware (UTC), including on SQLite.

Classes:
    UTCDateTime:  Column type storing UTC and returning aware datetimes.
    Link:  A shortened link with its click counter.
"""

import datetime
import uuid

from sqlalchemy import CheckConstraint, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.types import TypeDecorator

from shortlink.database import Base

__all__ = ["Link", "UTCDateTime", "new_link_id", "utcnow"]


def utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


def new_link_id() -> str:
    return str(uuid.uuid4())


class UTCDateTime(TypeDecorator):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=datetime.timezone.utc)
        return value.astimezone(datetime.timezone.utc)

    def process_result_value(self, value, dialect):
        if value is not None and value.tzinfo is None:
            # SQLite drops the offset; values were stored as UTC.
            return value.replace(tzinfo=datetime.timezone.utc)
        return value


class Link(Base):
    __tablename__ = "links"
    __table_args__ = (
        CheckConstraint("clicks >= 0", name="ck_links_clicks_non_negative"),
        CheckConstraint("expires_at IS NULL OR expires_at >= created_at", name="ck_links_expiry_after_creation"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_link_id)
    target_url: Mapped[str] = mapped_column(String(2048), nullable=False)
    short_code: Mapped[str] = mapped_column(String(32), unique=True, index=True, nullable=False)
    created_at: Mapped[datetime.datetime] = mapped_column(UTCDateTime, default=utcnow, index=True, nullable=False)
    expires_at: Mapped[datetime.datetime | None] = mapped_column(UTCDateTime, nullable=True)
    clicks: Mapped[int] = mapped_column(Integer, default=0, server_default="0", nullable=False)

    def is_expired(self, now: datetime.datetime | None = None) -> bool:
        if self.expires_at is None:
            return False
        return self.expires_at < (now or utcnow())

    def __repr__(self) -> str:
        return f"<Link(id={self.id}, short_code='{self.short_code}', clicks={self.clicks})>"
