"""Link store: durable storage and the authority on correctness.

This module owns every database round-trip for links. It is built once at
startup around a shared async session factory and opens a short-lived session
per operation, so one store instance is safe to share across concurrent
requests and background tasks.

Flow Diagram — insert()
=======================
::
    ┌─────────────┐
    │ insert(link)│
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ INSERT row  │
    │ (unique     │
    │ short_code) │
    └──────┬──────┘
   CONFLICT? │
    ┌─────┴─────┐
    │ NO         │ YES
    ▼            ▼
┌─────────┐  ┌──────────────┐
│ Return  │  │ Rollback and │
│ link    │  │ raise Unique │
│         │  │ Violation    │
└─────────┘  └──────────────┘

How to Use
===========
**Step 1 — Build once**::
    store = LinkStore(session_factory, timeout=settings.STORE_TIMEOUT_SECONDS)

**Step 2 — Insert and let the database arbitrate uniqueness**::
    try:
        link = await store.insert(Link(short_code=code, target_url=url))
    except UniqueViolation:
        ...  # pick another code

**Step 3 — Count a click atomically**::
    await store.increment_clicks(link.id)

Key Behaviours
===============
- There is no "exists?" query before insert; the unique index decides.
- increment_clicks is a single ``UPDATE ... SET clicks = clicks + 1``.
- Every call is bounded by the per-call timeout; timeouts and driver
  failures surface as StoreError.

Classes:
    LinkStore:  SQLAlchemy-backed link storage.
"""

import asyncio
import time
from collections.abc import Awaitable
from typing import TypeVar

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from shortlink.errors import StoreError, UniqueViolation
from shortlink.log import get_logger
from shortlink.models import Link

__all__ = ["LinkStore"]

T = TypeVar("T")

logger = get_logger("store")


class LinkStore:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession], timeout: float = 5.0) -> None:
        self._session_factory = session_factory
        self._timeout = timeout

    async def insert(self, link: Link) -> Link:
        """Insert a new link, raising UniqueViolation if its short code is taken."""
        assert link.short_code, "link.short_code must be set before insert"
        return await self._call("insert", self._insert(link))

    async def find_by_code(self, short_code: str) -> Link | None:
        return await self._call("find_by_code", self._find_by_code(short_code))

    async def increment_clicks(self, link_id: str) -> None:
        """Add one to the persisted counter in a single statement."""
        await self._call("increment_clicks", self._increment_clicks(link_id))

    async def list_recent(self, limit: int) -> list[Link]:
        assert limit > 0, f"limit must be positive, got {limit!r}"
        return await self._call("list_recent", self._list_recent(limit))

    async def ping(self) -> None:
        await self._call("ping", self._ping())

    async def _insert(self, link: Link) -> Link:
        async with self._session_factory() as session:
            session.add(link)
            try:
                await session.commit()
            except IntegrityError as exc:
                await session.rollback()
                raise UniqueViolation(link.short_code) from exc
        return link

    async def _find_by_code(self, short_code: str) -> Link | None:
        async with self._session_factory() as session:
            result = await session.execute(select(Link).where(Link.short_code == short_code))
            return result.scalar_one_or_none()

    async def _increment_clicks(self, link_id: str) -> None:
        async with self._session_factory() as session:
            result = await session.execute(
                update(Link).where(Link.id == link_id).values(clicks=Link.clicks + 1)
            )
            await session.commit()
        if result.rowcount == 0:
            logger.warning(f"Click increment matched no link: {link_id}")

    async def _list_recent(self, limit: int) -> list[Link]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(Link).order_by(Link.created_at.desc(), Link.id.desc()).limit(limit)
            )
            return list(result.scalars().all())

    async def _ping(self) -> None:
        async with self._session_factory() as session:
            await session.execute(select(1))

    async def _call(self, operation: str, awaitable: Awaitable[T]) -> T:
        start_time = time.perf_counter()
        try:
            return await asyncio.wait_for(awaitable, timeout=self._timeout)
        except UniqueViolation:
            raise
        except TimeoutError as exc:
            logger.error(f"Store {operation} timed out after {self._timeout}s")
            raise StoreError(f"{operation} timed out") from exc
        except (SQLAlchemyError, OSError) as exc:
            logger.error(f"Store {operation} failed: {exc}")
            raise StoreError(f"{operation} failed: {exc}") from exc
        finally:
            logger.debug(f"Store {operation} took {time.perf_counter() - start_time:.4f}s")
