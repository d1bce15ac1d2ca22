"""Seed an already-expired demo link so the 410 path can be tried by hand.

Usage::
    python -m shortlink.seed
    curl -i http://localhost:8080/exp123   # → 410
"""

import asyncio
import datetime

from shortlink.config import Settings, get_settings
from shortlink.database import close_db, create_engine, create_session_factory, init_db
from shortlink.errors import UniqueViolation
from shortlink.log import setup_logging
from shortlink.models import Link, new_link_id, utcnow
from shortlink.store import LinkStore

__all__ = ["EXPIRED_DEMO_CODE", "seed_expired_link", "main"]

EXPIRED_DEMO_CODE = "exp123"
EXPIRED_DEMO_URL = "https://example.com/expired-test"


async def seed_expired_link(store: LinkStore, short_code: str = EXPIRED_DEMO_CODE) -> Link | None:
    """Insert a link that expired a day ago; None if the code already exists."""
    now = utcnow()
    link = Link(
        id=new_link_id(),
        target_url=EXPIRED_DEMO_URL,
        short_code=short_code,
        created_at=now - datetime.timedelta(days=2),
        expires_at=now - datetime.timedelta(days=1),
        clicks=0,
    )
    try:
        return await store.insert(link)
    except UniqueViolation:
        return None


async def main(settings: Settings | None = None) -> None:
    settings = settings or get_settings()
    logger = setup_logging(settings)
    engine = create_engine(settings)
    try:
        await init_db(engine)
        store = LinkStore(create_session_factory(engine), timeout=settings.STORE_TIMEOUT_SECONDS)
        link = await seed_expired_link(store)
        if link is None:
            logger.info(f"Expired demo link already present: {EXPIRED_DEMO_CODE}")
        else:
            logger.info(f"Successfully created an expired link with code: {link.short_code}")
    finally:
        await close_db(engine)


if __name__ == "__main__":
    asyncio.run(main())
