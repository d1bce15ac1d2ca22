"""Link store tests against a real SQLite database."""

import asyncio
import datetime

import pytest

from shortlink.config import Settings
from shortlink.database import close_db, create_engine, create_session_factory
from shortlink.errors import StoreError, UniqueViolation
from shortlink.models import Link, new_link_id, utcnow
from shortlink.store import LinkStore


def _link(short_code: str, target_url: str = "https://example.com/") -> Link:
    now = utcnow()
    return Link(
        id=new_link_id(),
        target_url=target_url,
        short_code=short_code,
        created_at=now,
        expires_at=now + datetime.timedelta(days=7),
        clicks=0,
    )


@pytest.mark.asyncio
async def test_insert_and_find_by_code(store: LinkStore) -> None:
    link = await store.insert(_link("AbC123", "https://example.com/a/b/c"))

    found = await store.find_by_code("AbC123")

    assert found is not None
    assert found.id == link.id
    assert found.target_url == "https://example.com/a/b/c"
    assert found.clicks == 0
    assert found.created_at.tzinfo is not None
    assert found.expires_at - found.created_at == datetime.timedelta(days=7)


@pytest.mark.asyncio
async def test_find_by_code_missing(store: LinkStore) -> None:
    assert await store.find_by_code("zzzzzz") is None


@pytest.mark.asyncio
async def test_insert_duplicate_code_raises_unique_violation(store: LinkStore) -> None:
    await store.insert(_link("dup001", "https://example.com/first"))

    with pytest.raises(UniqueViolation) as exc_info:
        await store.insert(_link("dup001", "https://example.com/second"))

    assert exc_info.value.short_code == "dup001"
    found = await store.find_by_code("dup001")
    assert found.target_url == "https://example.com/first"


@pytest.mark.asyncio
async def test_concurrent_inserts_same_code_single_winner(store: LinkStore) -> None:
    results = await asyncio.gather(
        *(store.insert(_link("race01", f"https://example.com/{i}")) for i in range(10)),
        return_exceptions=True,
    )

    winners = [r for r in results if isinstance(r, Link)]
    losers = [r for r in results if isinstance(r, UniqueViolation)]
    assert len(winners) == 1
    assert len(losers) == 9
    found = await store.find_by_code("race01")
    assert found.id == winners[0].id


@pytest.mark.asyncio
async def test_increment_clicks(store: LinkStore) -> None:
    link = await store.insert(_link("clk001"))

    await store.increment_clicks(link.id)
    await store.increment_clicks(link.id)

    assert (await store.find_by_code("clk001")).clicks == 2


@pytest.mark.asyncio
async def test_concurrent_increments_are_not_lost(store: LinkStore) -> None:
    link = await store.insert(_link("clk002"))

    await asyncio.gather(*(store.increment_clicks(link.id) for _ in range(25)))

    assert (await store.find_by_code("clk002")).clicks == 25


@pytest.mark.asyncio
async def test_increment_unknown_link_is_noop(store: LinkStore) -> None:
    await store.increment_clicks(new_link_id())


@pytest.mark.asyncio
async def test_list_recent_newest_first_with_limit(store: LinkStore) -> None:
    base = utcnow() - datetime.timedelta(hours=1)
    for i in range(5):
        link = _link(f"rec00{i}")
        link.created_at = base + datetime.timedelta(minutes=i)
        link.expires_at = link.created_at + datetime.timedelta(days=7)
        await store.insert(link)

    recent = await store.list_recent(3)

    assert [link.short_code for link in recent] == ["rec004", "rec003", "rec002"]


@pytest.mark.asyncio
async def test_list_recent_empty(store: LinkStore) -> None:
    assert await store.list_recent(10) == []


@pytest.mark.asyncio
async def test_timeout_raises_store_error(session_factory, monkeypatch) -> None:
    slow_store = LinkStore(session_factory, timeout=0.05)

    async def slow_find(short_code: str) -> None:
        await asyncio.sleep(1)

    monkeypatch.setattr(slow_store, "_find_by_code", slow_find)

    with pytest.raises(StoreError, match="timed out"):
        await slow_store.find_by_code("AbC123")


@pytest.mark.asyncio
async def test_database_failure_raises_store_error(tmp_path) -> None:
    settings = Settings(DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'missing' / 'nope.db'}")
    engine = create_engine(settings)
    broken = LinkStore(create_session_factory(engine), timeout=5.0)
    try:
        with pytest.raises(StoreError):
            await broken.find_by_code("AbC123")
        with pytest.raises(StoreError):
            await broken.insert(_link("AbC123"))
    finally:
        await close_db(engine)


@pytest.mark.asyncio
async def test_ping(store: LinkStore) -> None:
    await store.ping()
