"""Config Cache: verifies single-load snapshot semantics, reset and failure degradation.

Invariants:
    - N lookups after start -> exactly one load
    - reset() -> next lookup reloads and sees new rows
    - Backing-store failure -> None / [] and no exception
"""

import asyncio

import pytest

from vanity_custody.models.origin_config import AllowedOrigin, ApplicationApiKey
from vanity_custody.services.config_cache import ConfigCache


async def _seed(db_manager, *rows):
    async with db_manager.session() as db:
        db.add_all(rows)
        await db.commit()


@pytest.fixture
async def seeded(db_manager):
    await _seed(
        db_manager,
        AllowedOrigin(
            application_id="app-1",
            origin="https://shop.example,https://alt.example",
            return_urls=[
                {"from": "/buy", "to_web": "https://shop.example/done", "to_app": "shop://done"},
                {"to_web": "missing-from"},
            ],
        ),
        AllowedOrigin(application_id="app-2", origin="https://other.example"),
        ApplicationApiKey(application_id="app-1", api_secret="secret-1"),
    )
    return db_manager


async def test_many_lookups_load_once(seeded):
    cache = ConfigCache(seeded)

    assert await cache.application_id_for_origin("https://alt.example") == "app-1"
    assert (await cache.by_application_id("app-2")).origin == "https://other.example"
    assert await cache.api_secret("app-1") == "secret-1"
    assert len(await cache.all_origins()) == 2
    assert await cache.allowed_origin_strings() == [
        "https://shop.example", "https://alt.example", "https://other.example",
    ]

    assert cache.load_count == 1


async def test_concurrent_cold_reads_share_one_load(seeded):
    cache = ConfigCache(seeded)
    results = await asyncio.gather(
        *(cache.application_id_for_origin("https://shop.example") for _ in range(10)),
    )
    assert set(results) == {"app-1"}
    assert cache.load_count == 1


async def test_return_url_and_malformed_rules_skipped(seeded):
    cache = ConfigCache(seeded)
    assert await cache.return_url(
        "https://shop.example", "app-1", "/buy", is_web=True,
    ) == "https://shop.example/done"
    assert await cache.return_url(
        "https://shop.example", "app-1", "/buy", is_web=False,
    ) == "shop://done"
    config = await cache.by_application_id("app-1")
    assert len(config.return_urls) == 1


async def test_lookup_misses_are_none(seeded):
    cache = ConfigCache(seeded)
    assert await cache.application_id_for_origin("https://unknown.example") is None
    assert await cache.by_application_id("missing") is None
    assert await cache.api_secret("app-2") is None


async def test_new_rows_invisible_until_reset(seeded):
    cache = ConfigCache(seeded)
    assert await cache.by_application_id("app-3") is None

    await _seed(seeded, AllowedOrigin(application_id="app-3", origin="https://new.example"))
    assert await cache.by_application_id("app-3") is None
    assert cache.load_count == 1

    cache.reset()
    assert (await cache.by_application_id("app-3")).origin == "https://new.example"
    assert cache.load_count == 2


async def test_empty_tables_give_empty_results(db_manager):
    cache = ConfigCache(db_manager)
    assert await cache.all_origins() == []
    assert await cache.allowed_origin_strings() == []


async def test_store_failure_degrades_to_empty(unreachable_db_manager):
    cache = ConfigCache(unreachable_db_manager)
    assert await cache.all_origins() == []
    assert await cache.allowed_origin_strings() == []
    assert await cache.application_id_for_origin("https://shop.example") is None
    assert await cache.return_url("https://shop.example", "app-1", "/buy", True) is None
    assert await cache.api_secret("app-1") is None
    assert cache.load_count == 0


async def test_reset_during_cold_load_forces_rescan(seeded):
    cache = ConfigCache(seeded)
    scan = cache._load
    first_scan_done = asyncio.Event()
    release = asyncio.Event()

    async def held_first_scan():
        snapshot = await scan()
        if cache.load_count == 1:
            first_scan_done.set()
            await release.wait()
        return snapshot

    cache._load = held_first_scan
    lookup = asyncio.create_task(cache.by_application_id("app-3"))
    await first_scan_done.wait()

    await _seed(seeded, AllowedOrigin(application_id="app-3", origin="https://new.example"))
    cache.reset()
    release.set()

    assert (await lookup).origin == "https://new.example"
    assert (await cache.by_application_id("app-3")).origin == "https://new.example"
    assert cache.load_count == 2
