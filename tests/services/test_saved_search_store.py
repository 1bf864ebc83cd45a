"""Saved Search Store: verifies idempotent save, delete and per-user listing."""

import pytest

from vanity_custody.services.saved_search_store import SavedSearchStore

APP = "app-1"


@pytest.fixture
def searches(db_manager):
    return SavedSearchStore(db_manager)


async def test_save_and_list(searches):
    assert await searches.save(APP, "PETER", "wallet-1")
    assert await searches.save(APP, "ANNA", "wallet-1")
    assert sorted(await searches.terms_for(APP, "wallet-1")) == ["ANNA", "PETER"]


async def test_save_is_idempotent(searches):
    await searches.save(APP, "PETER", "wallet-1")
    assert await searches.save(APP, "PETER", "wallet-1")
    assert await searches.terms_for(APP, "wallet-1") == ["PETER"]


async def test_terms_scoped_per_user(searches):
    await searches.save(APP, "PETER", "wallet-1")
    await searches.save(APP, "ANNA", "wallet-2")
    assert await searches.terms_for(APP, "wallet-2") == ["ANNA"]


async def test_delete(searches):
    await searches.save(APP, "PETER", "wallet-1")
    assert await searches.delete(APP, "PETER", "wallet-1")
    assert await searches.terms_for(APP, "wallet-1") == []


async def test_delete_missing_returns_false(searches):
    assert await searches.delete(APP, "NOPE", "wallet-1") is False
