"""Service Container: verifies wiring from settings with injected IO clients."""

import httpx
from pydantic import BaseModel

from vanity_custody.config import Settings
from vanity_custody.services.container import build_services

from tests.services.mock_ledger import FakeLedgerClient


class Draft(BaseModel):
    note: str


async def test_build_services_wires_shared_resources(db_manager):
    ledger = FakeLedgerClient()
    http = httpx.AsyncClient(
        transport=httpx.MockTransport(lambda r: httpx.Response(200, json=[])),
        base_url="http://inventory.test/",
    )
    services = build_services(
        Settings(ledger_max_attempts=3), db_manager,
        ledger_client=ledger, http_client=http,
    )

    assert services.ledger is ledger
    assert services.inventory.client is http
    assert await services.config_cache.all_origins() == []

    drafts = services.temp_info_store(Draft, prefix="drafts")
    assert await drafts.save("d1", Draft(note="hi"))
    assert (await drafts.get("d1")).note == "hi"

    await services.aclose()
    assert not http.is_closed
    await http.aclose()
