"""Inventory Client: authenticated httpx client for the external vanity-address inventory.

Invariants:
    - Every request carries x-hash = hex SHA-256(verb_tag + subject + shared secret)
    - verb_tag is "search" or "purge": a captured hash is only valid for its own operation
    - Non-2xx responses and transport failures raise InventoryServiceError
    - Single attempt per call; retry policy belongs to the caller
    - The shared secret is never logged

Design Decisions:
    - httpx.AsyncClient injected or owned: tests pass an httpx.MockTransport client
    - Outbound proxy only when use_proxy is set
"""

import hashlib
import logging
from urllib.parse import quote

import httpx
from pydantic import BaseModel, ConfigDict

from vanity_custody.core.errors import InventoryServiceError

logger = logging.getLogger(__name__)

SEARCH_TAG = "search"
PURGE_TAG = "purge"


class VanityCandidate(BaseModel):
    """One available vanity address offered by the inventory."""
    model_config = ConfigDict(extra="allow")

    account: str


def request_hash(verb_tag: str, subject: str, secret: str) -> str:
    return hashlib.sha256(
        f"{verb_tag}{subject}{secret}".encode("utf-8"),
    ).hexdigest()


class InventoryClient:
    """search / purge against the vanity inventory HTTP service."""

    def __init__(
        self,
        base_url: str,
        shared_secret: str,
        timeout_seconds: float = 30.0,
        proxy_url: str | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        self._secret = shared_secret
        self._owns_client = http_client is None
        self.client = http_client or httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout_seconds,
            proxy=proxy_url,
        )

    async def search(self, term: str) -> list[VanityCandidate]:
        logger.info(f"Searching vanity inventory for '{term}'")
        body = await self._request(
            "GET", f"search/{quote(term, safe='')}", SEARCH_TAG, term,
        )
        return _parse_candidates(body)

    async def purge(self, account: str) -> dict:
        """Remove a sold address from the inventory; returns the service's JSON body."""
        logger.info(
            "Purging vanity address from inventory", extra={"account": account},
        )
        body = await self._request(
            "DELETE", f"purge/{quote(account, safe='')}", PURGE_TAG, account,
        )
        return body if isinstance(body, dict) else {"result": body}

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()

    async def _request(
        self, method: str, path: str, verb_tag: str, subject: str,
    ):
        headers = {"x-hash": request_hash(verb_tag, subject, self._secret)}
        try:
            response = await self.client.request(method, path, headers=headers)
        except httpx.HTTPError as e:
            logger.error(f"Inventory {verb_tag} transport error: {e}")
            raise InventoryServiceError(verb_tag, None, str(e))

        if not response.is_success:
            logger.error(
                f"Inventory {verb_tag} returned {response.status_code}",
                extra={"error_code": "INVENTORY_SERVICE_ERROR"},
            )
            raise InventoryServiceError(verb_tag, response.status_code)

        try:
            return response.json()
        except ValueError:
            raise InventoryServiceError(
                verb_tag, response.status_code, "response is not JSON",
            )


def _parse_candidates(body) -> list[VanityCandidate]:
    """Accept a bare list or {"result": [...]}; items are address strings or objects."""
    items = body.get("result", []) if isinstance(body, dict) else body
    if not isinstance(items, list):
        return []
    candidates: list[VanityCandidate] = []
    for item in items:
        if isinstance(item, str):
            candidates.append(VanityCandidate(account=item))
        elif isinstance(item, dict) and item.get("account"):
            candidates.append(VanityCandidate.model_validate(item))
    return candidates
