"""Service Container: assembles every core component from settings and shared resources.

Invariants:
    - One ConfigCache, one ledger client and one inventory HTTP client per container
    - aclose() disconnects the ledger and closes the inventory HTTP client only if
      the container created it
"""

import logging
from dataclasses import dataclass

import httpx

from vanity_custody.config import Settings
from vanity_custody.core.repository_protocols import LedgerClient
from vanity_custody.infrastructure.database import DatabaseSessionManager
from vanity_custody.infrastructure.inventory_client import InventoryClient
from vanity_custody.services.config_cache import ConfigCache
from vanity_custody.services.linkage_store import LinkageStore
from vanity_custody.services.ownership_transfer import OwnershipTransfer
from vanity_custody.services.purchased_vanity_store import PurchasedVanityStore
from vanity_custody.services.saved_search_store import SavedSearchStore
from vanity_custody.services.statistics_recorder import StatisticsRecorder
from vanity_custody.services.temp_info_store import DocT, TempInfoStore

logger = logging.getLogger(__name__)


@dataclass
class VanityServices:
    config_cache: ConfigCache
    linkage: LinkageStore
    purchases: PurchasedVanityStore
    saved_searches: SavedSearchStore
    statistics: StatisticsRecorder
    inventory: InventoryClient
    ownership: OwnershipTransfer
    ledger: LedgerClient
    db: DatabaseSessionManager

    def temp_info_store(
        self, model: type[DocT], prefix: str = "",
    ) -> TempInfoStore[DocT]:
        """Typed staging store for one flow; prefix namespaces its keys."""
        return TempInfoStore(self.db, model, prefix)

    async def aclose(self) -> None:
        await self.inventory.aclose()
        try:
            await self.ledger.disconnect()
        except Exception as e:
            logger.warning(f"Ledger disconnect failed: {e}")


def build_services(
    settings: Settings,
    db: DatabaseSessionManager,
    ledger_client: LedgerClient | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> VanityServices:
    if ledger_client is None:
        from vanity_custody.infrastructure.xrpl_client import XrplLedgerClient
        ledger_client = XrplLedgerClient(settings.xrpl_node_url)

    inventory = InventoryClient(
        base_url=settings.vanity_api_url,
        shared_secret=settings.vanity_backend_secret,
        timeout_seconds=settings.vanity_api_timeout_seconds,
        proxy_url=settings.proxy_url if settings.use_proxy else None,
        http_client=http_client,
    )
    return VanityServices(
        config_cache=ConfigCache(db),
        linkage=LinkageStore(db),
        purchases=PurchasedVanityStore(db),
        saved_searches=SavedSearchStore(db),
        statistics=StatisticsRecorder(db),
        inventory=inventory,
        ownership=OwnershipTransfer(
            ledger_client,
            max_attempts=settings.ledger_max_attempts,
            rate_issuer_account=settings.rate_issuer_account,
            rate_currency=settings.rate_currency,
            native_unit_decimals=settings.native_unit_decimals,
        ),
        ledger=ledger_client,
        db=db,
    )
