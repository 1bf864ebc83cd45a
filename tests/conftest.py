"""Root conftest: shared test configuration."""

import os

# Ensure tests don't accidentally reach real services
os.environ.setdefault("VANITY_BACKEND_SECRET", "test-shared-secret")
os.environ.setdefault("XRPL_NODE_URL", "wss://ledger.invalid:51233")
os.environ.setdefault(
    "DATABASE_URL",
    "sqlite+aiosqlite:///test.db",
)
