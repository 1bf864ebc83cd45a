"""ORM Models: SQLAlchemy declarative models for all persisted entities.

Invariants:
    - All models inherit from Base (db/base.py)
    - Every upsert target has a unique constraint matching its ON CONFLICT columns

Design Decisions:
    - One file per entity for locality
    - All models imported here so Base.metadata is complete before create_all / autogenerate
"""

from vanity_custody.models.origin_config import AllowedOrigin, ApplicationApiKey  # noqa: F401
from vanity_custody.models.user_registration import UserRegistration  # noqa: F401
from vanity_custody.models.linkage import LinkageRecord, LinkagePayload  # noqa: F401
from vanity_custody.models.purchased_vanity import PurchasedVanityAddress  # noqa: F401
from vanity_custody.models.statistics import StatisticCounter  # noqa: F401
from vanity_custody.models.saved_search_term import SavedSearchTerm  # noqa: F401
from vanity_custody.models.temp_info import TempInfo  # noqa: F401
