"""Origin Matching: pure lookups over an origin-config snapshot.

Invariants:
    - Membership is exact and case-sensitive against the comma-split allow-list
    - The first matching config wins (snapshot order = table scan order)
    - No IO: callers pass the snapshot in
"""

from collections.abc import Sequence

from vanity_custody.schemas.origin import OriginConfig


def find_by_application_id(
    configs: Sequence[OriginConfig], application_id: str,
) -> OriginConfig | None:
    return next(
        (c for c in configs if c.application_id == application_id), None,
    )


def application_id_for_origin(
    configs: Sequence[OriginConfig], origin: str,
) -> str | None:
    """Owning application of an origin string, or None if no allow-list contains it."""
    for config in configs:
        if origin in config.allowed_origins():
            return config.application_id
    return None


def all_allowed_origins(configs: Sequence[OriginConfig]) -> list[str]:
    """Flattened allow-lists of every application, in snapshot order."""
    allowed: list[str] = []
    for config in configs:
        allowed.extend(config.allowed_origins())
    return allowed


def return_url_for(
    configs: Sequence[OriginConfig],
    origin: str,
    application_id: str,
    referer: str,
    is_web: bool,
) -> str | None:
    """to_web / to_app of the first rule whose `from` equals referer."""
    config = next(
        (
            c for c in configs
            if c.application_id == application_id
            and origin in c.allowed_origins()
        ),
        None,
    )
    if config is None:
        return None
    for rule in config.return_urls:
        if rule.from_ == referer:
            return rule.to_web if is_web else rule.to_app
    return None
