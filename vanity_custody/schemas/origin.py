"""Origin Schemas: immutable per-application origin configuration as seen by the core.

Invariants:
    - OriginConfig.origin is the raw comma-joined allow-list as stored
    - ReturnUrlRule.from_ is exposed under the alias "from" (stored JSON shape)
    - Models are frozen: the ConfigCache snapshot is shared across requests
"""

from pydantic import BaseModel, ConfigDict, Field


class ReturnUrlRule(BaseModel):
    """Where to send the user after a flow, per referer and channel."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    from_: str = Field(alias="from")
    to_web: str | None = None
    to_app: str | None = None


class OriginConfig(BaseModel):
    """One client application's allowed origins and return-URL rules."""
    model_config = ConfigDict(frozen=True)

    application_id: str
    origin: str = ""
    return_urls: tuple[ReturnUrlRule, ...] = ()

    def allowed_origins(self) -> list[str]:
        """Split the comma-joined allow-list, dropping blank entries."""
        return [o.strip() for o in self.origin.split(",") if o.strip()]
