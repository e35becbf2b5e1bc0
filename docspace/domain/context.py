from __future__ import annotations

from pydantic import BaseModel, ConfigDict, field_validator


class RequestContext(BaseModel):
    """Who is calling: the tenant and the acting user."""

    model_config = ConfigDict(frozen=True)

    org_id: str
    user_id: str
    administrator: bool = False

    @field_validator("org_id", "user_id")
    @classmethod
    def not_blank(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("must not be empty")
        return v
