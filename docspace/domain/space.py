from __future__ import annotations

from datetime import datetime, timezone
from enum import IntEnum
from typing import Any, Mapping, Optional

from pydantic import BaseModel


class SpaceType(IntEnum):
    PUBLIC = 1
    PRIVATE = 2
    RESTRICTED = 3


class Lifecycle(IntEnum):
    DRAFT = 0
    LIVE = 1
    ARCHIVED = 2


# (field, column) pairs for the space table, in SELECT order.
SPACE_COLUMNS: tuple[tuple[str, str], ...] = (
    ("id", "id"),
    ("ref_id", "refid"),
    ("name", "name"),
    ("org_id", "orgid"),
    ("user_id", "userid"),
    ("type", "type"),
    ("lifecycle", "lifecycle"),
    ("likes", "likes"),
    ("created", "created"),
    ("revised", "revised"),
)

SELECT_COLUMNS = ", ".join(col for _, col in SPACE_COLUMNS)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_ts(value: datetime) -> str:
    """Fixed-width ISO-8601 UTC text, so lexical order is chronological."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def parse_ts(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    ts = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


class Space(BaseModel):
    """A named container of documents, scoped to one organization."""

    ref_id: str
    name: str = ""
    org_id: str
    user_id: str = ""
    type: SpaceType = SpaceType.PRIVATE
    lifecycle: Lifecycle = Lifecycle.LIVE
    likes: int = 0
    id: Optional[int] = None
    created: Optional[datetime] = None
    revised: Optional[datetime] = None

    @property
    def is_public(self) -> bool:
        return self.type == SpaceType.PUBLIC

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Space":
        return cls(
            id=row["id"],
            ref_id=row["refid"],
            name=row["name"],
            org_id=row["orgid"],
            user_id=row["userid"],
            type=SpaceType(row["type"]),
            lifecycle=Lifecycle(row["lifecycle"]),
            likes=row["likes"],
            created=parse_ts(row["created"]),
            revised=parse_ts(row["revised"]),
        )

    def to_params(self) -> dict[str, Any]:
        """Named statement parameters keyed by column name."""
        out: dict[str, Any] = {}
        for field, col in SPACE_COLUMNS:
            value = getattr(self, field)
            if isinstance(value, datetime):
                value = format_ts(value)
            elif isinstance(value, IntEnum):
                value = int(value)
            out[col] = value
        return out
