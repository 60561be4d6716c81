"""Outline marker stored in the document's metadata header."""

from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


MARKER_KEY = "toc"


def utc_timestamp(now: Optional[datetime] = None) -> str:
    """Format a moment as ISO-8601 UTC with milliseconds, e.g. 2025-01-15T09:30:00.000Z."""
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    now = now.astimezone(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class OutlineMarker(BaseModel):
    """Record that a document carries a managed outline.

    Serialized under the ``toc`` header key as
    ``{generated: true, lastUpdate: "<ISO-8601>"}``.
    """

    generated: bool = Field(default=True)
    last_update: str = Field(..., alias="lastUpdate")

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    @classmethod
    def stamp(cls, now: Optional[datetime] = None) -> "OutlineMarker":
        """Create a marker timestamped with the current (or given) time."""
        return cls(generated=True, last_update=utc_timestamp(now))

    def to_header_value(self) -> dict[str, Any]:
        """Header representation, key order fixed."""
        return self.model_dump(by_alias=True)


def has_marker(value: Any) -> bool:
    """Whether a parsed ``toc`` header value counts as a present marker."""
    return bool(value)
