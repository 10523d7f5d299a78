"""Data models for linkblog."""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Mapping, Union


def parse_timestamp(value: Union[str, datetime]) -> datetime:
    """Normalize a stored timestamp to an aware UTC datetime."""
    if not isinstance(value, datetime):
        value = datetime.fromisoformat(value)
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass
class LinkRecord:
    """Represents a row of the links table."""

    hash: str
    description: str
    url: str
    created_at: datetime
    hits: int = 0

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "LinkRecord":
        """Create from a database row keyed by column name."""
        return cls(
            hash=row["hash"],
            description=row["desc"] or "",
            url=row["url"] or "",
            created_at=parse_timestamp(row["time"]),
            hits=row["hits"] or 0,
        )
