"""Data models for SharePoint folder listings."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

# SharePoint REST JSON field names
FIELD_TIME_CREATED = "TimeCreated"
FIELD_NAME = "Name"
FIELD_LENGTH = "Length"

# OData verbose response keys
ODATA_DATA = "d"
ODATA_RESULTS = "results"

_UNDATED = datetime.min.replace(tzinfo=timezone.utc)


def parse_time_created(item: dict[str, Any]) -> datetime | None:
    """Parse an item's TimeCreated value, or None if absent or malformed."""
    value = item.get(FIELD_TIME_CREATED)
    if not isinstance(value, str) or not value:
        return None
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def sort_newest_first(items: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Stable-sort items by TimeCreated, newest first.

    Items without a parseable TimeCreated are placed after all dated items,
    keeping their relative order.
    """
    return sorted(
        items,
        key=lambda item: parse_time_created(item) or _UNDATED,
        reverse=True,
    )


@dataclass
class ListingResult:
    """Subfolders and files of a SharePoint folder, each newest first.

    Items are the raw OData objects returned by the service.
    """

    folders: list[dict[str, Any]] = field(default_factory=list)
    files: list[dict[str, Any]] = field(default_factory=list)

    @classmethod
    def from_response(cls, payload: dict[str, Any]) -> "ListingResult":
        """Build a sorted listing from a $expand=Folders,Files response."""
        data = payload[ODATA_DATA]
        return cls(
            folders=sort_newest_first(list(data["Folders"][ODATA_RESULTS])),
            files=sort_newest_first(list(data["Files"][ODATA_RESULTS])),
        )
