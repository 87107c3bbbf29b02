"""
Value types returned by object storage listings.

These are the plain result types of the generic object-store contract.
They carry no vendor details; the Qiniu adapter maps its JSON responses
into them.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, NewType


EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

# A directory-like grouping produced when a delimiter collapses keys
StorageCommonPrefix = NewType("StorageCommonPrefix", str)


def put_time_to_datetime(ticks: int) -> datetime:
    """
    Convert a vendor put time to an aware UTC datetime.

    Qiniu reports modification times as 100-nanosecond ticks since the
    Unix epoch. Integer division keeps microsecond precision without
    going through a float.
    """
    return EPOCH + timedelta(microseconds=int(ticks) // 10)


@dataclass(frozen=True)
class StorageObject:
    """One listed object."""
    key: str
    modified_at: datetime


@dataclass
class ListPage:
    """
    One page of a marker-paginated listing.

    An empty marker means there are no more pages.
    """
    items: list[StorageObject] = field(default_factory=list)
    common_prefixes: list[StorageCommonPrefix] = field(default_factory=list)
    marker: str = ""

    @property
    def is_last(self) -> bool:
        return not self.marker

    @classmethod
    def from_response(cls, payload: dict[str, Any]) -> "ListPage":
        """Build a page from a decoded ``/list`` response body."""
        payload = payload or {}
        items = [
            StorageObject(
                key=item["key"],
                modified_at=put_time_to_datetime(item.get("putTime", 0)),
            )
            for item in payload.get("items") or []
        ]
        prefixes = [
            StorageCommonPrefix(p) for p in payload.get("commonPrefixes") or []
        ]
        return cls(
            items=items,
            common_prefixes=prefixes,
            marker=payload.get("marker") or "",
        )
