"""
Data types for Contiguity Base.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Union


# Any value the store can hold. Items, descriptor values and filter
# values are all built from these.
JSONValue = Union[None, bool, int, float, str, list["JSONValue"], dict[str, "JSONValue"]]

# A stored document. The "key" field addresses it within a Base.
Item = dict[str, JSONValue]

# Field the store reads as the item's expiry (Unix seconds, UTC)
EXPIRES_FIELD = "__expires"
KEY_FIELD = "key"


@dataclass(frozen=True)
class ExpirationSpec:
    """
    When a written item should expire.

    Attributes:
        expire_in: Seconds from now
        expire_at: Absolute time: a datetime, an ISO-8601 string or Unix seconds.
            Naive values are read as UTC. Wins over expire_in when both are set.
    """
    expire_in: Optional[Union[int, float]] = None
    expire_at: Optional[Union[datetime, str, int, float]] = None

    def __bool__(self) -> bool:
        return self.expire_in is not None or self.expire_at is not None


@dataclass(frozen=True)
class FetchResult:
    """One page of query results."""
    items: list[Item] = field(default_factory=list)
    last: Optional[str] = None  # pagination cursor, None on the final page
    count: int = 0

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self):
        return iter(self.items)
