"""
Compile update requests into the store's bucketed PATCH format.

An update request maps dot-delimited field paths to either a plain value
(replace the field) or a Descriptor from contiguity_base.util. The store
expects the mutations grouped by kind::

    {"updates": {"set": {...}, "increment": {...}, "append": {...},
                 "prepend": {...}, "delete": [...]}}

Trimmed fields are removed from the item, so they join the delete list.
"""

import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from .types import EXPIRES_FIELD, ExpirationSpec, JSONValue
from .util import Descriptor, Op


def parse_expire_at(value) -> float:
    """Convert an expire_at value to Unix seconds.

    Accepts a datetime, an ISO-8601 string ('Z' suffix allowed) or a
    number of Unix seconds. Naive datetimes and strings are read as UTC.
    """
    if isinstance(value, bool):
        raise TypeError(f"expire_at must be a datetime, string or number, not {value!r}")
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        value = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.timestamp()
    raise TypeError(f"expire_at must be a datetime, string or number, not {type(value).__name__}")


def resolve_expires(expire: Optional[ExpirationSpec], now: float) -> Optional[int]:
    """
    Resolve an expiration to the Unix second the item expires at.

    Args:
        expire: The requested expiration, or None
        now: Current time in Unix seconds

    Returns:
        floor(expire_at) if expire_at is set, else floor(now + expire_in)
        if expire_in is set, else None. Always an int.
    """
    if expire is None:
        return None
    if expire.expire_at is not None:
        return math.floor(parse_expire_at(expire.expire_at))
    if expire.expire_in is not None:
        return math.floor(now + expire.expire_in)
    return None


@dataclass
class CompiledUpdate:
    """Mutations grouped by kind. Each field path sits in exactly one bucket."""
    set: dict[str, JSONValue] = field(default_factory=dict)
    increment: dict[str, JSONValue] = field(default_factory=dict)
    append: dict[str, JSONValue] = field(default_factory=dict)
    prepend: dict[str, JSONValue] = field(default_factory=dict)
    delete: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        """Wire representation."""
        return {
            "set": dict(self.set),
            "increment": dict(self.increment),
            "append": dict(self.append),
            "prepend": dict(self.prepend),
            "delete": list(self.delete),
        }


def _route(compiled: CompiledUpdate, path: str, desc: Descriptor) -> None:
    op = desc.op
    if op is Op.SET:
        compiled.set[path] = desc.value
    elif op is Op.INCREMENT:
        compiled.increment[path] = desc.value
    elif op is Op.APPEND:
        compiled.append[path] = desc.value
    elif op is Op.PREPEND:
        compiled.prepend[path] = desc.value
    elif op is Op.DELETE or op is Op.TRIM:
        compiled.delete.append(path)
    else:
        raise TypeError(f"Unhandled update operation: {op!r}")


def compile_update(
    updates: Mapping[str, object],
    expire: Optional[ExpirationSpec] = None,
    now: Optional[float] = None,
) -> CompiledUpdate:
    """
    Compile an update request.

    Args:
        updates: Field path -> plain value or Descriptor
        expire: Optional expiration, written to set["__expires"]
        now: Current Unix time, required when expire uses expire_in

    Paths and values are not validated; the store rejects bad ones.
    """
    compiled = CompiledUpdate()
    for path, value in updates.items():
        if isinstance(value, Descriptor):
            _route(compiled, path, value)
        else:
            compiled.set[path] = value

    if expire:
        if expire.expire_at is None and now is None:
            raise ValueError("now is required to resolve expire_in")
        expires = resolve_expires(expire, now)
        if expires is not None:
            compiled.set[EXPIRES_FIELD] = expires
    return compiled


def update_payload(
    updates: Mapping[str, object],
    expire: Optional[ExpirationSpec] = None,
    now: Optional[float] = None,
) -> dict:
    """Request body for PATCH /items/{key}."""
    return {"updates": compile_update(updates, expire, now).to_dict()}
