"""
Payload preparation for put and insert.

Items are shallow-copied before a key or expiry is written into them, so
caller-owned dicts are never mutated.
"""

from typing import Optional, Union

from .errors import InvalidArgument
from .types import EXPIRES_FIELD, KEY_FIELD, ExpirationSpec, Item
from .updates import resolve_expires


def _expires_for(expire: Optional[ExpirationSpec], now: Optional[float]) -> Optional[int]:
    if not expire:
        return None
    if expire.expire_at is None and now is None:
        raise ValueError("now is required to resolve expire_in")
    return resolve_expires(expire, now)


def normalize_for_put(
    items: Union[Item, list[Item]],
    key: Optional[str] = None,
    expire: Optional[ExpirationSpec] = None,
    now: Optional[float] = None,
) -> dict:
    """
    Build the body for PUT /items.

    A single item gets `key` written into it when given. A list is sent
    as-is: each element carries its own key and `key` is ignored. One
    expiry applies to every item in the request.

    Returns:
        {"items": [...]}
    """
    if isinstance(items, list):
        batch = [dict(item) for item in items]
    else:
        item = dict(items)
        if key is not None:
            item[KEY_FIELD] = key
        batch = [item]

    expires = _expires_for(expire, now)
    if expires is not None:
        for item in batch:
            item[EXPIRES_FIELD] = expires
    return {"items": batch}


def normalize_for_insert(
    item: Item,
    key: Optional[str] = None,
    expire: Optional[ExpirationSpec] = None,
    now: Optional[float] = None,
) -> dict:
    """Build the body for POST /items (create if absent): {"item": {...}}."""
    item = dict(item)
    if key is not None:
        item[KEY_FIELD] = key
    expires = _expires_for(expire, now)
    if expires is not None:
        item[EXPIRES_FIELD] = expires
    return {"item": item}


def require_non_empty_batch(items) -> list[Item]:
    """Return `items` unchanged if it is a non-empty list, else raise InvalidArgument."""
    if not isinstance(items, list) or not items:
        raise InvalidArgument("put_many requires a list with at least one item")
    return items
