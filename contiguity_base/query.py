"""
Query envelope for POST /query and projection of its response.

Filter mappings are passed through untouched. Keys may carry operator
suffixes ("age?lt", "name?pfx"); the store evaluates them.
"""

import logging
from collections.abc import Mapping
from typing import Any, Optional

from .types import FetchResult

logger = logging.getLogger(__name__)


def build_query(
    query: Optional[Mapping[str, Any] | list] = None,
    limit: Optional[int] = None,
    last: Optional[str] = None,
) -> dict:
    """Request body with unset fields omitted (never sent as null)."""
    envelope: dict = {}
    if query is not None:
        envelope["query"] = query
    if limit is not None:
        envelope["limit"] = limit
    if last is not None:
        envelope["last"] = last
    return envelope


def unwrap_fetch_result(raw: Optional[Mapping[str, Any]]) -> Optional[FetchResult]:
    """Keep only items, last and count from a query response.

    Returns None when the response is absent (not found or request failed)
    or is not a JSON object.
    """
    if not isinstance(raw, Mapping):
        if raw is not None:
            logger.error("Unexpected query response: %r", raw)
        return None
    items = list(raw.get("items") or [])
    count = raw.get("count")
    return FetchResult(
        items=items,
        last=raw.get("last"),
        count=len(items) if count is None else count,
    )
