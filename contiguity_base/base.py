"""
Client handle and Base-scoped operations.

Example usage:
    from contiguity_base import db

    users = db("api-key", "project-id").base("users")
    users.put({"name": "Ada"}, "ada", expire_in=3600)
    users.update({"visits": users.util.increment()}, "ada")
    page = users.fetch({"name?pfx": "A"}, limit=10)

Every operation sends at most one request and returns the decoded
response, or None when the item was not found or the request failed.
"""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Callable, Mapping
from typing import Any, Optional, Union
from urllib.parse import quote

from .config import DEFAULT_BASE_URL, ClientConfig
from .items import normalize_for_insert, normalize_for_put, require_non_empty_batch
from .logging_config import enable_debug_mode
from .query import build_query, unwrap_fetch_result
from .transport import DEFAULT_TIMEOUT, AsyncTransport, Transport
from .types import ExpirationSpec, FetchResult, Item
from .updates import update_payload
from .util import Util

logger = logging.getLogger(__name__)

# (method, path, body) for one API call
Request = tuple[str, str, Optional[dict]]


class Contiguity:
    """Credentials and project for a set of Bases. Immutable after construction."""

    def __init__(
        self,
        api_key: str,
        project_id: str,
        debug: bool = False,
        *,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        clock: Callable[[], float] = time.time,
    ):
        self._api_key = api_key
        self._project_id = project_id
        self._base_url = base_url.rstrip("/")
        self._debug = debug
        self._timeout = timeout
        self._clock = clock
        if debug:
            enable_debug_mode()

    @classmethod
    def from_config(
        cls,
        config: ClientConfig,
        *,
        clock: Callable[[], float] = time.time,
    ) -> Contiguity:
        return cls(
            config.api_key,
            config.project_id,
            config.debug,
            base_url=config.base_url,
            timeout=config.timeout,
            clock=clock,
        )

    @property
    def api_key(self) -> str:
        return self._api_key

    @property
    def project_id(self) -> str:
        return self._project_id

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def debug(self) -> bool:
        return self._debug

    @property
    def timeout(self) -> float:
        return self._timeout

    def now(self) -> float:
        """Current Unix time from the configured clock."""
        return self._clock()

    def url_for(self, name: str) -> str:
        """Root URL of a Base: {base_url}/{project_id}/{name}."""
        return f"{self._base_url}/{self._project_id}/{name}"

    def base(self, name: str) -> Base:
        return Base(self, name)

    # Name used by the JavaScript SDK: db.Base("users")
    Base = base

    def async_base(self, name: str) -> AsyncBase:
        return AsyncBase(self, name)


def db(api_key: str, project_id: str, debug: bool = False) -> Contiguity:
    """Create a client handle."""
    return Contiguity(api_key, project_id, debug)


def _item_path(key: str) -> str:
    return f"/items/{quote(str(key), safe='')}"


class _BaseRequests:
    """Builds the (method, path, body) of every Base operation."""

    db: Contiguity
    name: str

    def _expiration(self, expire_in, expire_at) -> Optional[ExpirationSpec]:
        spec = ExpirationSpec(expire_in=expire_in, expire_at=expire_at)
        return spec if spec else None

    def _put_request(self, items, key, expire_in, expire_at) -> Request:
        expire = self._expiration(expire_in, expire_at)
        now = self.db.now() if expire else None
        return "PUT", "/items", normalize_for_put(items, key, expire, now)

    def _insert_request(self, item, key, expire_in, expire_at) -> Request:
        expire = self._expiration(expire_in, expire_at)
        now = self.db.now() if expire else None
        return "POST", "/items", normalize_for_insert(item, key, expire, now)

    def _update_request(self, updates, key, expire_in, expire_at) -> Request:
        expire = self._expiration(expire_in, expire_at)
        now = self.db.now() if expire else None
        return "PATCH", _item_path(key), update_payload(updates, expire, now)

    def _fetch_request(self, query, limit, last) -> Request:
        envelope = build_query(query, limit, last)
        if self.db.debug:
            logger.debug("Fetch params sent to server: %s", json.dumps(envelope, indent=2))
        return "POST", "/query", envelope


class Base(_BaseRequests):
    """A named collection of items within a project."""

    def __init__(self, db: Contiguity, name: str):
        self.db = db
        self.name = name
        self.util = Util()
        self._transport = Transport(
            db.url_for(name),
            db.api_key,
            timeout=db.timeout,
            debug=db.debug,
        )

    def put(
        self,
        items: Union[Item, list[Item]],
        key: Optional[str] = None,
        *,
        expire_in: Optional[Union[int, float]] = None,
        expire_at=None,
    ) -> Any:
        """
        Store one item or a batch, replacing existing items with the same key.

        Args:
            items: An item, or a list of items that each carry their own key
            key: Key for a single item; ignored for lists
            expire_in: Seconds until the item(s) expire
            expire_at: When the item(s) expire (datetime, ISO string or Unix
                seconds); takes precedence over expire_in
        """
        return self._transport.send(*self._put_request(items, key, expire_in, expire_at))

    def insert(
        self,
        item: Item,
        key: Optional[str] = None,
        *,
        expire_in: Optional[Union[int, float]] = None,
        expire_at=None,
    ) -> Any:
        """Create an item; the store rejects it if the key already exists."""
        return self._transport.send(*self._insert_request(item, key, expire_in, expire_at))

    def get(self, key: str) -> Optional[Item]:
        return self._transport.send("GET", _item_path(key))

    def delete(self, key: str) -> Any:
        """Delete an item. Deleting a missing key is not an error."""
        return self._transport.send("DELETE", _item_path(key))

    def update(
        self,
        updates: Mapping[str, Any],
        key: str,
        *,
        expire_in: Optional[Union[int, float]] = None,
        expire_at=None,
    ) -> Any:
        """
        Apply a partial update.

        Values in `updates` are either replacements or descriptors from
        ``self.util`` (increment, append, prepend, trim, delete). Nested
        fields are addressed with dotted paths: ``{"profile.age": 31}``.
        """
        return self._transport.send(*self._update_request(updates, key, expire_in, expire_at))

    def fetch(
        self,
        query: Optional[Union[Mapping[str, Any], list]] = None,
        *,
        limit: Optional[int] = None,
        last: Optional[str] = None,
    ) -> Optional[FetchResult]:
        """Query items. Pass ``result.last`` back as `last` for the next page."""
        raw = self._transport.send(*self._fetch_request(query, limit, last))
        return unwrap_fetch_result(raw)

    def put_many(self, items: list[Item]) -> Any:
        """Store a non-empty list of items.

        Raises:
            InvalidArgument: If items is not a non-empty list
        """
        return self.put(require_non_empty_batch(items))

    def close(self) -> None:
        self._transport.close()

    def __enter__(self) -> Base:
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"Base({self.name!r}, project={self.db.project_id!r})"


class AsyncBase(_BaseRequests):
    """Base with coroutine operations, for use inside an event loop."""

    def __init__(self, db: Contiguity, name: str):
        self.db = db
        self.name = name
        self.util = Util()
        self._transport = AsyncTransport(
            db.url_for(name),
            db.api_key,
            timeout=db.timeout,
            debug=db.debug,
        )

    async def put(self, items, key=None, *, expire_in=None, expire_at=None) -> Any:
        return await self._transport.send(*self._put_request(items, key, expire_in, expire_at))

    async def insert(self, item, key=None, *, expire_in=None, expire_at=None) -> Any:
        return await self._transport.send(*self._insert_request(item, key, expire_in, expire_at))

    async def get(self, key: str) -> Optional[Item]:
        return await self._transport.send("GET", _item_path(key))

    async def delete(self, key: str) -> Any:
        return await self._transport.send("DELETE", _item_path(key))

    async def update(self, updates, key, *, expire_in=None, expire_at=None) -> Any:
        return await self._transport.send(*self._update_request(updates, key, expire_in, expire_at))

    async def fetch(self, query=None, *, limit=None, last=None) -> Optional[FetchResult]:
        raw = await self._transport.send(*self._fetch_request(query, limit, last))
        return unwrap_fetch_result(raw)

    async def put_many(self, items: list[Item]) -> Any:
        return await self.put(require_non_empty_batch(items))

    async def aclose(self) -> None:
        await self._transport.aclose()

    async def __aenter__(self) -> AsyncBase:
        return self

    async def __aexit__(self, *exc) -> None:
        await self.aclose()

    def __repr__(self) -> str:
        return f"AsyncBase({self.name!r}, project={self.db.project_id!r})"
