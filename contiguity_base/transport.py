"""
HTTP transport for the Contiguity Base API.

Every call returns the decoded JSON body, or None when the item is not
found or the request failed. Failures are logged, never raised: callers
check for None.
"""

from __future__ import annotations

import json
import logging
from typing import Any
from urllib.parse import urlparse

import httpx

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0

_LOOPBACK_HOSTS = ("localhost", "127.0.0.1", "::1")


def _check_https(url: str) -> None:
    # Refuse non-HTTPS for remote APIs (api key would be sent in cleartext)
    if url.startswith("https://"):
        return
    host = urlparse(url).hostname or ""
    if host not in _LOOPBACK_HOSTS:
        raise ValueError(
            f"Base URL must use HTTPS (got {url}). "
            "Use HTTPS to protect API credentials, or use localhost for local development."
        )


def _headers(api_key: str) -> dict[str, str]:
    return {
        "x-api-key": api_key,
        "Content-Type": "application/json",
    }


def _encode(body: Any) -> bytes | None:
    if body is None:
        return None
    return json.dumps(body).encode("utf-8")


def _decode(method: str, url: str, resp: httpx.Response) -> Any:
    """Map a response to its JSON body, or None for 404 and other errors.

    An empty 2xx body decodes to {} so None only ever means absent.
    """
    if resp.status_code == 404:
        logger.debug("%s %s: not found", method, url)
        return None
    if not resp.is_success:
        logger.error(
            "HTTP error! status: %d, body: %s", resp.status_code, resp.text,
        )
        return None
    if not resp.content:
        return {}
    try:
        return resp.json()
    except ValueError as e:
        logger.error("Invalid JSON from %s %s: %s", method, url, e)
        return None


class Transport:
    """Synchronous client for one Base: {root}/{project_id}/{name}."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        debug: bool = False,
    ):
        self._base_url = base_url.rstrip("/")
        _check_https(self._base_url)
        self._debug = debug
        self._client = httpx.Client(
            base_url=self._base_url,
            headers=_headers(api_key),
            timeout=timeout,
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    def send(self, method: str, path: str, body: Any = None) -> Any:
        """Send one request. Returns the JSON body or None."""
        url = f"{self._base_url}{path}"
        if self._debug:
            logger.debug("Sending %s request to: %s", method, url)
        try:
            resp = self._client.request(method, path, content=_encode(body))
        except httpx.HTTPError as e:
            logger.debug("Request failed: %s %s: %s", method, url, e)
            return None
        return _decode(method, url, resp)

    def close(self) -> None:
        """Close the HTTP client."""
        self._client.close()

    def __enter__(self) -> Transport:
        return self

    def __exit__(self, *exc) -> None:
        self.close()


class AsyncTransport:
    """Asynchronous counterpart of Transport."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        debug: bool = False,
    ):
        self._base_url = base_url.rstrip("/")
        _check_https(self._base_url)
        self._debug = debug
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            headers=_headers(api_key),
            timeout=timeout,
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    async def send(self, method: str, path: str, body: Any = None) -> Any:
        url = f"{self._base_url}{path}"
        if self._debug:
            logger.debug("Sending %s request to: %s", method, url)
        try:
            resp = await self._client.request(method, path, content=_encode(body))
        except httpx.HTTPError as e:
            logger.debug("Request failed: %s %s: %s", method, url, e)
            return None
        return _decode(method, url, resp)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> AsyncTransport:
        return self

    async def __aexit__(self, *exc) -> None:
        await self.aclose()
