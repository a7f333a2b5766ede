"""
HTTP client for a ledger gateway.

Exposes the remote ledger's get/set-by-key contract over a small REST
surface:

    GET /v1/available        -> {"available": bool}
    GET /v1/data/{key}       -> raw bytes (404 when absent)
    PUT /v1/data/{key}       <- raw bytes, signed by the account in X-Account

Writes are never retried here; a failed write is reported once and the
caller decides whether the user should try again.
"""

from __future__ import annotations

import logging
from urllib.parse import quote, urlparse

import httpx

from .errors import CommitFailed, CommitRejected, StoreError
from .record_store import REJECTION_TEXT

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0
AVAILABILITY_TIMEOUT = 10.0


class HttpRecordStore:
    """Async HTTP implementation of the record store."""

    def __init__(
        self,
        api_url: str,
        api_key: str | None = None,
        *,
        account: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._api_url = api_url.rstrip("/")
        self._account = account

        # Refuse non-HTTPS for remote APIs (bearer token would be sent in cleartext)
        if not self._api_url.startswith("https://"):
            host = urlparse(self._api_url).hostname or ""
            if host not in ("localhost", "127.0.0.1", "::1"):
                raise ValueError(
                    f"Ledger URL must use HTTPS (got {self._api_url}). "
                    "Use HTTPS to protect API credentials, or use localhost for local development."
                )

        headers: dict[str, str] = {}
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"

        self._client = httpx.AsyncClient(
            base_url=self._api_url,
            headers=headers,
            timeout=DEFAULT_TIMEOUT,
            transport=transport,
        )

    @property
    def account(self) -> str | None:
        return self._account

    def set_account(self, account: str | None) -> None:
        """Change the identity that signs subsequent writes."""
        self._account = account or None

    @staticmethod
    def _path(key: str) -> str:
        return f"/v1/data/{quote(key, safe='')}"

    async def is_available(self) -> bool:
        try:
            resp = await self._client.get("/v1/available", timeout=AVAILABILITY_TIMEOUT)
            resp.raise_for_status()
            body = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Ledger availability check failed: %s", e)
            return False
        if not isinstance(body, dict):
            logger.warning("Ledger availability check returned %s, expected an object",
                           type(body).__name__)
            return False
        return body.get("available") is True

    async def get_data(self, key: str) -> bytes:
        try:
            resp = await self._client.get(self._path(key))
            if resp.status_code == 404:
                return b""
            resp.raise_for_status()
            return resp.content
        except httpx.HTTPStatusError as e:
            raise StoreError(
                f"Read of {key} failed: {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            raise StoreError(f"Read of {key} failed: {e}") from e

    async def set_data(self, key: str, value: bytes) -> None:
        headers = {"Content-Type": "application/octet-stream"}
        if self._account:
            headers["X-Account"] = self._account
        try:
            resp = await self._client.put(self._path(key), content=value, headers=headers)
        except httpx.HTTPError as e:
            raise CommitFailed(f"Write of {key} failed: {e}") from e

        if resp.status_code < 400:
            return
        text = resp.text
        if resp.status_code == 403 or REJECTION_TEXT in text:
            raise CommitRejected(f"Write of {key} failed: {REJECTION_TEXT}")
        raise CommitFailed(f"Write of {key} failed: {resp.status_code} {text}".rstrip())

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()
