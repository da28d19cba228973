"""Firebase Storage REST client — list, upload, locate, download, delete."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Protocol
from urllib.parse import quote

import httpx

from filebox.config import settings
from filebox.services.errors import NotFound, ProviderUnavailable, QuotaExceeded

logger = logging.getLogger(__name__)

TokenProvider = Callable[[], Awaitable[str | None]]

_QUOTA_STATUSES = (402, 413, 507)


@dataclass(frozen=True)
class StoredObject:
    key: str
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def name(self) -> str:
        return self.key.rsplit("/", 1)[-1]


class ObjectStore(Protocol):
    async def list(self, prefix: str) -> list[StoredObject]: ...

    async def upload(self, key: str, data: bytes, content_type: str = ...) -> None: ...

    async def get_locator(self, key: str) -> str: ...

    async def download(self, locator: str) -> bytes: ...

    async def delete(self, key: str) -> None: ...


class FirebaseObjectStore:
    """Firebase Storage v0 REST API client scoped to one bucket."""

    def __init__(
        self,
        bucket: str | None = None,
        base_url: str | None = None,
        token_provider: TokenProvider | None = None,
        timeout: float | None = None,
        page_size: int | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        bucket = bucket or settings.storage_bucket
        self._objects_url = (
            (base_url or settings.storage_url).rstrip("/") + f"/v0/b/{bucket}/o"
        )
        self._token_provider = token_provider
        self._timeout = timeout or settings.request_timeout_seconds
        self._page_size = page_size or settings.list_page_size
        self._transport = transport

    def _object_url(self, key: str) -> str:
        return f"{self._objects_url}/{quote(key, safe='')}"

    async def _headers(self) -> dict[str, str]:
        if self._token_provider is None:
            return {}
        token = await self._token_provider()
        return {"Authorization": f"Firebase {token}"} if token else {}

    async def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        """Send one request and translate failures into provider errors."""
        headers = {**(await self._headers()), **kwargs.pop("headers", {})}
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport,
            ) as client:
                resp = await client.request(method, url, headers=headers, **kwargs)
        except httpx.HTTPError as e:
            raise ProviderUnavailable(f"{method} {url} failed: {e}") from e

        if resp.status_code == 404:
            raise NotFound(f"No object at {url}")
        if resp.status_code in _QUOTA_STATUSES:
            raise QuotaExceeded(f"Storage quota exceeded ({resp.status_code})")
        if resp.is_error:
            raise ProviderUnavailable(
                f"{method} {url} returned {resp.status_code}: {resp.text[:200]}"
            )
        return resp

    async def list(self, prefix: str) -> list[StoredObject]:
        """All objects directly under ``prefix``, in provider order."""
        objects: list[StoredObject] = []
        params: dict[str, Any] = {
            "prefix": prefix,
            "delimiter": "/",
            "maxResults": self._page_size,
        }
        while True:
            resp = await self._request("GET", self._objects_url, params=params)
            data = resp.json()
            for item in data.get("items", []):
                objects.append(StoredObject(key=item["name"], metadata=item))
            page_token = data.get("nextPageToken")
            if not page_token:
                break
            params["pageToken"] = page_token

        logger.debug("Listed %d objects under %s", len(objects), prefix)
        return objects

    async def upload(
        self, key: str, data: bytes, content_type: str = "application/octet-stream",
    ) -> None:
        """Create or overwrite the object at ``key``."""
        await self._request(
            "POST",
            self._objects_url,
            params={"uploadType": "media", "name": key},
            content=data,
            headers={"Content-Type": content_type},
        )
        logger.info("Uploaded %s (%d bytes)", key, len(data))

    async def get_locator(self, key: str) -> str:
        """Download URL for ``key``, tokenized when the object has a download token."""
        resp = await self._request("GET", self._object_url(key))
        tokens = resp.json().get("downloadTokens") or ""
        token = tokens.split(",")[0].strip()
        url = f"{self._object_url(key)}?alt=media"
        if token:
            url += f"&token={token}"
        return url

    async def download(self, locator: str) -> bytes:
        resp = await self._request("GET", locator)
        return resp.content

    async def delete(self, key: str) -> None:
        await self._request("DELETE", self._object_url(key))
        logger.info("Deleted %s", key)
