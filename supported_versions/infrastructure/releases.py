"""HTTP access to the server-hosted and vendor-cloud supported-versions sources."""
from __future__ import annotations

import json
import logging
from typing import Any
from urllib.parse import urlparse

import httpx
from pydantic import ValidationError

from supported_versions.core.errors import DataMissingError, NetworkError
from supported_versions.core.schema import CloudInfo, ServerInfo

logger = logging.getLogger(__name__)

DEFAULT_CLOUD_URL = "https://releases.rocket.chat/v2/server/supportedVersions"
UNIQUE_ID_QUERY = json.dumps({"_id": "uniqueID"})


def server_endpoint(server_url: str, path: str) -> str:
    return f"{server_url.rstrip('/')}/{path.lstrip('/')}"


def server_domain(server_url: str) -> str:
    return urlparse(server_url).hostname or server_url


class ReleasesClient:
    """Client for the three network calls a supported-versions check makes."""

    def __init__(
        self,
        *,
        cloud_url: str = DEFAULT_CLOUD_URL,
        timeout: float = 30.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        parsed = urlparse(cloud_url)
        if not parsed.scheme or not parsed.netloc:
            raise ValueError("cloud_url must include scheme and host")

        self._cloud_url = cloud_url
        self._client = http_client or httpx.AsyncClient(timeout=timeout, follow_redirects=True)
        self._owns_client = http_client is None

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------
    async def _get_json(self, url: str, *, params: dict[str, str] | None = None) -> Any:
        logger.debug("GET %s params=%s", url, params)
        try:
            response = await self._client.get(url, params=params)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise NetworkError(f"{url} answered {exc.response.status_code}") from exc
        except httpx.HTTPError as exc:
            raise NetworkError(f"request to {url} failed: {exc}") from exc

        try:
            return response.json()
        except ValueError as exc:
            raise NetworkError(f"{url} did not return JSON") from exc

    # ------------------------------------------------------------------
    # public API
    # ------------------------------------------------------------------
    async def get_server_info(self, server_url: str) -> ServerInfo:
        payload = await self._get_json(server_endpoint(server_url, "api/info"))
        try:
            return ServerInfo.model_validate(payload)
        except ValidationError as exc:
            raise NetworkError(f"unexpected server info from {server_url}") from exc

    async def get_unique_id(self, server_url: str) -> str:
        payload = await self._get_json(
            server_endpoint(server_url, "api/v1/settings.public"),
            params={"query": UNIQUE_ID_QUERY},
        )
        settings = payload.get("settings") if isinstance(payload, dict) else None
        first = settings[0] if isinstance(settings, list) and settings else None
        value = first.get("value") if isinstance(first, dict) else None
        if not value:
            raise DataMissingError(f"No unique ID found for {server_url}")
        return str(value)

    async def get_cloud_info(self, server_url: str, unique_id: str) -> CloudInfo:
        payload = await self._get_json(
            self._cloud_url,
            params={"domain": server_domain(server_url), "uniqueId": unique_id, "source": "desktop"},
        )
        try:
            return CloudInfo.model_validate(payload)
        except ValidationError as exc:
            raise NetworkError("unexpected cloud supported versions response") from exc

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()


__all__ = ["ReleasesClient", "server_domain", "server_endpoint"]
