"""Async npm registry client with retries."""

from __future__ import annotations

import asyncio
from typing import Any
from urllib.parse import quote

import httpx
import structlog

from depaudit.core.config import DEFAULT_DOWNLOADS_URL, DEFAULT_REGISTRY_URL
from depaudit.exceptions import InvalidPackageNameError, ServiceError
from depaudit.services.models import PackageMetadata
from depaudit.services.names import is_valid_package_name

log = structlog.get_logger("depaudit.services")

_MAX_RETRIES = 3
_RETRY_BASE_DELAY = 0.5  # seconds


class NpmRegistryClient:
    """Thin async wrapper around the npm registry and downloads APIs."""

    def __init__(
        self,
        registry_url: str = DEFAULT_REGISTRY_URL,
        downloads_url: str = DEFAULT_DOWNLOADS_URL,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._registry_url = registry_url.rstrip("/")
        self._downloads_url = downloads_url.rstrip("/")
        self._client = client or httpx.AsyncClient(
            headers={"Accept": "application/json"},
            timeout=timeout,
            follow_redirects=True,
        )

    # ── lifecycle ──────────────────────────────────────────────────────────

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> NpmRegistryClient:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    # ── public ─────────────────────────────────────────────────────────────

    async def fetch_packument(self, name: str) -> dict[str, Any]:
        """Full registry document for *name* (all versions, times, maintainers)."""
        self._check_name(name)
        # Scoped names keep their "@" but the slash must be encoded.
        url = f"{self._registry_url}/{quote(name, safe='@')}"
        data = await self._get_json(url)
        if not isinstance(data, dict):
            raise ServiceError(f"Unexpected registry response for {name}")
        return data

    async def fetch_weekly_downloads(self, name: str) -> int | None:
        self._check_name(name)
        data = await self._get_json(f"{self._downloads_url}/{name}")
        downloads = data.get("downloads") if isinstance(data, dict) else None
        return downloads if isinstance(downloads, int) else None

    async def latest_version(self, name: str) -> str | None:
        packument = await self.fetch_packument(name)
        return _latest_from_packument(packument)

    async def fetch_metadata(self, name: str) -> PackageMetadata:
        """Everything the risk audit needs about *name*.

        The packument is required; a failed download-count lookup only
        degrades ``weekly_downloads`` to 0.
        """
        packument, downloads = await asyncio.gather(
            self.fetch_packument(name),
            self.fetch_weekly_downloads(name),
            return_exceptions=True,
        )
        if isinstance(packument, BaseException):
            raise packument
        if isinstance(downloads, BaseException):
            log.warning("registry.downloads_failed", package=name, error=str(downloads))
            downloads = None

        time_data = packument.get("time")
        maintainers = packument.get("maintainers")
        return PackageMetadata(
            name=name,
            latest_version=_latest_from_packument(packument),
            time=time_data if isinstance(time_data, dict) else {},
            maintainers=maintainers if isinstance(maintainers, list) else [],
            weekly_downloads=downloads or 0,
        )

    # ── internal ───────────────────────────────────────────────────────────

    @staticmethod
    def _check_name(name: str) -> None:
        if not is_valid_package_name(name):
            raise InvalidPackageNameError(name)

    async def _get_json(self, url: str) -> Any:
        response = await self._request_with_retry(url)
        try:
            return response.json()
        except ValueError as exc:
            raise ServiceError(f"Invalid JSON from {url}") from exc

    async def _request_with_retry(self, url: str) -> httpx.Response:
        """GET with exponential backoff on 5xx and transport errors."""
        last_error = "no attempt made"
        for attempt in range(_MAX_RETRIES):
            try:
                resp = await self._client.get(url)
                if resp.status_code == 404:
                    raise ServiceError(f"Not found on registry: {url}")
                if resp.status_code < 500:
                    if resp.status_code >= 400:
                        raise ServiceError(f"Registry returned {resp.status_code} for {url}")
                    return resp

                log.warning(
                    "registry.server_error",
                    url=url,
                    status=resp.status_code,
                    attempt=attempt + 1,
                    max_retries=_MAX_RETRIES,
                )
                last_error = f"HTTP {resp.status_code}"
            except httpx.TransportError as exc:
                log.warning(
                    "registry.transport_error",
                    url=url,
                    error=str(exc),
                    attempt=attempt + 1,
                    max_retries=_MAX_RETRIES,
                )
                last_error = str(exc) or type(exc).__name__

            if attempt < _MAX_RETRIES - 1:
                await asyncio.sleep(_RETRY_BASE_DELAY * (2**attempt))

        raise ServiceError(f"Registry request failed after {_MAX_RETRIES} attempts: {last_error}")


def _latest_from_packument(packument: dict[str, Any]) -> str | None:
    tags = packument.get("dist-tags")
    if isinstance(tags, dict) and isinstance(tags.get("latest"), str):
        return tags["latest"]
    return None
