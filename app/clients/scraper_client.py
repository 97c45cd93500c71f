"""Thin client for the scraper backend's crawl API."""

from logging import getLogger
from typing import Any

from httpx import AsyncClient, HTTPError, Response, Timeout

from app.configs import file_logger, settings
from app.decorators import with_retry
from app.errors import ServiceError, UpstreamError

logger = file_logger(getLogger(__name__))

DEFAULT_MAX_PAGES = 100


class ScraperClient:
    """
    Proxies crawl operations to the scraper service with Bearer token auth.

    Idempotent reads retry on transport failures and gateway statuses;
    starting or cancelling a crawl and purging its cache are attempted
    once. Error statuses from the scraper are passed through as
    ``ServiceError`` with its ``detail`` text.
    """

    def __init__(
        self,
        base_url: str | None = None,
        token: str | None = None,
        client: AsyncClient | None = None,
    ) -> None:
        token = token if token is not None else settings.SCRAPER_TOKEN.get_secret_value()
        self._client = client or AsyncClient(
            base_url=(base_url or settings.SCRAPER_URL).rstrip("/"),
            headers={"Authorization": f"Bearer {token}"},
            timeout=Timeout(settings.UPSTREAM_TIMEOUT),
        )

    @staticmethod
    def _payload(response: Response, failure: str) -> Any:
        try:
            data = response.json()
        except ValueError:
            data = {"detail": response.text}
        if response.is_error:
            detail = data.get("detail") if isinstance(data, dict) else None
            logger.warning(f"Scraper answered {response.status_code}: {data}")
            raise ServiceError(detail or failure, response.status_code, details=data)
        return data

    @with_retry(max_retries=3)
    async def _get(self, url: str, params: dict[str, Any] | None = None) -> Response:
        return await self._client.get(url, params=params)

    async def _read(self, url: str, failure: str, params: dict[str, Any] | None = None) -> Any:
        try:
            response = await self._get(url, params)
        except HTTPError as e:
            raise UpstreamError(f"scraper unreachable: {e}") from e
        return self._payload(response, failure)

    async def _post(self, url: str, failure: str, json: dict[str, Any] | None = None) -> Any:
        try:
            response = await self._client.post(url, json=json)
        except HTTPError as e:
            raise UpstreamError(f"scraper unreachable: {e}") from e
        return self._payload(response, failure)

    async def task_status(self, task_id: str) -> Any:
        return await self._read(f"/crawl/{task_id}/status", "Failed to fetch task status")

    async def task_pages(self, task_id: str, limit: int, offset: int) -> Any:
        return await self._read(
            f"/crawl/{task_id}/pages",
            "Failed to fetch pages",
            params={"limit": limit, "offset": offset},
        )

    async def tasks(self, limit: int) -> Any:
        return await self._read("/crawl/tasks", "Failed to fetch tasks", params={"limit": limit})

    async def cache_stats(self) -> Any:
        return await self._read("/cache/stats", "Failed to fetch cache stats")

    async def start_crawl(
        self,
        seed_url: str,
        max_pages: int | None = None,
        *,
        use_proxy: bool = True,
        respect_robots: bool = True,
    ) -> Any:
        logger.info(f"Starting crawl task for {seed_url}")
        return await self._post(
            "/crawl/start",
            "Failed to start crawl",
            json={
                "seed_url": seed_url,
                "max_pages": max_pages or DEFAULT_MAX_PAGES,
                "use_proxy": use_proxy,
                "respect_robots": respect_robots,
            },
        )

    async def cancel_crawl(self, task_id: str) -> Any:
        logger.info(f"Cancelling crawl task {task_id}")
        return await self._post(f"/crawl/{task_id}/cancel", "Failed to cancel crawl")

    async def _delete(self, url: str, failure: str, params: dict[str, Any] | None = None) -> Any:
        try:
            response = await self._client.delete(url, params=params)
        except HTTPError as e:
            raise UpstreamError(f"scraper unreachable: {e}") from e
        return self._payload(response, failure)

    async def delete_cached_url(self, url: str) -> Any:
        logger.info(f"Deleting scraper cache for {url}")
        return await self._delete("/cache/url", "Failed to delete cache", params={"url": url})

    async def clear_cache(self) -> Any:
        logger.info("Clearing scraper cache")
        return await self._delete("/cache/clear", "Failed to clear cache")

    async def close(self) -> None:
        await self._client.aclose()
