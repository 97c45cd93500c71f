"""Tests for the monitoring log and crawl services."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from app.errors import ValidationError
from app.schemas import CrawlAction, PageRequest
from app.schemas.details import UNKNOWN_USER
from app.services.enrichment import Resolver
from app.services.monitoring import CrawlService, LogService


def page() -> PageRequest:
    return PageRequest.from_query(2, 10, default_limit=10, max_limit=50)


@pytest.fixture
def resolver() -> Resolver:
    identity = MagicMock()
    identity.get_user = AsyncMock(return_value=None)
    return Resolver(identity)


@pytest.fixture
def log_service(resolver: Resolver) -> LogService:
    scrape_requests = MagicMock()
    scrape_requests.list_page = AsyncMock(return_value=([{"id": 1, "user_id": "u1", "url": "https://x"}], 11))
    summary = MagicMock()
    summary.get_summary = AsyncMock(return_value={"total_requests": 11})
    return LogService(scrape_requests, MagicMock(), summary, resolver)


@pytest.fixture
def scraper() -> MagicMock:
    scraper = MagicMock()
    scraper.start_crawl = AsyncMock(return_value={"task_id": "t1"})
    scraper.cancel_crawl = AsyncMock(return_value={"task_id": "t1", "status": "canceled"})
    scraper.task_status = AsyncMock(return_value={"status": "running"})
    scraper.delete_cached_url = AsyncMock(return_value={"deleted": 1})
    scraper.clear_cache = AsyncMock(return_value={"deleted": 40})
    return scraper


@pytest.fixture
def crawl_service(scraper: MagicMock, resolver: Resolver) -> CrawlService:
    return CrawlService(MagicMock(), MagicMock(), scraper, resolver)


class TestLogService:
    @pytest.mark.asyncio
    async def test_invalid_table(self, log_service: LogService) -> None:
        with pytest.raises(ValidationError, match="Invalid table parameter"):
            await log_service.read("users", page())

    @pytest.mark.asyncio
    async def test_scrape_requests_are_enriched(self, log_service: LogService) -> None:
        result = await log_service.read("scrape_requests", page())

        record = result["data"][0]
        assert set(record) >= {"user_details", "project_details", "blog_details"}
        assert record["user_details"]["name"] == UNKNOWN_USER
        assert record["project_details"] is None
        assert result["pagination"]["currentPage"] == 2
        assert result["pagination"]["total"] == 11

    @pytest.mark.asyncio
    async def test_dashboard_summary(self, log_service: LogService) -> None:
        assert await log_service.read("dashboard_summary", page()) == {
            "success": True,
            "data": {"total_requests": 11},
        }


class TestCrawlRead:
    @pytest.mark.asyncio
    async def test_task_status_requires_task_id(self, crawl_service: CrawlService) -> None:
        with pytest.raises(ValidationError, match="task_id is required"):
            await crawl_service.read("task_status", page())

    @pytest.mark.asyncio
    async def test_task_status(self, crawl_service: CrawlService, scraper: MagicMock) -> None:
        result = await crawl_service.read("task_status", page(), task_id="t1")
        assert result == {"success": True, "data": {"status": "running"}}
        scraper.task_status.assert_awaited_once_with("t1")

    @pytest.mark.asyncio
    async def test_unknown_table(self, crawl_service: CrawlService) -> None:
        with pytest.raises(ValidationError, match="Invalid table parameter"):
            await crawl_service.read("nope", page())


class TestCrawlAct:
    @pytest.mark.asyncio
    async def test_start(self, crawl_service: CrawlService, scraper: MagicMock) -> None:
        result = await crawl_service.act(CrawlAction(action="start", seed_url="https://acme.example", max_pages=5))

        assert result["message"] == "Crawl task started"
        scraper.start_crawl.assert_awaited_once_with(
            "https://acme.example",
            5,
            use_proxy=True,
            respect_robots=True,
        )

    @pytest.mark.asyncio
    async def test_start_requires_seed_url(self, crawl_service: CrawlService) -> None:
        with pytest.raises(ValidationError, match="seed_url is required"):
            await crawl_service.act(CrawlAction(action="start"))

    @pytest.mark.asyncio
    async def test_cancel(self, crawl_service: CrawlService, scraper: MagicMock) -> None:
        result = await crawl_service.act(CrawlAction(action="cancel", task_id="t1"))
        assert result["message"] == "Crawl task canceled"
        scraper.cancel_crawl.assert_awaited_once_with("t1")

    @pytest.mark.asyncio
    async def test_invalid_action(self, crawl_service: CrawlService, scraper: MagicMock) -> None:
        with pytest.raises(ValidationError, match="Use 'start' or 'cancel'"):
            await crawl_service.act(CrawlAction(action="pause"))
        scraper.start_crawl.assert_not_awaited()


class TestCrawlPurge:
    @pytest.mark.asyncio
    async def test_cache_url_requires_url(self, crawl_service: CrawlService) -> None:
        with pytest.raises(ValidationError, match="url parameter is required"):
            await crawl_service.purge("cache_url")

    @pytest.mark.asyncio
    async def test_cache_url(self, crawl_service: CrawlService, scraper: MagicMock) -> None:
        result = await crawl_service.purge("cache_url", "https://acme.example/a")
        assert result["message"] == "Cache deleted for URL"
        scraper.delete_cached_url.assert_awaited_once_with("https://acme.example/a")

    @pytest.mark.asyncio
    async def test_cache_clear(self, crawl_service: CrawlService) -> None:
        result = await crawl_service.purge("cache_clear")
        assert result["message"] == "All cache cleared"

    @pytest.mark.asyncio
    async def test_unknown_action(self, crawl_service: CrawlService) -> None:
        with pytest.raises(ValidationError, match="cache_url"):
            await crawl_service.purge(None)
