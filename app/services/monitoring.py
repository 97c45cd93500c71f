"""Monitoring log and crawl listings, plus the scraper proxy."""

from logging import getLogger
from typing import Any

from app.clients.scraper_client import ScraperClient
from app.configs import file_logger
from app.errors import ValidationError
from app.repositories import (
    CrawlPageRepository,
    CrawlTaskRepository,
    DashboardSummaryRepository,
    ErrorLogRepository,
    ScrapeRequestRepository,
)
from app.repositories.base import BaseRepository
from app.schemas import CrawlAction, PageRequest, Pagination
from app.services.enrichment import Resolver, join

logger = file_logger(getLogger(__name__))

LOG_TABLES = ("scrape_requests", "error_logs", "dashboard_summary")
CRAWL_TABLES = (
    "crawl_tasks",
    "crawl_pages",
    "crawl_summary",
    "task_status",
    "backend_pages",
    "backend_tasks",
    "cache_stats",
)


def page_response(records: list[dict[str, Any]], page: PageRequest, total: int) -> dict[str, Any]:
    return {
        "success": True,
        "data": records,
        "pagination": Pagination.for_request(page, total).to_response(),
    }


class LogService:
    """Scrape requests and error logs, newest first, with user, project and blog details."""

    def __init__(
        self,
        scrape_requests: ScrapeRequestRepository,
        error_logs: ErrorLogRepository,
        summary: DashboardSummaryRepository,
        resolver: Resolver,
    ) -> None:
        self.tables: dict[str, BaseRepository[Any]] = {
            "scrape_requests": scrape_requests,
            "error_logs": error_logs,
        }
        self.summary = summary
        self.resolver = resolver

    async def read(self, table: str, page: PageRequest) -> dict[str, Any]:
        if table not in LOG_TABLES:
            raise ValidationError("Invalid table parameter")
        if table == "dashboard_summary":
            return {"success": True, "data": await self.summary.get_summary()}

        records, total = await self.tables[table].list_page(offset=page.offset, limit=page.limit)
        lookups = await self.resolver.resolve(records, projects=True, blogs=True)
        return page_response(join(records, lookups, ("user", "project", "blog")), page, total)


class CrawlService:
    """Crawl monitoring tables and the scraper backend behind one endpoint."""

    def __init__(
        self,
        tasks: CrawlTaskRepository,
        pages: CrawlPageRepository,
        scraper: ScraperClient,
        resolver: Resolver,
    ) -> None:
        self.tasks = tasks
        self.pages = pages
        self.scraper = scraper
        self.resolver = resolver

    async def read(self, table: str, page: PageRequest, task_id: str | None = None) -> dict[str, Any]:
        """
        Serve one of the crawl views.

        Raises:
            ValidationError: Unknown ``table``, or a scraper view without ``task_id``
        """
        match table:
            case "crawl_tasks":
                records, total = await self.tasks.list_page(offset=page.offset, limit=page.limit)
                lookups = await self.resolver.resolve(records, projects=True)
                return page_response(join(records, lookups, ("user", "project")), page, total)
            case "crawl_pages":
                records, total = await self.pages.list_page(
                    offset=page.offset,
                    limit=page.limit,
                    filters={"task_id": task_id} if task_id else None,
                )
                return page_response(records, page, total)
            case "crawl_summary":
                return {"success": True, "data": await self.tasks.summary()}
            case "task_status":
                data = await self.scraper.task_status(self._require_task(task_id))
            case "backend_pages":
                data = await self.scraper.task_pages(self._require_task(task_id), page.limit, page.offset)
            case "backend_tasks":
                data = await self.scraper.tasks(page.limit)
            case "cache_stats":
                data = await self.scraper.cache_stats()
            case _:
                raise ValidationError("Invalid table parameter")
        return {"success": True, "data": data}

    @staticmethod
    def _require_task(task_id: str | None) -> str:
        if not task_id:
            raise ValidationError("task_id is required")
        return task_id

    async def act(self, body: CrawlAction) -> dict[str, Any]:
        """Start or cancel a crawl on the scraper backend."""
        if body.action == "start":
            if not body.seed_url:
                raise ValidationError("seed_url is required")
            data = await self.scraper.start_crawl(
                body.seed_url,
                body.max_pages,
                use_proxy=body.use_proxy,
                respect_robots=body.respect_robots,
            )
            return {"success": True, "message": "Crawl task started", "data": data}
        if body.action == "cancel":
            data = await self.scraper.cancel_crawl(self._require_task(body.task_id))
            return {"success": True, "message": "Crawl task canceled", "data": data}
        raise ValidationError("Invalid action. Use 'start' or 'cancel'")

    async def purge(self, action: str | None, url: str | None = None) -> dict[str, Any]:
        """Drop one URL, or everything, from the scraper's page cache."""
        if action == "cache_url":
            if not url:
                raise ValidationError("url parameter is required")
            data = await self.scraper.delete_cached_url(url)
            return {"success": True, "message": "Cache deleted for URL", "data": data}
        if action == "cache_clear":
            data = await self.scraper.clear_cache()
            return {"success": True, "message": "All cache cleared", "data": data}
        raise ValidationError("Invalid action. Use 'cache_url' or 'cache_clear'")
