"""Repositories over the monitoring store."""

from typing import Any

from sqlalchemy import func, select

from app.models import CrawlPageDB, CrawlTaskDB, DashboardSummaryDB, ErrorLogDB, ScrapeRequestDB
from app.repositories.base import BaseRepository, Record

CRAWL_STATUSES = ("pending", "running", "completed", "failed")


class ScrapeRequestRepository(BaseRepository[ScrapeRequestDB]):
    model = ScrapeRequestDB
    order_field = "timestamp"


class ErrorLogRepository(BaseRepository[ErrorLogDB]):
    model = ErrorLogDB
    order_field = "timestamp"


class DashboardSummaryRepository(BaseRepository[DashboardSummaryDB]):
    model = DashboardSummaryDB
    order_field = "last_updated"

    async def get_summary(self) -> Record | None:
        """Return the single rollup row, if the view has one."""
        result = await self._execute(select(DashboardSummaryDB).limit(1))
        row = result.scalars().first()
        return row.model_dump() if row else None


class CrawlTaskRepository(BaseRepository[CrawlTaskDB]):
    model = CrawlTaskDB

    async def summary(self) -> dict[str, Any]:
        """
        Aggregate task counts by status and page/url totals in one query.

        Returns:
            dict[str, Any]: ``total_tasks``, ``<status>_tasks`` per status and
            ``total_pages_crawled``, ``total_pages_failed``,
            ``total_urls_found``, ``total_urls_queued``.
        """
        status_counts = [
            func.count().filter(CrawlTaskDB.status == status).label(f"{status}_tasks")
            for status in CRAWL_STATUSES
        ]
        totals = [
            func.coalesce(func.sum(getattr(CrawlTaskDB, column)), 0).label(f"total_{column}")
            for column in ("pages_crawled", "pages_failed", "urls_found", "urls_queued")
        ]
        statement = select(
            func.count().label("total_tasks"),
            *status_counts,
            *totals,
        ).select_from(CrawlTaskDB)
        row = (await self._execute(statement)).mappings().one()
        return {key: int(value or 0) for key, value in row.items()}


class CrawlPageRepository(BaseRepository[CrawlPageDB]):
    model = CrawlPageDB
    order_field = "crawled_at"
