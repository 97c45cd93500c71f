"""Tables of the separate monitoring store (scraper telemetry and crawl jobs)."""

from datetime import datetime
from typing import cast

from sqlalchemy import BigInteger, DateTime
from sqlalchemy.orm import declared_attr
from sqlmodel import Column, Field, SQLModel

from app.models.project import uuid_column


class ScrapeRequestDB(SQLModel, table=True):
    """One request served by the scraper service."""

    __tablename__ = cast("declared_attr[str]", "scrape_requests")

    id: int = Field(sa_column=Column(BigInteger, primary_key=True))
    timestamp: datetime | None = Field(
        default=None,
        sa_column=Column(DateTime(timezone=True), index=True),
    )
    user_id: str | None = Field(default=None, sa_column=uuid_column("user_id"))
    project_id: str | None = Field(default=None, sa_column=uuid_column("project_id"))
    blog_id: str | None = None
    url: str | None = None
    endpoint: str | None = None
    status_code: int | None = None
    duration_ms: float | None = None
    success: bool | None = None
    cache_hit: bool | None = None
    error_message: str | None = None


class ErrorLogDB(SQLModel, table=True):
    """An error raised by the scraper or content pipeline."""

    __tablename__ = cast("declared_attr[str]", "error_logs")

    id: int = Field(sa_column=Column(BigInteger, primary_key=True))
    timestamp: datetime | None = Field(
        default=None,
        sa_column=Column(DateTime(timezone=True), index=True),
    )
    user_id: str | None = Field(default=None, sa_column=uuid_column("user_id"))
    project_id: str | None = Field(default=None, sa_column=uuid_column("project_id"))
    blog_id: str | None = None
    error_type: str | None = None
    message: str | None = None
    stack_trace: str | None = None
    endpoint: str | None = None


class DashboardSummaryDB(SQLModel, table=True):
    """Single-row rollup view over the telemetry tables."""

    __tablename__ = cast("declared_attr[str]", "dashboard_summary")

    id: int = Field(sa_column=Column(BigInteger, primary_key=True))
    total_requests: int = 0
    successful_requests: int = 0
    failed_requests: int = 0
    avg_duration_ms: float | None = None
    total_errors: int = 0
    cache_hit_rate: float | None = None
    last_updated: datetime | None = Field(default=None, sa_column=Column(DateTime(timezone=True)))


class CrawlTaskDB(SQLModel, table=True):
    """A site crawl started through the scraper backend."""

    __tablename__ = cast("declared_attr[str]", "crawl_tasks")

    id: str = Field(sa_column=uuid_column("id", primary_key=True))
    user_id: str | None = Field(default=None, sa_column=uuid_column("user_id"))
    project_id: str | None = Field(default=None, sa_column=uuid_column("project_id"))
    seed_url: str | None = None
    status: str = "pending"
    pages_crawled: int = 0
    pages_failed: int = 0
    urls_found: int = 0
    urls_queued: int = 0
    created_at: datetime | None = Field(
        default=None,
        sa_column=Column(DateTime(timezone=True), index=True),
    )
    completed_at: datetime | None = Field(default=None, sa_column=Column(DateTime(timezone=True)))


class CrawlPageDB(SQLModel, table=True):
    """A page fetched during a crawl task."""

    __tablename__ = cast("declared_attr[str]", "crawl_pages")

    id: int = Field(sa_column=Column(BigInteger, primary_key=True))
    task_id: str = Field(sa_column=uuid_column("task_id", index=True))
    url: str | None = None
    status_code: int | None = None
    title: str | None = None
    error: str | None = None
    crawled_at: datetime | None = Field(
        default=None,
        sa_column=Column(DateTime(timezone=True), index=True),
    )
