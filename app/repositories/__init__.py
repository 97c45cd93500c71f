"""Repository layer for data access."""

from app.repositories.account import (
    AccountRepository,
    AuthorizedUserRepository,
    FormSubmissionRepository,
    UserActivityRepository,
    UserInformationRepository,
)
from app.repositories.base import BaseRepository, Record, is_uuid, parse_uuids, require_uuid
from app.repositories.billing import InvoiceRepository, PaymentRepository, UsageRepository
from app.repositories.blog import BlogRepository
from app.repositories.monitoring import (
    CrawlPageRepository,
    CrawlTaskRepository,
    DashboardSummaryRepository,
    ErrorLogRepository,
    ScrapeRequestRepository,
)
from app.repositories.project import ProjectImageRepository, ProjectRepository

__all__ = [
    "AccountRepository",
    "AuthorizedUserRepository",
    "BaseRepository",
    "BlogRepository",
    "CrawlPageRepository",
    "CrawlTaskRepository",
    "DashboardSummaryRepository",
    "ErrorLogRepository",
    "FormSubmissionRepository",
    "InvoiceRepository",
    "PaymentRepository",
    "ProjectImageRepository",
    "ProjectRepository",
    "Record",
    "ScrapeRequestRepository",
    "UsageRepository",
    "UserActivityRepository",
    "UserInformationRepository",
    "is_uuid",
    "parse_uuids",
    "require_uuid",
]
