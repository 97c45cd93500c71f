"""Database models for the application."""

from app.models.account import (
    AccountDB,
    AuthorizedUserDB,
    FormSubmissionDB,
    UserActivityDB,
    UserInformationDB,
)
from app.models.billing import InvoiceDB, PaymentDB, UsageDB
from app.models.monitoring import (
    CrawlPageDB,
    CrawlTaskDB,
    DashboardSummaryDB,
    ErrorLogDB,
    ScrapeRequestDB,
)
from app.models.project import GscAccountDB, ProjectDB, ProjectImageDB

__all__ = [
    "AccountDB",
    "AuthorizedUserDB",
    "CrawlPageDB",
    "CrawlTaskDB",
    "DashboardSummaryDB",
    "ErrorLogDB",
    "FormSubmissionDB",
    "GscAccountDB",
    "InvoiceDB",
    "PaymentDB",
    "ProjectDB",
    "ProjectImageDB",
    "ScrapeRequestDB",
    "UsageDB",
    "UserActivityDB",
    "UserInformationDB",
]
