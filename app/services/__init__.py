"""Business logic behind the admin endpoints."""

from app.services.blogs import BlogService
from app.services.console import ConsoleService
from app.services.enrichment import Resolver
from app.services.monitoring import CrawlService, LogService
from app.services.projects import ImageService, ProjectService
from app.services.users import UserService

__all__ = [
    "BlogService",
    "ConsoleService",
    "CrawlService",
    "ImageService",
    "LogService",
    "ProjectService",
    "Resolver",
    "UserService",
]
