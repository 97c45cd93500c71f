from app.schemas.admin import (
    AuthorizedUserCreate,
    BlogUpdate,
    CrawlAction,
    FormSubmissionUpdate,
    ProjectStatusUpdate,
    UserCreate,
    UserUpdate,
)
from app.schemas.details import BlogDetails, ProjectDetails, UserDetails
from app.schemas.llm import ChatMessage, ConsoleChatRequest, ConsoleParameters, PlaygroundRequest
from app.schemas.pagination import PageRequest, Pagination, SortOrder

__all__ = [
    "AuthorizedUserCreate",
    "BlogDetails",
    "BlogUpdate",
    "ChatMessage",
    "ConsoleChatRequest",
    "ConsoleParameters",
    "CrawlAction",
    "FormSubmissionUpdate",
    "PageRequest",
    "Pagination",
    "PlaygroundRequest",
    "ProjectDetails",
    "ProjectStatusUpdate",
    "SortOrder",
    "UserCreate",
    "UserDetails",
    "UserUpdate",
]
