# app/dependencies/__init__.py

from app.dependencies.dependencies import (
    AdminDep,
    AnalyticsServiceDep,
    AuthorizedUserPageDep,
    AuthorizedUserServiceDep,
    BlogPageDep,
    BlogServiceDep,
    CacheDep,
    ConsoleServiceDep,
    CrawlPageDep,
    CrawlServiceDep,
    CurrentUserDep,
    FormSubmissionPageDep,
    FormSubmissionServiceDep,
    ImagePageDep,
    ImageServiceDep,
    LLMClientDep,
    LogPageDep,
    LogServiceDep,
    ProjectPageDep,
    ProjectServiceDep,
    ProviderKeyDep,
    UsagePageDep,
    UserItemsPageDep,
    UserPageDep,
    UserProfileServiceDep,
    UserServiceDep,
    get_analytics_service,
    get_authorized_user_service,
    get_blog_service,
    get_cache_manager,
    get_console_service,
    get_crawl_service,
    get_current_user,
    get_document_store,
    get_form_submission_service,
    get_identity_client,
    get_image_service,
    get_ip_location_client,
    get_llm_client,
    get_log_service,
    get_project_service,
    get_scraper_client,
    get_user_profile_service,
    get_user_service,
    is_admin,
    require_admin,
    user_role,
)

__all__ = [
    "AdminDep",
    "AnalyticsServiceDep",
    "AuthorizedUserPageDep",
    "AuthorizedUserServiceDep",
    "BlogPageDep",
    "BlogServiceDep",
    "CacheDep",
    "ConsoleServiceDep",
    "CrawlPageDep",
    "CrawlServiceDep",
    "CurrentUserDep",
    "FormSubmissionPageDep",
    "FormSubmissionServiceDep",
    "ImagePageDep",
    "ImageServiceDep",
    "LLMClientDep",
    "LogPageDep",
    "LogServiceDep",
    "ProjectPageDep",
    "ProjectServiceDep",
    "ProviderKeyDep",
    "UsagePageDep",
    "UserItemsPageDep",
    "UserPageDep",
    "UserProfileServiceDep",
    "UserServiceDep",
    "get_analytics_service",
    "get_authorized_user_service",
    "get_blog_service",
    "get_cache_manager",
    "get_console_service",
    "get_crawl_service",
    "get_current_user",
    "get_document_store",
    "get_form_submission_service",
    "get_identity_client",
    "get_image_service",
    "get_ip_location_client",
    "get_llm_client",
    "get_log_service",
    "get_project_service",
    "get_scraper_client",
    "get_user_profile_service",
    "get_user_service",
    "is_admin",
    "require_admin",
    "user_role",
]
