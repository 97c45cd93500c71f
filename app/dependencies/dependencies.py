# app/dependencies/dependencies.py

"""Application dependencies: session auth, shared clients, repositories and services."""

from collections.abc import Callable
from typing import Annotated

from fastapi import Depends, Query, Request
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from app.clients.identity_client import IdentityClient, IdentityUser
from app.clients.ip_location import IPLocationClient
from app.clients.scraper_client import ScraperClient
from app.configs import settings
from app.configs.settings import (
    AUTHORIZED_USERS_PAGE,
    BLOGS_PAGE,
    CRAWL_PAGE,
    FORM_SUBMISSIONS_PAGE,
    IMAGES_PAGE,
    LOGS_PAGE,
    PROJECTS_PAGE,
    USAGE_PAGE,
    USER_ITEMS_PAGE,
    USERS_PAGE,
)
from app.db import DocumentStore, get_monitoring_session, get_session
from app.errors import AuthError, ForbiddenError, ProviderAuthError
from app.managers.cache_manager import CacheManager, cache_manager
from app.repositories import (
    AccountRepository,
    AuthorizedUserRepository,
    BlogRepository,
    CrawlPageRepository,
    CrawlTaskRepository,
    DashboardSummaryRepository,
    ErrorLogRepository,
    FormSubmissionRepository,
    InvoiceRepository,
    PaymentRepository,
    ProjectImageRepository,
    ProjectRepository,
    ScrapeRequestRepository,
    UsageRepository,
    UserActivityRepository,
    UserInformationRepository,
)
from app.repositories.blog import BLOG_SORT_FIELDS, BLOGS_COLLECTION, DEFAULT_BLOG_SORT
from app.schemas import PageRequest
from app.services.access import AuthorizedUserService, FormSubmissionService
from app.services.analytics import AnalyticsService
from app.services.blogs import BlogService
from app.services.console import ConsoleService
from app.services.enrichment import Resolver
from app.services.monitoring import CrawlService, LogService
from app.services.projects import ImageService, ProjectService
from app.services.users import UserProfileService, UserService

ADMIN_ROLES = frozenset({"admin", "administrator"})
BEARER_PREFIX = "bearer "


# --- Shared clients (created by the lifespan, stored on app.state) ---
def get_identity_client(request: Request) -> IdentityClient:
    return request.app.state.identity


def get_scraper_client(request: Request) -> ScraperClient:
    return request.app.state.scraper


def get_llm_client(request: Request) -> AsyncClient:
    return request.app.state.llm_client


def get_document_store(request: Request) -> DocumentStore:
    return request.app.state.documents


def get_ip_location_client(request: Request) -> IPLocationClient:
    return request.app.state.ip_location


def get_cache_manager() -> CacheManager:
    """Dependency to get the global cache manager instance."""
    return cache_manager


IdentityDep = Annotated[IdentityClient, Depends(get_identity_client)]
ScraperDep = Annotated[ScraperClient, Depends(get_scraper_client)]
LLMClientDep = Annotated[AsyncClient, Depends(get_llm_client)]
DocumentStoreDep = Annotated[DocumentStore, Depends(get_document_store)]
IPLocationDep = Annotated[IPLocationClient, Depends(get_ip_location_client)]
CacheDep = Annotated[CacheManager, Depends(get_cache_manager)]


# --- Auth ---
def bearer_token(request: Request) -> str | None:
    """Return the token of an ``Authorization: Bearer`` header, if any."""
    header = request.headers.get("Authorization", "")
    if header.lower().startswith(BEARER_PREFIX):
        return header[len(BEARER_PREFIX) :].strip() or None
    return None


def session_token(request: Request) -> str | None:
    """Session token from the auth cookie, falling back to a Bearer header."""
    return request.cookies.get(settings.AUTH_COOKIE_NAME) or bearer_token(request)


def user_role(user: IdentityUser) -> str:
    """
    Role claim of a user, lower-cased.

    ``user_metadata.role`` wins over ``app_metadata.role``; a user with
    neither has the empty role.
    """
    role = (user.get("user_metadata") or {}).get("role") or (user.get("app_metadata") or {}).get("role")
    return str(role or "").lower()


def is_admin(user: IdentityUser) -> bool:
    return user_role(user) in ADMIN_ROLES


async def get_current_user(request: Request, identity: IdentityDep) -> IdentityUser:
    """
    Resolve the caller's session to an identity-provider user.

    Parameters
    ----------
    request : Request
        Incoming request carrying the session cookie or Bearer token.
    identity : IdentityClient
        Identity provider client.

    Returns
    -------
    IdentityUser
        The session's user.

    Raises
    ------
    AuthError
        If no session token was sent or the provider does not accept it.
    """
    token = session_token(request)
    if not token:
        raise AuthError()
    user = await identity.get_user_for_token(token)
    if not user:
        raise AuthError("Invalid or expired session")
    return user


CurrentUserDep = Annotated[IdentityUser, Depends(get_current_user)]


async def require_admin(user: CurrentUserDep) -> IdentityUser:
    """
    Get the current user, only if their role is an admin role.

    Raises
    ------
    ForbiddenError
        If the user is authenticated but not an admin.
    """
    if not is_admin(user):
        raise ForbiddenError()
    return user


AdminDep = Annotated[IdentityUser, Depends(require_admin)]


def get_provider_key(request: Request) -> str:
    """
    Caller-supplied LLM provider key from the Bearer header.

    Raises
    ------
    ProviderAuthError
        If no key was sent.
    """
    key = bearer_token(request)
    if not key:
        raise ProviderAuthError(provider=request.path_params.get("provider", "unknown"))
    return key


ProviderKeyDep = Annotated[str, Depends(get_provider_key)]


# --- Repositories ---
MainSessionDep = Annotated[AsyncSession, Depends(get_session)]
MonitoringSessionDep = Annotated[AsyncSession, Depends(get_monitoring_session)]


def get_project_repository(session: MainSessionDep) -> ProjectRepository:
    return ProjectRepository(session)


def get_image_repository(session: MainSessionDep) -> ProjectImageRepository:
    return ProjectImageRepository(session)


def get_blog_repository(store: DocumentStoreDep) -> BlogRepository:
    return BlogRepository(store.collection(BLOGS_COLLECTION))


ProjectRepoDep = Annotated[ProjectRepository, Depends(get_project_repository)]
ImageRepoDep = Annotated[ProjectImageRepository, Depends(get_image_repository)]
BlogRepoDep = Annotated[BlogRepository, Depends(get_blog_repository)]


def get_authorized_user_repository(session: MainSessionDep) -> AuthorizedUserRepository:
    return AuthorizedUserRepository(session)


def get_form_submission_repository(session: MainSessionDep) -> FormSubmissionRepository:
    return FormSubmissionRepository(session)


AuthorizedUserRepoDep = Annotated[AuthorizedUserRepository, Depends(get_authorized_user_repository)]
FormSubmissionRepoDep = Annotated[FormSubmissionRepository, Depends(get_form_submission_repository)]


# --- Services ---
def get_resolver(identity: IdentityDep, projects: ProjectRepoDep, blogs: BlogRepoDep) -> Resolver:
    return Resolver(identity, projects=projects, blogs=blogs)


ResolverDep = Annotated[Resolver, Depends(get_resolver)]


def get_blog_service(repo: BlogRepoDep, resolver: ResolverDep, cache: CacheDep) -> BlogService:
    return BlogService(repo, resolver, cache)


def get_user_service(identity: IdentityDep, cache: CacheDep) -> UserService:
    return UserService(identity, cache)


def get_project_service(repo: ProjectRepoDep, resolver: ResolverDep) -> ProjectService:
    return ProjectService(repo, resolver)


def get_image_service(repo: ImageRepoDep, resolver: ResolverDep) -> ImageService:
    return ImageService(repo, resolver)


def get_log_service(session: MonitoringSessionDep, resolver: ResolverDep) -> LogService:
    return LogService(
        ScrapeRequestRepository(session),
        ErrorLogRepository(session),
        DashboardSummaryRepository(session),
        resolver,
    )


def get_crawl_service(
    session: MonitoringSessionDep,
    scraper: ScraperDep,
    resolver: ResolverDep,
) -> CrawlService:
    return CrawlService(CrawlTaskRepository(session), CrawlPageRepository(session), scraper, resolver)


def get_console_service(client: LLMClientDep) -> ConsoleService:
    return ConsoleService(client)


def get_analytics_service(
    session: MainSessionDep,
    identity: IdentityDep,
    resolver: ResolverDep,
    projects: ProjectRepoDep,
    blogs: BlogRepoDep,
    cache: CacheDep,
) -> AnalyticsService:
    return AnalyticsService(
        identity,
        resolver,
        projects=projects,
        blogs=blogs,
        accounts=AccountRepository(session),
        payments=PaymentRepository(session),
        activity=UserActivityRepository(session),
        cache=cache,
    )


def get_authorized_user_service(repo: AuthorizedUserRepoDep, resolver: ResolverDep) -> AuthorizedUserService:
    return AuthorizedUserService(repo, resolver)


def get_form_submission_service(
    repo: FormSubmissionRepoDep,
    locations: IPLocationDep,
) -> FormSubmissionService:
    return FormSubmissionService(repo, locations)


def get_user_profile_service(
    session: MainSessionDep,
    identity: IdentityDep,
    projects: ProjectRepoDep,
    resolver: ResolverDep,
) -> UserProfileService:
    return UserProfileService(
        identity,
        ProjectService(projects, resolver),
        resolver,
        information=UserInformationRepository(session),
        accounts=AccountRepository(session),
        usage=UsageRepository(session),
        invoices=InvoiceRepository(session),
    )


BlogServiceDep = Annotated[BlogService, Depends(get_blog_service)]
UserServiceDep = Annotated[UserService, Depends(get_user_service)]
ProjectServiceDep = Annotated[ProjectService, Depends(get_project_service)]
ImageServiceDep = Annotated[ImageService, Depends(get_image_service)]
LogServiceDep = Annotated[LogService, Depends(get_log_service)]
CrawlServiceDep = Annotated[CrawlService, Depends(get_crawl_service)]
ConsoleServiceDep = Annotated[ConsoleService, Depends(get_console_service)]
AnalyticsServiceDep = Annotated[AnalyticsService, Depends(get_analytics_service)]
AuthorizedUserServiceDep = Annotated[AuthorizedUserService, Depends(get_authorized_user_service)]
FormSubmissionServiceDep = Annotated[FormSubmissionService, Depends(get_form_submission_service)]
UserProfileServiceDep = Annotated[UserProfileService, Depends(get_user_profile_service)]


# --- Query containers ---
def page_query(
    page_size: tuple[int, int],
    allowed_sorts: tuple[str, ...] = (),
    default_sort: str = "created_at",
) -> Callable[..., PageRequest]:
    """
    Build a dependency that reads ``page``/``limit``/``search``/``sort``/``order``.

    Out-of-range values are clamped rather than rejected, so the query
    parameters are declared without bounds.
    """
    default_limit, max_limit = page_size

    def dependency(
        page: Annotated[int, Query(description="1-based page number")] = 1,
        limit: Annotated[int, Query(description=f"Page size (max {max_limit})")] = default_limit,
        search: Annotated[str | None, Query(description="Free-text search term")] = None,
        sort: Annotated[str | None, Query(description="Sort field")] = None,
        order: Annotated[str | None, Query(description="asc or desc")] = None,
    ) -> PageRequest:
        return PageRequest.from_query(
            page,
            limit,
            search,
            sort,
            order,
            default_limit=default_limit,
            max_limit=max_limit,
            allowed_sorts=allowed_sorts,
            default_sort=default_sort,
        )

    return dependency


def get_user_page(
    page: Annotated[int, Query(description="1-based page number")] = 1,
    per_page: Annotated[int, Query(alias="perPage", description="Page size")] = USERS_PAGE[0],
    search: Annotated[str | None, Query(description="Matches email, name or id")] = None,
) -> PageRequest:
    return PageRequest.from_query(
        page,
        per_page,
        search,
        default_limit=USERS_PAGE[0],
        max_limit=USERS_PAGE[1],
    )


BlogPageDep = Annotated[
    PageRequest,
    Depends(page_query(BLOGS_PAGE, BLOG_SORT_FIELDS, DEFAULT_BLOG_SORT)),
]
UserPageDep = Annotated[PageRequest, Depends(get_user_page)]
ProjectPageDep = Annotated[PageRequest, Depends(page_query(PROJECTS_PAGE))]
ImagePageDep = Annotated[PageRequest, Depends(page_query(IMAGES_PAGE))]
LogPageDep = Annotated[PageRequest, Depends(page_query(LOGS_PAGE))]
CrawlPageDep = Annotated[PageRequest, Depends(page_query(CRAWL_PAGE))]
AuthorizedUserPageDep = Annotated[PageRequest, Depends(page_query(AUTHORIZED_USERS_PAGE))]
FormSubmissionPageDep = Annotated[PageRequest, Depends(page_query(FORM_SUBMISSIONS_PAGE))]
UserItemsPageDep = Annotated[PageRequest, Depends(page_query(USER_ITEMS_PAGE))]
UsagePageDep = Annotated[PageRequest, Depends(page_query(USAGE_PAGE))]
