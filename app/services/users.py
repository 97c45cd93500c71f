"""Identity-provider users: listing, creation, edits and the user detail page."""

from collections.abc import Awaitable
from logging import getLogger
from typing import Any
from urllib.parse import quote

from app.clients.identity_client import IdentityClient, IdentityUser
from app.configs import CacheConfig, file_logger
from app.configs.settings import USER_PROJECTS_PREVIEW
from app.errors import DatabaseError, NotFoundError
from app.managers import CacheManager, cache_manager
from app.managers.cache_manager import USER_COUNT_KEY, USERS_PREFIX
from app.repositories import (
    AccountRepository,
    InvoiceRepository,
    UsageRepository,
    UserInformationRepository,
    require_uuid,
)
from app.schemas import PageRequest, Pagination, UserCreate, UserUpdate
from app.services.enrichment import Resolver, join
from app.services.projects import ProjectService
from app.utils import format_last_active, format_spend

logger = file_logger(getLogger(__name__))


def default_avatar_url(seed: str) -> str:
    """DiceBear avatar for users without a picture, seeded by their id."""
    return f"https://api.dicebear.com/9.x/adventurer/svg?seed={quote(seed or 'default', safe='')}"


def normalize_user(user: IdentityUser) -> dict[str, Any]:
    """
    Shape a raw identity-provider user for the dashboard.

    Args:
        user: Raw user as returned by the admin API

    Returns:
        dict[str, Any]: ``id, name, email, role, plan, spend, lastActive,
        avatar, createdAt``
    """
    metadata = user.get("user_metadata") or {}
    app_metadata = user.get("app_metadata") or {}
    email = user.get("email") or ""
    user_id = str(user.get("id") or "")
    return {
        "id": user_id,
        "name": metadata.get("full_name") or metadata.get("name") or email.split("@")[0] or "User",
        "email": email,
        "role": metadata.get("role") or app_metadata.get("role") or "member",
        "plan": metadata.get("plan") or "Free",
        "spend": format_spend(metadata.get("lifetime_spend")),
        "lastActive": format_last_active(user.get("last_sign_in_at")),
        "avatar": metadata.get("avatar_url") or default_avatar_url(user_id),
        "createdAt": user.get("created_at"),
    }


def user_matches(user: IdentityUser, term: str) -> bool:
    """Match ``term`` (already lower-cased) against email, name and id."""
    metadata = user.get("user_metadata") or {}
    name = metadata.get("full_name") or metadata.get("name") or ""
    return any(
        term in str(value).lower()
        for value in (user.get("email") or "", name, user.get("id") or "")
    )


class UserService:
    """
    User listing over an API that has no server-side search or count.

    Without a search term one upstream page is fetched and the total comes
    from the cached ``users:total`` count. With a search term every user is
    walked, filtered and paginated in memory.
    """

    def __init__(self, identity: IdentityClient, cache: CacheManager | None = None) -> None:
        self.identity = identity
        self.cache = cache or cache_manager
        self.count_ttl = CacheConfig().user_count_ttl

    async def total_users(self) -> int:
        return await self.cache.get_or_set(USER_COUNT_KEY, self.identity.count_users, self.count_ttl)

    async def list_users(self, page: PageRequest) -> dict[str, Any]:
        if page.search:
            everyone = await self.identity.list_all_users()
            matching = [user for user in everyone if user_matches(user, page.search)]
            total = len(matching)
            users = page.slice(matching)
            logger.info(f"User search '{page.search}' matched {total} of {len(everyone)} users")
        else:
            total = await self.total_users()
            users = await self.identity.list_users(page.page, page.limit)
        return {
            "success": True,
            "data": [normalize_user(user) for user in users],
            "pagination": Pagination.for_request(page, total).to_response(),
        }

    async def create_user(self, body: UserCreate) -> dict[str, Any]:
        user = await self.identity.create_user(
            email=body.email,
            password=body.password,
            user_metadata=body.metadata,
            app_metadata=body.app_metadata,
        )
        self.cache.invalidate_pattern(USERS_PREFIX)
        logger.info(f"Created user {user.get('id')}")
        return {"success": True, "data": normalize_user(user)}

    async def update_user(self, user_id: str, body: UserUpdate) -> dict[str, Any]:
        user = await self.identity.update_user(require_uuid(user_id, "Invalid user ID format"), body.attributes())
        if user is None:
            raise NotFoundError("User not found")
        self.cache.invalidate_pattern(USERS_PREFIX)
        logger.info(f"Updated user {user_id}: {sorted(body.attributes())}")
        return {"success": True, "data": normalize_user(user)}

    async def delete_user(self, user_id: str) -> dict[str, Any]:
        if not await self.identity.delete_user(require_uuid(user_id, "Invalid user ID format")):
            raise NotFoundError("User not found")
        self.cache.invalidate_pattern(USERS_PREFIX)
        logger.info(f"Deleted user {user_id}")
        return {"success": True}


class UserProfileService:
    """
    Everything the user detail page shows about one user.

    The identity record is required. Profile, account and project data live
    in other tables; a failure reading one of them leaves that part empty
    instead of failing the page.
    """

    def __init__(
        self,
        identity: IdentityClient,
        projects: ProjectService,
        resolver: Resolver,
        *,
        information: UserInformationRepository,
        accounts: AccountRepository,
        usage: UsageRepository,
        invoices: InvoiceRepository,
    ) -> None:
        self.identity = identity
        self.projects = projects
        self.resolver = resolver
        self.information = information
        self.accounts = accounts
        self.usage = usage
        self.invoices = invoices

    @staticmethod
    async def _optional[T](label: str, call: Awaitable[T], default: T) -> T:
        try:
            return await call
        except DatabaseError as e:
            logger.warning(f"{label} unavailable: {e.log_message}")
            return default

    async def profile(self, user_id: str) -> dict[str, Any]:
        """
        The user with their profile, account and first projects.

        Raises:
            ValidationError: ``user_id`` is not a UUID
            NotFoundError: The identity provider does not know the user
        """
        user = await self.identity.get_user(require_uuid(user_id, "Invalid user ID format"))
        if user is None:
            raise NotFoundError("User not found")

        information = await self._optional(
            "User information",
            self.information.get_by_field("user_id", user_id),
            None,
        )
        account = await self._optional("Account", self.accounts.get_by_field("user_id", user_id), None)
        projects, total_projects = await self._optional(
            "User projects",
            self.projects.repo.list_page(offset=0, limit=USER_PROJECTS_PREVIEW, filters={"user_id": user_id}),
            ([], 0),
        )
        return {
            "success": True,
            "data": {
                "user": normalize_user(user),
                "userInformation": information,
                "accountInformation": account,
                "projects": await self.projects.with_gsc(projects),
                "totalProjects": total_projects,
            },
        }

    async def usage_history(self, user_id: str, page: PageRequest) -> dict[str, Any]:
        """
        One page of metered usage with the project each charge belongs to.

        ``totalBaseCost`` and ``totalActualCharge`` cover every record of the
        user, not only the page.
        """
        filters = {"user_id": require_uuid(user_id, "Invalid user ID format")}
        records, total = await self.usage.list_page(offset=page.offset, limit=page.limit, filters=filters)
        totals = await self.usage.sum_columns(("base_cost", "actual_charge"), filters)
        lookups = await self.resolver.resolve(records, users=False, projects=True)
        return {
            "success": True,
            "data": join(records, lookups, ("project",)),
            "pagination": Pagination.for_request(page, total).to_response(),
            "totalBaseCost": totals["base_cost"],
            "totalActualCharge": totals["actual_charge"],
        }

    async def invoices_page(self, user_id: str, page: PageRequest) -> dict[str, Any]:
        records, total = await self.invoices.list_page(
            offset=page.offset,
            limit=page.limit,
            filters={"user_id": require_uuid(user_id, "Invalid user ID format")},
        )
        return {
            "success": True,
            "data": records,
            "pagination": Pagination.for_request(page, total).to_response(),
        }
