"""Client for the identity provider's admin REST API (Supabase GoTrue)."""

from logging import getLogger
from typing import Any

from httpx import AsyncClient, HTTPError, Response, Timeout
from starlette.status import (
    HTTP_404_NOT_FOUND,
    HTTP_409_CONFLICT,
    HTTP_422_UNPROCESSABLE_CONTENT,
)

from app.configs import file_logger, settings
from app.configs.settings import IDENTITY_BATCH_SIZE, IDENTITY_MAX_PAGES
from app.errors import ConflictError, UpstreamError

logger = file_logger(getLogger(__name__))

type IdentityUser = dict[str, Any]


class IdentityClient:
    """
    Async wrapper over the auth admin endpoints.

    The upstream offers no batch get, so user lookups are one call per id;
    callers bound their own fan-out.
    """

    def __init__(
        self,
        base_url: str | None = None,
        service_key: str | None = None,
        client: AsyncClient | None = None,
    ) -> None:
        key = service_key if service_key is not None else settings.SUPABASE_SERVICE_ROLE_KEY.get_secret_value()
        self._client = client or AsyncClient(
            base_url=f"{(base_url or settings.SUPABASE_URL).rstrip('/')}/auth/v1",
            headers={"apikey": key, "Authorization": f"Bearer {key}"},
            timeout=Timeout(settings.UPSTREAM_TIMEOUT),
        )
        self._service_key = key

    async def _request(self, method: str, url: str, **kwargs: Any) -> Response:
        try:
            return await self._client.request(method, url, **kwargs)
        except HTTPError as e:
            raise UpstreamError(f"identity provider unreachable: {e}") from e

    @staticmethod
    def _raise_for_status(response: Response, action: str) -> None:
        if response.is_error:
            raise UpstreamError(
                f"identity provider {action} failed ({response.status_code}): {response.text[:200]}",
            )

    async def get_user(self, user_id: str) -> IdentityUser | None:
        """
        Fetch one user by id.

        Returns:
            IdentityUser | None: The raw user, or None when the id is unknown

        Raises:
            UpstreamError: On transport failure or any other error status
        """
        response = await self._request("GET", f"/admin/users/{user_id}")
        if response.status_code == HTTP_404_NOT_FOUND:
            return None
        self._raise_for_status(response, "user lookup")
        return response.json()

    async def list_users(self, page: int, per_page: int) -> list[IdentityUser]:
        """Fetch one page of users."""
        response = await self._request(
            "GET",
            "/admin/users",
            params={"page": page, "per_page": per_page},
        )
        self._raise_for_status(response, "user listing")
        return response.json().get("users") or []

    async def list_all_users(self) -> list[IdentityUser]:
        """
        Walk every page of users.

        Stops at the first short page, or after ``IDENTITY_MAX_PAGES`` pages.
        """
        users: list[IdentityUser] = []
        for page in range(1, IDENTITY_MAX_PAGES + 1):
            batch = await self.list_users(page, IDENTITY_BATCH_SIZE)
            users.extend(batch)
            if len(batch) < IDENTITY_BATCH_SIZE:
                break
        else:
            logger.warning(f"User walk stopped at the {IDENTITY_MAX_PAGES}-page safety limit")
        return users

    async def count_users(self) -> int:
        """Count users by walking pages; callers are expected to cache the result."""
        total = 0
        for page in range(1, IDENTITY_MAX_PAGES + 1):
            count = len(await self.list_users(page, IDENTITY_BATCH_SIZE))
            total += count
            if count < IDENTITY_BATCH_SIZE:
                break
        return total

    async def get_user_for_token(self, token: str) -> IdentityUser | None:
        """Resolve a session access token to its user; None if the token is not accepted."""
        response = await self._request(
            "GET",
            "/user",
            headers={"apikey": self._service_key, "Authorization": f"Bearer {token}"},
        )
        if response.is_client_error:
            return None
        self._raise_for_status(response, "session check")
        return response.json()

    async def create_user(
        self,
        email: str,
        password: str,
        user_metadata: dict[str, Any] | None = None,
        app_metadata: dict[str, Any] | None = None,
    ) -> IdentityUser:
        """Create a confirmed user."""
        response = await self._request(
            "POST",
            "/admin/users",
            json={
                "email": email,
                "password": password,
                "email_confirm": True,
                "user_metadata": user_metadata or {},
                "app_metadata": app_metadata or {},
            },
        )
        if response.status_code in (HTTP_409_CONFLICT, HTTP_422_UNPROCESSABLE_CONTENT):
            raise ConflictError(_error_message(response, "User already exists"), duplicate=True)
        self._raise_for_status(response, "user creation")
        return response.json()

    async def update_user(self, user_id: str, attributes: dict[str, Any]) -> IdentityUser | None:
        """
        Change a user's email, password or metadata.

        Returns:
            IdentityUser | None: The updated user, or None when the id is unknown

        Raises:
            ConflictError: The new email belongs to another user
        """
        response = await self._request("PUT", f"/admin/users/{user_id}", json=attributes)
        if response.status_code == HTTP_404_NOT_FOUND:
            return None
        if response.status_code in (HTTP_409_CONFLICT, HTTP_422_UNPROCESSABLE_CONTENT):
            raise ConflictError(_error_message(response, "Email already in use"), duplicate=True)
        self._raise_for_status(response, "user update")
        return response.json()

    async def delete_user(self, user_id: str) -> bool:
        """Delete a user; False when the id is unknown."""
        response = await self._request("DELETE", f"/admin/users/{user_id}")
        if response.status_code == HTTP_404_NOT_FOUND:
            return False
        self._raise_for_status(response, "user deletion")
        return True

    async def close(self) -> None:
        await self._client.aclose()


def _error_message(response: Response, default: str) -> str:
    try:
        body = response.json()
    except ValueError:
        return default
    if isinstance(body, dict):
        return body.get("msg") or body.get("message") or body.get("error_description") or default
    return default
