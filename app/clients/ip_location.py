"""Best-effort geolocation of form-submission IP addresses via ipwho.is."""

from ipaddress import ip_address
from logging import getLogger
from typing import Any

from httpx import AsyncClient, HTTPError, Response, Timeout

from app.configs import file_logger, settings
from app.decorators import with_retry
from app.managers import CacheManager, cache_manager

logger = file_logger(getLogger(__name__))

IP_PREFIX = "ip:"
IP_DETAILS_TTL = 24 * 60 * 60
DEFAULT_FLAG = "🌐"

LOCAL_DETAILS = {
    "country": "Local Network",
    "countryCode": "LOCAL",
    "region": "Private Network",
    "city": "Local Machine",
    "timezone": "",
    "flag": DEFAULT_FLAG,
    "isLocal": True,
}


def is_local(address: str) -> bool:
    """Loopback, private and link-local addresses have no public location."""
    try:
        parsed = ip_address(address)
    except ValueError:
        return False
    return parsed.is_private or parsed.is_loopback or parsed.is_link_local


def to_details(data: dict[str, Any]) -> dict[str, Any] | None:
    if not data.get("success"):
        return None
    return {
        "country": data.get("country"),
        "countryCode": data.get("country_code"),
        "region": data.get("region"),
        "city": data.get("city"),
        "timezone": (data.get("timezone") or {}).get("id") or "",
        "flag": (data.get("flag") or {}).get("emoji") or DEFAULT_FLAG,
        "isLocal": False,
    }


class IPLocationClient:
    """
    Resolves IP addresses to country, region and city.

    Lookups never raise: a failed or unsuccessful lookup returns ``None``.
    Successful answers are cached for a day.
    """

    def __init__(
        self,
        base_url: str | None = None,
        client: AsyncClient | None = None,
        cache: CacheManager | None = None,
    ) -> None:
        self._client = client or AsyncClient(
            base_url=(base_url or settings.IP_LOOKUP_URL).rstrip("/"),
            timeout=Timeout(settings.IP_LOOKUP_TIMEOUT),
        )
        self.cache = cache or cache_manager

    @with_retry(max_retries=2, base_delay=0.5)
    async def _get(self, address: str) -> Response:
        return await self._client.get(f"/{address}")

    async def _fetch(self, address: str) -> dict[str, Any] | None:
        try:
            response = await self._get(address)
            response.raise_for_status()
            return to_details(response.json())
        except (HTTPError, ValueError) as e:
            logger.warning(f"IP lookup failed for {address}: {e}")
            return None

    async def lookup(self, address: str | None) -> dict[str, Any] | None:
        if not address:
            return None
        if is_local(address):
            return dict(LOCAL_DETAILS)
        return await self.cache.get_or_set(f"{IP_PREFIX}{address}", lambda: self._fetch(address), IP_DETAILS_TTL)

    async def close(self) -> None:
        await self._client.aclose()
