"""
Dashboard analytics: headline metrics, active users, growth charts and
the recent-activity widgets.

Growth charts count records per calendar day or month of
``ANALYTICS_TIMEZONE``. The requested dates are local dates in that zone;
their bounds are converted to UTC before the stores are queried, and every
period up to today is returned, empty ones with a count of 0.
"""

from asyncio import gather
from collections import Counter
from collections.abc import Awaitable, Iterable, Mapping
from dataclasses import dataclass
from datetime import UTC, date, datetime, time, timedelta
from logging import getLogger
from typing import Any, Literal, Self
from zoneinfo import ZoneInfo

from app.clients.identity_client import IdentityClient
from app.configs import CacheConfig, file_logger, settings
from app.configs.settings import (
    ACTIVE_WINDOW_MINUTES,
    ACTIVITY_WINDOW_HOURS,
    DEFAULT_GROWTH_MONTHS,
    MAX_GROWTH_DAYS,
    RECENT_ITEMS_LIMIT,
    RECENT_PAYMENTS_LIMIT,
)
from app.errors import UpstreamError, ValidationError
from app.managers import CacheManager, cache_manager
from app.managers.cache_manager import USER_COUNT_KEY
from app.repositories import (
    AccountRepository,
    BlogRepository,
    PaymentRepository,
    ProjectRepository,
    Record,
    UserActivityRepository,
)
from app.schemas.details import BlogDetails, UserDetails
from app.services.enrichment import Resolver, collect_ids
from app.services.users import default_avatar_url
from app.utils import parse_timestamp, utc_now

logger = file_logger(getLogger(__name__))

type PeriodType = Literal["day", "month"]

PERIOD_TYPES = ("day", "month")


def as_utc(moment: datetime) -> datetime:
    """Treat naive timestamps as UTC, the way the stores write them."""
    return moment if moment.tzinfo else moment.replace(tzinfo=UTC)


def months_before(day: date, months: int) -> date:
    """Same day of the month ``months`` earlier, clamped to the month's end."""
    month_index = day.year * 12 + day.month - 1 - months
    year, month = divmod(month_index, 12)
    for candidate in (day.day, 30, 29, 28):
        try:
            return date(year, month + 1, min(day.day, candidate))
        except ValueError:
            continue
    raise ValueError(f"no valid day in {year}-{month + 1}")


def parse_day(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError as e:
        raise ValidationError("Invalid date format. Use YYYY-MM-DD format.") from e


@dataclass(frozen=True, slots=True)
class GrowthWindow:
    """
    Local date range and bucket size of a growth chart.

    Parameters
    ----------
    start, end : date
        Inclusive local dates in ``zone``.
    period : PeriodType
        ``"day"`` or ``"month"`` buckets.
    zone : ZoneInfo
        Zone whose calendar the buckets follow.
    """

    start: date
    end: date
    period: PeriodType
    zone: ZoneInfo

    @classmethod
    def from_query(
        cls,
        period_type: str | None,
        start_date: str | None,
        end_date: str | None,
        *,
        zone: ZoneInfo | None = None,
        today: date | None = None,
    ) -> Self:
        """
        Validate the chart query.

        Without dates the window is the last six months up to today. Both
        dates must be given together.

        Raises
        ------
        ValidationError
            Unknown period type, malformed or reversed dates, or a range
            longer than a year.
        """
        zone = zone or ZoneInfo(settings.ANALYTICS_TIMEZONE)
        period = period_type or "month"
        if period not in PERIOD_TYPES:
            raise ValidationError('Invalid period_type. Must be "day" or "month".')

        if start_date and end_date:
            start, end = parse_day(start_date), parse_day(end_date)
        elif start_date or end_date:
            raise ValidationError("start_date and end_date must be given together")
        else:
            end = today or utc_now().astimezone(zone).date()
            start = months_before(end, DEFAULT_GROWTH_MONTHS)

        if start > end:
            raise ValidationError("Start date must be before end date.")
        if (end - start).days > MAX_GROWTH_DAYS:
            raise ValidationError("Date range cannot exceed 1 year.")
        return cls(start=start, end=end, period=period, zone=zone)  # type: ignore[arg-type]

    @property
    def bounds(self) -> tuple[datetime, datetime]:
        """UTC instants of the first and last moment of the window."""
        first = datetime.combine(self.start, time.min, tzinfo=self.zone)
        last = datetime.combine(self.end, time.max, tzinfo=self.zone)
        return first.astimezone(UTC), last.astimezone(UTC)

    @property
    def date_format(self) -> str:
        return "%Y-%m-%d" if self.period == "day" else "%Y-%m"

    def key(self, moment: datetime) -> str:
        """Bucket key of ``moment`` in this window's calendar."""
        return as_utc(moment).astimezone(self.zone).strftime(self.date_format)

    def count(self, moments: Iterable[datetime]) -> Counter[str]:
        return Counter(self.key(moment) for moment in moments)

    def series(self, counts: Mapping[str, int], today: date | None = None) -> list[dict[str, Any]]:
        """
        One point per period from ``start`` to ``end``, never past today.

        Day points carry ``label`` like ``"Jan 5"`` and the ISO ``date``;
        month points carry the month abbreviation.
        """
        today = today or utc_now().astimezone(self.zone).date()
        last = min(self.end, today)
        points: list[dict[str, Any]] = []
        if self.period == "day":
            day = self.start
            while day <= last:
                key = day.isoformat()
                points.append(
                    {
                        "label": f"{day:%b} {day.day}",
                        "year": day.year,
                        "count": counts.get(key, 0),
                        "period_number": day.day,
                        "date": key,
                    },
                )
                day += timedelta(days=1)
            return points

        month = self.start.replace(day=1)
        while month <= last:
            points.append(
                {
                    "label": f"{month:%b}",
                    "year": month.year,
                    "count": counts.get(f"{month:%Y-%m}", 0),
                    "period_number": month.month,
                },
            )
            month = (month + timedelta(days=32)).replace(day=1)
        return points


def growth_summary(name: str, total: int, series: list[dict[str, Any]], period: PeriodType) -> dict[str, Any]:
    """``{success, data}`` of a growth chart, comparing the last two periods."""
    data: dict[str, Any] = {
        f"total_{name}": total,
        "growth_data": series,
        f"current_period_{name}": series[-1]["count"] if series else 0,
        f"last_period_{name}": series[-2]["count"] if len(series) > 1 else 0,
        "period_type": period,
    }
    if not series:
        data["message"] = "No data available for the selected date range"
    return {"success": True, "data": data}


def with_user(item: dict[str, Any], user: UserDetails | None) -> dict[str, Any]:
    """Attach the flat ``user_email``/``user_name``/``user_avatar`` fields of a widget row."""
    return item | {
        "user_email": user.email if user else "Unknown",
        "user_name": user.name if user else "Unknown",
        "user_avatar": user.avatar if user else None,
    }


class AnalyticsService:
    def __init__(
        self,
        identity: IdentityClient,
        resolver: Resolver,
        *,
        projects: ProjectRepository,
        blogs: BlogRepository,
        accounts: AccountRepository,
        payments: PaymentRepository,
        activity: UserActivityRepository,
        cache: CacheManager | None = None,
    ) -> None:
        self.identity = identity
        self.resolver = resolver
        self.projects = projects
        self.blogs = blogs
        self.accounts = accounts
        self.payments = payments
        self.activity = activity
        self.cache = cache or cache_manager
        self.count_ttl = CacheConfig().user_count_ttl

    @staticmethod
    async def _or_default[T](label: str, call: Awaitable[T], default: T) -> T:
        try:
            return await call
        except UpstreamError as e:
            logger.warning(f"{label} unavailable: {e.log_message}")
            return default

    async def metrics(self) -> dict[str, Any]:
        """
        Headline counters.

        Each counter is read independently; one that cannot be read is
        reported as 0 and logged. The relational counters share one session
        and are read one after another.
        """
        total_users = await self._or_default(
            "User count",
            self.cache.get_or_set(USER_COUNT_KEY, self.identity.count_users, self.count_ttl),
            0,
        )
        free_users = await self._or_default("Free plan count", self.accounts.count({"plan_type": "free"}), 0)
        pro_users = await self._or_default("Pro plan count", self.accounts.count({"plan_type": "pro"}), 0)
        payments, amount = await self._or_default("Captured payments", self.payments.captured_totals(), (0, 0))
        return {
            "success": True,
            "data": {
                "total_users": total_users,
                "free_users": free_users,
                "pro_users": pro_users,
                "total_payments": payments,
                "total_amount": amount,
            },
        }

    async def active_users(self, now: datetime | None = None) -> dict[str, Any]:
        """
        Users seen in the last 24 hours, most recent first.

        ``is_active`` marks the ones seen in the last five minutes.
        """
        now = now or utc_now()
        activities = await self.activity.since(now - timedelta(hours=ACTIVITY_WINDOW_HOURS))
        latest: dict[str, Record] = {}
        for activity in activities:
            latest.setdefault(str(activity["user_id"]), activity)

        users = await self.resolver.users(list(latest))
        active_since = now - timedelta(minutes=ACTIVE_WINDOW_MINUTES)
        active_users = []
        for user_id, activity in latest.items():
            seen = as_utc(activity["created_at"])
            details = users.get(user_id)
            active_users.append(
                {
                    "user_id": user_id,
                    "user_email": activity.get("user_email") or "Unknown",
                    "name": activity.get("name") or "Unknown User",
                    "last_activity": seen,
                    "provider": activity.get("provider") or "unknown",
                    "avatar": (details.avatar if details else None) or default_avatar_url(user_id),
                    "is_active": seen >= active_since,
                },
            )
        return {
            "success": True,
            "data": {
                "active_users": active_users,
                "total_count": len(active_users),
                "query_window_hours": ACTIVITY_WINDOW_HOURS,
                "active_window_minutes": ACTIVE_WINDOW_MINUTES,
            },
        }

    async def user_growth(self, window: GrowthWindow) -> dict[str, Any]:
        everyone = await self.identity.list_all_users()
        start, end = window.bounds
        created = [
            moment
            for moment in (parse_timestamp(user.get("created_at")) for user in everyone)
            if moment is not None and start <= as_utc(moment) <= end
        ]
        logger.info(f"User growth: {len(created)} of {len(everyone)} users in {window.start}..{window.end}")
        return growth_summary("users", len(everyone), window.series(window.count(created)), window.period)

    async def project_growth(self, window: GrowthWindow) -> dict[str, Any]:
        created = await self.projects.timestamps_between(*window.bounds)
        total = await self.projects.count()
        return growth_summary("projects", total, window.series(window.count(created)), window.period)

    async def blog_growth(self, window: GrowthWindow) -> dict[str, Any]:
        start, end = window.bounds
        counts, total = await gather(
            self.blogs.created_counts(start, end, date_format=window.date_format, timezone=window.zone.key),
            self.blogs.count_created(),
        )
        return growth_summary("blogs", total, window.series(counts), window.period)

    async def recent_projects(self) -> dict[str, Any]:
        projects = await self.projects.recent(RECENT_ITEMS_LIMIT)
        users = await self.resolver.users(collect_ids(projects, "user_id"))
        return {
            "success": True,
            "data": [
                with_user(
                    {
                        "id": project["id"],
                        "user_id": project.get("user_id"),
                        "title": project.get("name"),
                        "status": "Active" if project.get("is_active") else "Inactive",
                        "created_at": project.get("created_at"),
                    },
                    users.get(str(project.get("user_id") or "")),
                )
                for project in projects
            ],
        }

    async def recent_blogs(self) -> dict[str, Any]:
        blogs = await self.blogs.recent(RECENT_ITEMS_LIMIT)
        users = await self.resolver.users(collect_ids(blogs, "user_id"))
        return {
            "success": True,
            "data": [
                with_user(
                    {
                        "id": blog["_id"],
                        "user_id": blog.get("user_id"),
                        "title": BlogDetails.from_document(blog).title,
                        "status": blog.get("status") or "draft",
                        "created_at": blog.get("created_at"),
                    },
                    users.get(str(blog.get("user_id") or "")),
                )
                for blog in blogs
            ],
        }

    async def recent_payments(self) -> dict[str, Any]:
        """The 50 newest payments in any status, with who paid."""
        payments = await self.payments.recent(RECENT_PAYMENTS_LIMIT)
        users = await self.resolver.users(collect_ids(payments, "user_id"))
        return {
            "success": True,
            "data": [
                with_user(
                    {
                        "id": payment["id"],
                        "user_id": payment.get("user_id"),
                        "amount": payment.get("amount"),
                        "currency": payment.get("currency"),
                        "status": payment.get("status"),
                        "razorpay_payment_id": payment.get("razorpay_payment_id"),
                        "description": payment.get("description"),
                        "created_at": payment.get("created_at"),
                    },
                    users.get(str(payment.get("user_id") or "")),
                )
                for payment in payments
            ],
        }
