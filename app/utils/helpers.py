from collections.abc import MutableMapping
from datetime import UTC, datetime
from typing import Any

from fastapi import FastAPI, Request
from fastapi.routing import APIRoute
from starlette.routing import BaseRoute, Match, Route


def host(request: Request) -> str:
    """Return the host IP address."""
    return request.client.host if request.client else "unknown"


def today_str() -> str:
    """Return today's date as a string."""
    return datetime.now(datetime.now().astimezone().tzinfo).strftime(
        "%Y-%m-%d %H:%M:%S",
    )


def utc_now() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(UTC)


def iso_now() -> str:
    """Return the current UTC time in ISO 8601 with millisecond precision."""
    return utc_now().isoformat(timespec="milliseconds").replace("+00:00", "Z")


def get_summary(request: Request) -> str | None:
    """Extract route summary from request."""

    scope: MutableMapping[str, Any] = request.scope
    app: FastAPI = scope["app"]
    routes: list[BaseRoute] = app.routes

    summary = None
    for route in routes:
        is_api_route = type(route) is APIRoute
        is_route = type(route) is Route
        if is_api_route and route.matches(scope)[0] == Match.FULL:
            summary = route.summary
            break
        if is_route and route.matches(scope)[0] == Match.FULL:
            summary = route.name
            break

    return summary


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an ISO timestamp coming back from an upstream JSON API."""
    if isinstance(value, datetime):
        return value
    if not value or not isinstance(value, str):
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


def format_spend(value: Any) -> str:
    """
    Render a spend amount as a short dollar label.

    ``1500`` becomes ``"$1.5k"``, ``40`` becomes ``"$40"``.
    """
    try:
        amount = float(value or 0)
    except (TypeError, ValueError):
        amount = 0.0
    if amount >= 1000:
        return f"${amount / 1000:.1f}k"
    return f"${amount:.0f}"


def format_last_active(value: Any) -> str:
    """Render a last sign-in timestamp as ``"Mon D"`` or ``"Never"``."""
    if not value:
        return "Never"
    moment = parse_timestamp(value)
    if moment is None:
        return "Unknown"
    return f"{moment:%b} {moment.day}"
