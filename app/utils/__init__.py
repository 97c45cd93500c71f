"""Utility helper functions."""

from app.utils.helpers import (
    format_last_active,
    format_spend,
    get_summary,
    host,
    iso_now,
    parse_timestamp,
    today_str,
    utc_now,
)

__all__ = [
    "format_last_active",
    "format_spend",
    "get_summary",
    "host",
    "iso_now",
    "parse_timestamp",
    "today_str",
    "utc_now",
]
