"""
Readiness checks for the stores the dashboard reads from.

Response Format
---------------
{
    "status": "ready" | "not_ready",
    "timestamp": "2025-01-01T12:00:00+00:00",
    "version": "1.0.0",
    "checks": {
        "database": {"status": "pass", "response_ms": 15},
        "monitoring_database": {"status": "pass", "response_ms": 12},
        "document_store": {"status": "pass", "response_ms": 4},
        "cache": {"status": "pass", "size": 3, "maxSize": 200},
        "disk": {"status": "pass", "usage_percent": 45}
    }
}
"""

from asyncio import wait_for
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import StrEnum
from time import perf_counter
from typing import Any

from fastapi import FastAPI
from psutil import disk_usage
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from app.db.database import engine, monitoring_engine
from app.errors import DatabaseError
from app.managers import cache_manager
from app.utils.helpers import iso_now

# Health check timeouts (seconds)
HEALTH_CHECK_TIMEOUTS: dict[str, float] = {
    "database": 2.0,
    "document_store": 2.0,
}
DISK_WARN_PERCENT = 90
DISK_FAIL_PERCENT = 95


class CheckStatus(StrEnum):
    PASS = "pass"
    FAIL = "fail"
    WARN = "warn"


class OverallStatus(StrEnum):
    READY = "ready"
    NOT_READY = "not_ready"


@dataclass
class ComponentCheck:
    """
    Result of one component check.

    Attributes
    ----------
    status : CheckStatus
        pass, fail or warn
    response_ms : int | None
        Round-trip time in milliseconds
    message : str | None
        Failure details
    details : dict[str, Any]
        Check-specific values merged into the output
    """

    status: CheckStatus
    response_ms: int | None = None
    message: str | None = None
    details: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"status": self.status.value}
        if self.response_ms is not None:
            result["response_ms"] = self.response_ms
        if self.message is not None:
            result["message"] = self.message
        result.update(self.details)
        return result


@dataclass
class HealthStatus:
    status: OverallStatus
    timestamp: str
    version: str
    checks: dict[str, ComponentCheck] = field(default_factory=dict)

    @property
    def is_healthy(self) -> bool:
        return self.status == OverallStatus.READY

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "timestamp": self.timestamp,
            "version": self.version,
            "checks": {name: check.to_dict() for name, check in self.checks.items()},
        }


async def _timed_check(label: str, call: Callable[[], Awaitable[Any]], timeout: float) -> ComponentCheck:
    start = perf_counter()
    try:
        await wait_for(call(), timeout=timeout)
    except TimeoutError:
        status, message = CheckStatus.FAIL, f"{label} check timed out"
    except (SQLAlchemyError, DatabaseError, OSError) as e:
        status, message = CheckStatus.FAIL, f"{label} check failed: {e!s}"
    else:
        status, message = CheckStatus.PASS, None
    return ComponentCheck(status=status, response_ms=int((perf_counter() - start) * 1000), message=message)


async def _select_one(target: AsyncEngine) -> None:
    async with target.connect() as conn:
        await conn.execute(text("SELECT 1"))


class HealthChecker:
    """
    Checks both relational stores, the document store, the cache and disk.

    Any failing check makes the service ``not_ready``; a warning does not.
    """

    def __init__(self, app: FastAPI, version: str = "1.0.0") -> None:
        self.app = app
        self.version = version

    async def check_readiness(self) -> HealthStatus:
        timeout = HEALTH_CHECK_TIMEOUTS["database"]
        checks = {
            "database": await _timed_check("Database", lambda: _select_one(engine), timeout),
            "monitoring_database": await _timed_check(
                "Monitoring database",
                lambda: _select_one(monitoring_engine),
                timeout,
            ),
            "document_store": await self._check_document_store(),
            "cache": self._check_cache(),
            "disk": self._check_disk(),
        }
        failed = any(check.status == CheckStatus.FAIL for check in checks.values())
        return HealthStatus(
            status=OverallStatus.NOT_READY if failed else OverallStatus.READY,
            timestamp=iso_now(),
            version=self.version,
            checks=checks,
        )

    async def _check_document_store(self) -> ComponentCheck:
        documents = getattr(self.app.state, "documents", None)
        if documents is None:
            return ComponentCheck(status=CheckStatus.FAIL, message="Document store not initialized")
        return await _timed_check("Document store", documents.ping, HEALTH_CHECK_TIMEOUTS["document_store"])

    @staticmethod
    def _check_cache() -> ComponentCheck:
        stats = cache_manager.stats()
        return ComponentCheck(
            status=CheckStatus.PASS,
            details={"size": stats["size"], "maxSize": stats["maxSize"]},
        )

    @staticmethod
    def _check_disk() -> ComponentCheck:
        try:
            usage_percent = disk_usage("/").percent
        except OSError as e:
            return ComponentCheck(status=CheckStatus.WARN, message=f"Could not check disk: {e!s}")
        if usage_percent > DISK_FAIL_PERCENT:
            status = CheckStatus.FAIL
        elif usage_percent > DISK_WARN_PERCENT:
            status = CheckStatus.WARN
        else:
            status = CheckStatus.PASS
        return ComponentCheck(status=status, details={"usage_percent": usage_percent})
