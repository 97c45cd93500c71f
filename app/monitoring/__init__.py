"""
Observability: structured logging and readiness checks.

Usage
-----
>>> from app.monitoring import configure_logging, HealthChecker
>>> configure_logging()
>>> status = await HealthChecker(app).check_readiness()
"""

from app.monitoring.health import (
    CheckStatus,
    ComponentCheck,
    HealthChecker,
    HealthStatus,
    OverallStatus,
)
from app.monitoring.logging import (
    bind_request_id,
    clear_context,
    configure_logging,
    get_logger,
    redact_mapping,
    redact_secrets,
    sanitize_log_message,
)

__all__ = [
    "CheckStatus",
    "ComponentCheck",
    "HealthChecker",
    "HealthStatus",
    "OverallStatus",
    "bind_request_id",
    "clear_context",
    "configure_logging",
    "get_logger",
    "redact_mapping",
    "redact_secrets",
    "sanitize_log_message",
]
