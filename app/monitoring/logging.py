"""
Structured logging with secret redaction.

This module configures structlog on top of the standard library loggers
every module obtains with ``file_logger(getLogger(__name__))``:

- pretty rich console output in development
- JSON output everywhere else
- redaction of secrets (passwords, keys, tokens, session cookies)
- request id correlation bound by the logging middleware

Security
--------
Values under sensitive keys are replaced wholesale, and bearer tokens,
JWTs and provider API keys are masked inside free-text messages.

Examples
--------
>>> from app.monitoring import get_logger
>>> logger = get_logger("my_module")
>>> logger.info("Crawl started", task_id="t-123")
"""

from logging import root
from re import Pattern
from re import compile as re_compile
from typing import Any

from rich.logging import RichHandler
from structlog import configure
from structlog import get_logger as struct_logger
from structlog.contextvars import bind_contextvars, clear_contextvars, merge_contextvars
from structlog.dev import ConsoleRenderer, RichTracebackFormatter
from structlog.processors import (
    JSONRenderer,
    StackInfoRenderer,
    TimeStamper,
    UnicodeDecoder,
    add_log_level,
    format_exc_info,
)
from structlog.stdlib import (
    BoundLogger,
    ExtraAdder,
    LoggerFactory,
    PositionalArgumentsFormatter,
    ProcessorFormatter,
    add_logger_name,
    filter_by_level,
)
from structlog.types import EventDict, Processor, WrappedLogger

from app.configs.settings import settings

REDACTED = "[REDACTED]"

# Keys whose values never reach a log line
SENSITIVE_KEYS: frozenset[str] = frozenset(
    {
        "password",
        "api_key",
        "apikey",
        "authorization",
        "cookie",
        "token",
        "access_token",
        "refresh_token",
        "service_role_key",
        "x-api-key",
    },
)

# Order matters: the JWT pattern must run before the generic bearer one
SECRET_PATTERNS: list[tuple[Pattern[str], str]] = [
    (re_compile(r"eyJ[a-zA-Z0-9_-]*\.eyJ[a-zA-Z0-9_-]*\.[a-zA-Z0-9_-]*"), "[REDACTED_JWT]"),
    (re_compile(r"(?i)bearer\s+[a-zA-Z0-9._~+/=-]+"), "Bearer [REDACTED]"),
    (re_compile(r"\bsk-(?:ant-)?[a-zA-Z0-9_-]{10,}"), "[REDACTED_KEY]"),
]

# Characters to sanitize to prevent log injection
CONTROL_CHARS = str.maketrans({"\n": "\\n", "\r": "\\r", "\t": "\\t", "\x00": ""})


def sanitize_log_message(message: str) -> str:
    r"""
    Escape control characters so one log call stays one line.

    >>> sanitize_log_message("Hello\nWorld")
    'Hello\\nWorld'
    """
    return message.translate(CONTROL_CHARS)


def redact_secrets(message: str) -> str:
    """
    Mask tokens and keys inside free text.

    >>> redact_secrets("Authorization: Bearer abc.def")
    'Authorization: Bearer [REDACTED]'
    """
    for pattern, replacement in SECRET_PATTERNS:
        message = pattern.sub(replacement, message)
    return message


def redact_mapping(values: dict[str, Any]) -> dict[str, Any]:
    """Replace the values of sensitive keys, recursing into nested dicts."""
    return {
        key: REDACTED
        if key.lower() in SENSITIVE_KEYS
        else redact_mapping(value)
        if isinstance(value, dict)
        else value
        for key, value in values.items()
    }


def sanitize_event_dict(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Structlog processor applying key and pattern redaction to an event."""
    event_dict = redact_mapping(event_dict)
    for key, value in event_dict.items():
        if isinstance(value, str):
            event_dict[key] = redact_secrets(sanitize_log_message(value))
    return event_dict


def renderer(*, colors: bool = True) -> Processor:
    """Rich console renderer in development, JSON elsewhere."""
    if settings.ENVIRONMENT == "development":
        return ConsoleRenderer(
            colors=colors,
            pad_level=False,
            exception_formatter=RichTracebackFormatter(),
        )
    return JSONRenderer()


def shared_processors() -> list[Processor]:
    return [
        merge_contextvars,
        add_log_level,
        TimeStamper(fmt="iso", utc=True),
        ExtraAdder(),
        sanitize_event_dict,
    ]


def configure_logging() -> None:
    """Configure structlog and route the standard library root logger through it."""
    # Clear any existing root handlers to prevent duplicates on reload
    root.handlers.clear()
    root.setLevel(settings.LOG_LEVEL.upper())

    configure(
        processors=[
            filter_by_level,
            merge_contextvars,
            add_logger_name,
            add_log_level,
            PositionalArgumentsFormatter(),
            StackInfoRenderer(),
            format_exc_info,
            UnicodeDecoder(),
            ProcessorFormatter.wrap_for_formatter,
        ],
        context_class=dict,
        logger_factory=LoggerFactory(),
        wrapper_class=BoundLogger,
        cache_logger_on_first_use=True,
    )

    console_handler = RichHandler(rich_tracebacks=True, show_path=False)
    console_handler.setFormatter(
        ProcessorFormatter(
            processors=[ProcessorFormatter.remove_processors_meta, renderer(colors=False)],
            foreign_pre_chain=shared_processors(),
        ),
    )
    root.addHandler(console_handler)


def get_logger(name: str) -> BoundLogger:
    """
    Get a structured logger instance.

    >>> logger = get_logger("app.routes.blog")
    >>> logger.info("Blog deleted", blog_id="665f1c2e9b1d8a0012345678")
    """
    return struct_logger(name)


def bind_request_id(request_id: str, **context: Any) -> None:
    """Bind the request id (plus method and path) to the current logging context."""
    bind_contextvars(request_id=request_id, **context)


def clear_context() -> None:
    clear_contextvars()
