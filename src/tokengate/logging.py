"""structlog configuration.

Every module logs through structlog.get_logger() with dotted event names
("auth.login_succeeded"). The request id bound by RequestIdMiddleware is
merged from contextvars into every entry.
"""

import logging
from typing import Any

import structlog

from tokengate.config import Settings

_REDACTED_KEYS = ("token", "password", "secret", "cookie", "authorization")


def _redact_credentials(
    logger: Any, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Mask values of credential-looking keys, keeping a short prefix."""
    for key, value in event_dict.items():
        if isinstance(value, str) and any(k in key.lower() for k in _REDACTED_KEYS):
            event_dict[key] = value[:4] + "***" if len(value) > 8 else "***"
    return event_dict


def configure_logging(settings: Settings) -> None:
    """Configure structlog once for the process."""
    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        _redact_credentials,
        structlog.processors.StackInfoRenderer(),
    ]

    if settings.log_json or not settings.is_development:
        processors = shared_processors + [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = shared_processors + [structlog.dev.ConsoleRenderer()]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, settings.log_level.upper(), logging.INFO)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )
