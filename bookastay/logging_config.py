from __future__ import annotations

import logging
import sys
from typing import Any, Callable, MutableMapping, cast

import structlog

from bookastay.config import DEBUG, LOG_LEVEL

# Type alias for structlog processor
Processor = Callable[[Any, str, MutableMapping[str, Any]], Any]

# Event keys whose values never reach the log stream
REDACTED_KEYS = frozenset(
    {"authorization", "password", "secret", "secret_key", "signature", "smtp_password", "token"}
)

# Gateway SDKs and HTTP clients log every request at INFO/DEBUG
QUIET_LOGGERS = ("urllib3", "requests", "botocore", "boto3", "s3transfer", "uvicorn.access")


def redact_secrets(_: Any, __: str, event_dict: MutableMapping[str, Any]) -> MutableMapping[str, Any]:
    for key in event_dict:
        if key.lower() in REDACTED_KEYS and event_dict[key]:
            event_dict[key] = "***"
    return event_dict


def setup_logging() -> None:
    """
    Configures structured logging globally using structlog.

    With LOG_LEVEL=DEBUG events render as colored console lines; at any other
    level they render as JSON for log aggregation. Values bound with
    structlog.contextvars (request_id, feed) are merged into every event
    emitted while they are bound.
    """
    logging.basicConfig(
        format="[%(asctime)s] %(levelname)s in %(name)s: %(message)s",
        stream=sys.stdout,
        level=LOG_LEVEL,
    )
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    renderer = cast(
        Processor,
        structlog.dev.ConsoleRenderer(colors=True) if DEBUG else structlog.processors.JSONRenderer(),
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            redact_secrets,
            structlog.dev.set_exc_info,
            structlog.processors.format_exc_info if not DEBUG else structlog.processors.StackInfoRenderer(),
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(logging.getLevelName(LOG_LEVEL)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
