"""Logging configuration."""
import datetime
import json
import logging
import sys
from typing import Any, List, Optional

import structlog
from structlog.types import EventDict, Processor

from bin_manager.config import Settings

PACKAGE_LOGGER = "bin_manager"

# Nothing is emitted until the host configures logging
logging.getLogger(PACKAGE_LOGGER).addHandler(logging.NullHandler())

IGNORED_LOGGERS = [
    "aiohttp",
    "asyncio"
]

CALLER_KEYS = ("module", "line", "file")


def add_timestamp(_, __, event_dict: EventDict) -> EventDict:
    """Add ISO timestamp to the event dict."""
    if "timestamp" not in event_dict:
        event_dict["timestamp"] = datetime.datetime.now(datetime.timezone.utc).isoformat()
    return event_dict


def drop_ignored_loggers(logger: Any, name: str, event_dict: EventDict) -> EventDict:
    """Drop events emitted through third-party loggers we don't care about."""
    logger_name = getattr(logger, "name", "") or ""
    if any(logger_name.startswith(ignored) for ignored in IGNORED_LOGGERS):
        raise structlog.DropEvent
    return event_dict


class CompactJSONRenderer:
    """Single-line JSON renderer with minimal output."""

    def __call__(self, _: Any, __: str, event_dict: EventDict) -> str:
        items = {
            "ts": event_dict.pop("timestamp", None),
            "lvl": event_dict.pop("level", "???"),
            "msg": event_dict.pop("event", ""),
            **{k: v for k, v in event_dict.items() if k in CALLER_KEYS}
        }
        if other := {k: v for k, v in event_dict.items() if k not in CALLER_KEYS}:
            items["data"] = other
        return json.dumps(items, separators=(",", ":"), default=str)


def configure_logging(level: Optional[str] = None, json_output: Optional[bool] = None) -> None:
    """Configure structured logging for the host application.

    Without ``level`` the BIN_MANAGER_LOG_LEVEL setting applies.
    JSON lines go to stderr when it is not a terminal (or when ``json_output``
    is forced); interactive sessions get colored console output.
    """
    if level is None:
        level = Settings.from_env().log_level

    level_no = logging.getLevelName(level.upper())
    if not isinstance(level_no, int):
        raise ValueError(f"Unknown log level: {level}")

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=level_no
    )
    logging.getLogger(PACKAGE_LOGGER).setLevel(level_no)

    if json_output is None:
        json_output = not sys.stderr.isatty()

    shared: List[Processor] = [
        structlog.stdlib.filter_by_level,
        drop_ignored_loggers,
        structlog.stdlib.add_log_level,
    ]

    if json_output:
        processors = shared + [
            add_timestamp,
            structlog.processors.format_exc_info,
            CompactJSONRenderer()
        ]
    else:
        processors = shared + [
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer(colors=True)
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structured logger writing through the stdlib logger of the same name.

    Processors come from the current structlog configuration; output is subject
    to stdlib levels and handlers, so the library stays quiet by default.
    """
    return structlog.wrap_logger(
        logging.getLogger(name),
        wrapper_class=structlog.stdlib.BoundLogger
    )
