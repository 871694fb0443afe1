"""Logging for lm-bootstrap runs.

Log lines are structlog events rendered through standard logging: a console
renderer on stderr for operators watching a run, JSON lines for ``--log-json``
and ``--log-file`` so a fleet run can be audited afterwards.

A bootstrap run handles the admin password and the KEMP ID credentials.
None of them may reach a log line, so every event passes through
``redact_secrets`` before it is rendered, whatever the caller bound.
"""

import logging
import sys
from collections.abc import MutableMapping
from pathlib import Path
from typing import Any

import structlog

MASK = "***"

# Event keys (and nested mapping keys) whose values are never rendered
SECRET_KEYS = frozenset(
    {
        "password",
        "passwd",
        "admin_password",
        "kempid",
        "kemp_id",
        "kemp_password",
        "authorization",
    }
)

# Chatty libraries; httpx logs each request URL, query string included
QUIET_LOGGERS = ("httpx", "httpcore")


def _mask(value: Any) -> Any:
    if isinstance(value, dict):
        return {k: (MASK if str(k).lower() in SECRET_KEYS else v) for k, v in value.items()}
    return value


def redact_secrets(
    logger: Any, method_name: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """structlog processor masking secret values one mapping level deep."""
    for key, value in event_dict.items():
        if key.lower() in SECRET_KEYS:
            event_dict[key] = MASK
        else:
            event_dict[key] = _mask(value)
    return event_dict


def _handler(level: int, log_file: str | Path | None) -> logging.Handler:
    handler: logging.Handler
    if log_file:
        handler = logging.FileHandler(str(log_file))
    else:
        handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    return handler


def configure_logging(
    level: str = "warning",
    log_file: str | Path | None = None,
    json_output: bool = False,
) -> None:
    """Configure logging for one CLI invocation.

    Args:
        level: Level name from config or -v/-q (debug, info, warning, error)
        log_file: Write events here instead of stderr
        json_output: Render JSON lines instead of console output
    """
    log_level = getattr(logging, level.upper(), logging.WARNING)

    logging.basicConfig(
        level=log_level,
        handlers=[_handler(log_level, log_file)],
        format="%(message)s",
        force=True,
    )
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))

    renderer: structlog.types.Processor
    if json_output:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            redact_secrets,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def verbosity_to_level(verbose: int, quiet: bool = False) -> str:
    """Translate -v/-q flags into a level name."""
    if quiet:
        return "error"
    if verbose >= 2:
        return "debug"
    if verbose == 1:
        return "info"
    return "warning"


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Logger for a module of this package."""
    return structlog.get_logger(name)
