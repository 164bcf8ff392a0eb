"""structlog setup for nodesite.

Logs always go to stderr so stdout carries only command results and
``--json`` output stays parseable. Stdlib ``logging`` calls in the
services and structlog loggers (telemetry spans) share one processor
chain and one handler:

- human (default): console renderer, colored on a terminal
- ``--log-json``: one JSON object per line, tracebacks as structured dicts
"""

from __future__ import annotations

import logging
import sys
from typing import TextIO

import structlog

# Loggers that emit one INFO line per dataset request.
_HTTP_LOGGERS = ("httpx", "httpcore")


def _shared_processors() -> list[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]


def _final_processors(log_json: bool, stream: TextIO) -> list[structlog.types.Processor]:
    if log_json:
        return [
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer(),
        ]
    return [
        structlog.stdlib.ProcessorFormatter.remove_processors_meta,
        structlog.dev.ConsoleRenderer(colors=stream.isatty()),
    ]


def configure_logging(
    *,
    verbose: bool = False,
    log_json: bool = False,
    stream: TextIO | None = None,
) -> logging.Handler:
    """Route all nodesite logging through structlog.

    Args:
        verbose: ``nodesite.*`` loggers at DEBUG instead of WARNING.
        log_json: JSON lines instead of the console renderer.
        stream: Destination; defaults to ``sys.stderr`` at call time.

    Returns:
        The handler installed on the root logger.
    """
    out = stream or sys.stderr
    shared = _shared_processors()

    structlog.configure(
        processors=[*shared, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(out)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared,
            processors=_final_processors(log_json, out),
        )
    )

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(logging.WARNING)

    logging.getLogger("nodesite").setLevel(logging.DEBUG if verbose else logging.WARNING)
    for name in _HTTP_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    return handler
