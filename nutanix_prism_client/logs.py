"""Logger construction.

Two flavours, mirroring the usual development/production split:

- development: DEBUG level, human readable console output
- production: INFO level, one JSON object per line

Both render through a stdlib ``logging.Logger`` so applications can still
route or silence output with regular logging configuration. Nothing here
touches the global structlog configuration.
"""

from __future__ import annotations

import logging
from typing import List, Optional

import structlog
from structlog.types import Processor

LOGGER_NAME = "nutanix_prism_client"


def _shared_processors() -> List[Processor]:
    return [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]


def _stdlib_logger(name: str, level: int) -> logging.Logger:
    std = logging.getLogger(name)
    if not std.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(message)s"))
        std.addHandler(handler)
        std.propagate = False
    std.setLevel(level)
    return std


def new_development_logger(name: str = LOGGER_NAME) -> structlog.stdlib.BoundLogger:
    processors = _shared_processors() + [
        structlog.dev.ConsoleRenderer(
            colors=False,
            exception_formatter=structlog.dev.plain_traceback,
        ),
    ]
    return structlog.wrap_logger(
        _stdlib_logger(f"{name}.development", logging.DEBUG),
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
    )


def new_production_logger(name: str = LOGGER_NAME) -> structlog.stdlib.BoundLogger:
    processors = _shared_processors() + [
        structlog.processors.format_exc_info,
        structlog.processors.JSONRenderer(),
    ]
    return structlog.wrap_logger(
        _stdlib_logger(f"{name}.production", logging.INFO),
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
    )


def new_logger(debug: bool = False, name: str = LOGGER_NAME) -> structlog.stdlib.BoundLogger:
    if debug:
        return new_development_logger(name)
    return new_production_logger(name)


def get_logger(name: Optional[str] = None) -> structlog.stdlib.BoundLogger:
    """Logger used when the caller did not hand one in.

    Events go to the stdlib logger ``name`` without installing handlers, so
    the host application's logging configuration decides what is shown.
    """
    processors = _shared_processors() + [
        structlog.processors.format_exc_info,
        structlog.processors.KeyValueRenderer(key_order=["event"]),
    ]
    return structlog.wrap_logger(
        logging.getLogger(name or LOGGER_NAME),
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
    )
