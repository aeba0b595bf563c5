"""
Logging setup.

structlog renders every record, its own and those of stdlib loggers
(uvicorn, sqlalchemy), through one handler on the root logger.
"""

import logging
import os
import sys
from typing import Callable

import structlog

from .config import LogSettings

_SHARED_PROCESSORS = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.processors.TimeStamper(fmt="iso", utc=True),
    structlog.processors.StackInfoRenderer(),
]


def _build_handler(cfg: LogSettings) -> logging.Handler:
    if cfg.output == "file":
        directory = os.path.dirname(cfg.output_file)
        if directory:
            os.makedirs(directory, exist_ok=True)
        return logging.FileHandler(cfg.output_file, encoding="utf-8")
    if cfg.output == "stderr":
        return logging.StreamHandler(sys.stderr)
    return logging.StreamHandler(sys.stdout)


def configure_logging(cfg: LogSettings) -> Callable[[], None]:
    """
    Install the root handler and configure structlog.

    Returns a cleanup that flushes and detaches the handler.
    """
    if cfg.format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=False)

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=_SHARED_PROCESSORS,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.format_exc_info,
            renderer,
        ],
    )

    handler = _build_handler(cfg)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    previous_level = root.level
    root.addHandler(handler)
    root.setLevel(cfg.level.upper())

    structlog.configure(
        processors=_SHARED_PROCESSORS + [
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    def cleanup() -> None:
        handler.flush()
        root.removeHandler(handler)
        handler.close()
        root.setLevel(previous_level)

    return cleanup
