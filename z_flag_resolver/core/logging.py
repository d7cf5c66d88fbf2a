"""Structured logging for the CLI — structlog rendering over stdlib logging.

Library modules only ever call ``logging.getLogger(__name__)``; nothing is
configured until an application (the ``z-flags`` CLI) calls
:func:`setup_logging`. Log output goes to stderr because stdout carries the
flag list that callers consume.
"""

from __future__ import annotations

import logging
import logging.config
import sys

import structlog

LOG_FORMATS = ("console", "json")


def _pre_chain(log_format: str) -> list[structlog.types.Processor]:
    processors: list[structlog.types.Processor] = [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
    ]
    if log_format == "json":
        processors.append(structlog.processors.TimeStamper(fmt="iso", utc=True))
    processors.append(structlog.processors.format_exc_info)
    return processors


def _renderer(log_format: str) -> structlog.types.Processor:
    if log_format == "json":
        return structlog.processors.JSONRenderer(sort_keys=True)
    return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())


def setup_logging(level: str = "INFO", log_format: str = "console") -> None:
    """Route every stdlib log record through a structlog formatter on stderr.

    ``log_format`` is ``console`` (human readable) or ``json`` (one object per
    line); anything else falls back to console.
    """
    level = level.upper()
    log_format = log_format.lower()
    if log_format not in LOG_FORMATS:
        log_format = "console"
    pre_chain = _pre_chain(log_format)

    structlog.configure(
        processors=pre_chain + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "zflags": {
                    "()": structlog.stdlib.ProcessorFormatter,
                    "foreign_pre_chain": pre_chain,
                    "processors": [
                        structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                        _renderer(log_format),
                    ],
                },
            },
            "handlers": {
                "stderr": {
                    "class": "logging.StreamHandler",
                    "stream": "ext://sys.stderr",
                    "formatter": "zflags",
                },
            },
            # third-party libraries stay at WARNING; only our package follows --verbose
            "root": {"handlers": ["stderr"], "level": "WARNING"},
            "loggers": {"z_flag_resolver": {"level": level}},
        }
    )
