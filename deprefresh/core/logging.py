"""Logging for deprefresh — structlog events rendered through stdlib handlers.

Every line goes to stderr; stdout is reserved for ``deprefresh run`` output.
While a job is processed, :func:`job_log_context` tags each event with the
job id, package manager and repository.
"""

from __future__ import annotations

import logging
import logging.config
import os
from collections.abc import Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from deprefresh.job import Job

DEFAULT_LEVEL = "INFO"
DEFAULT_FORMAT = "console"

# Third-party loggers that are chatty at INFO.
_QUIETED = ("httpx", "httpcore")


def setup_logging(level: str | None = None) -> None:
    """Configure structlog and stdlib logging for the CLI.

    ``DEPREFRESH_LOG_LEVEL`` sets the level and ``DEPREFRESH_LOG_FORMAT``
    picks ``console`` or ``json`` output. An explicit *level* (``--verbose``)
    wins over the environment.
    """
    log_level = (level or os.environ.get("DEPREFRESH_LOG_LEVEL", DEFAULT_LEVEL)).upper()
    log_format = os.environ.get("DEPREFRESH_LOG_FORMAT", DEFAULT_FORMAT).lower()
    pre_chain = _pre_chain()

    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
    logging.config.dictConfig(_stdlib_config(log_level, _renderer(log_format), pre_chain))


@contextmanager
def job_log_context(job: Job) -> Iterator[None]:
    """Bind the job's identity to every event logged inside the block."""
    tokens = structlog.contextvars.bind_contextvars(
        job_id=job.id,
        package_manager=job.package_manager,
        repo=job.source.repo,
    )
    try:
        yield
    finally:
        structlog.contextvars.reset_contextvars(**tokens)


def _pre_chain() -> list[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]


def _renderer(log_format: str) -> structlog.types.Processor:
    if log_format == "json":
        return structlog.processors.JSONRenderer()
    # Colors only when someone is watching.
    return structlog.dev.ConsoleRenderer(colors=os.isatty(2))


def _stdlib_config(
    log_level: str,
    renderer: structlog.types.Processor,
    pre_chain: list[structlog.types.Processor],
) -> dict:
    loggers = {name: {"level": "WARNING"} for name in _QUIETED}
    loggers["deprefresh"] = {"level": log_level}
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "deprefresh": {
                "()": structlog.stdlib.ProcessorFormatter,
                "foreign_pre_chain": pre_chain,
                "processors": [
                    structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                    renderer,
                ],
            },
        },
        "handlers": {
            "stderr": {
                "class": "logging.StreamHandler",
                "stream": "ext://sys.stderr",
                "formatter": "deprefresh",
            },
        },
        "root": {"handlers": ["stderr"], "level": log_level},
        "loggers": loggers,
    }
