"""
structlog configuration for the reporting API and worker processes.

Every entry is a JSON line on stdout carrying `service` plus whatever the
current report task bound with `report_task_context`.
"""

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import structlog
from structlog.stdlib import LoggerFactory

SERVICE_NAME = "jobboard-reports"

NOISY_LOGGERS = ("psycopg.pool", "uvicorn.access", "httpx")


def setup_logging(log_level: str = "INFO") -> None:
    """
    Configure structlog and stdlib logging.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            add_service_name,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=LoggerFactory(),
        context_class=dict,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper()),
    )

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def add_service_name(logger, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    event_dict.setdefault("service", SERVICE_NAME)
    return event_dict


def get_logger(name: str = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


@contextmanager
def report_task_context(recruiter_id: int, enqueued_at: str) -> Iterator[None]:
    """Bind the task being processed so the job's own log lines carry it."""
    with structlog.contextvars.bound_contextvars(
        task_recruiter_id=recruiter_id, task_enqueued_at=enqueued_at
    ):
        yield


def log_readiness(component: str, ok: bool, latency_ms: float, error: str | None = None) -> None:
    """One line per /readyz dependency check."""
    logger = get_logger("readiness")

    fields = {"component": component, "ok": ok, "latency_ms": latency_ms}
    if error:
        fields["error"] = error

    if ok:
        logger.debug("Dependency ready", **fields)
    else:
        logger.warning("Dependency not ready", **fields)
