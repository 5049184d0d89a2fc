"""Logging configuration for the audit engine.

Every record carries the request id of the active audit context ("-" outside
a request), so audit failures can be traced back to the request that caused
them.
"""

import logging
import sys

from audittrail.core.config import get_settings
from audittrail.shared.context import get_audit_context

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(request_id)s] %(message)s"


class RequestIdFilter(logging.Filter):
    """Adds `request_id` from the ambient audit context to each record."""

    def filter(self, record: logging.LogRecord) -> bool:
        context = get_audit_context()
        record.request_id = context.request_id if context else "-"
        return True


def setup_logging(level: int | None = None) -> None:
    """Configure application-wide logging.

    Level is DEBUG when settings.debug is True, otherwise INFO, unless
    `level` is given. Output goes to stdout.
    """
    if level is None:
        level = logging.DEBUG if get_settings().debug else logging.INFO
    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(RequestIdFilter())
    logging.basicConfig(level=level, format=LOG_FORMAT, handlers=[handler])


def get_logger(name: str) -> logging.Logger:
    """Return a logger for the given module name.

    Args:
        name: Usually __name__ of the calling module.
    """
    return logging.getLogger(name)
