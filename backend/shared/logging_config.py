"""
Logging setup for the enrollment backend.

Every module logs through ``logging.getLogger(__name__)``; this module only
installs the root handler once and stamps each record with the request ID
of the HTTP request that produced it.
"""

import logging
from contextvars import ContextVar
from typing import Optional

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(request_id)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

request_id_var: ContextVar[str] = ContextVar("request_id", default="-")


class RequestIdFilter(logging.Filter):
    """Attach the current request ID to every log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get()
        return True


def setup_logging(level: Optional[str] = None) -> None:
    """
    Configure console logging on the root logger.

    Safe to call more than once; handlers are only installed the first time.
    """
    level = (level or "INFO").upper()

    root = logging.getLogger()
    root.setLevel(level)

    # Prevent duplicate handlers
    if any(isinstance(f, RequestIdFilter) for h in root.handlers for f in h.filters):
        return

    console = logging.StreamHandler()
    console.setLevel(level)
    console.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
    console.addFilter(RequestIdFilter())

    root.addHandler(console)
