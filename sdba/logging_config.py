import logging
import re
from contextvars import ContextVar
from typing import Optional

from sdba import config

request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(request_id)s] %(message)s"


class RequestIdFilter(logging.Filter):
    """Attach the id of the request being served to every record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get() or "-"
        return True


class SensitiveDataFilter(logging.Filter):
    """Redact tokens, secrets and contact details from log messages."""

    SENSITIVE_PATTERNS = [
        (re.compile(r"(bearer\s+)[A-Za-z0-9._-]+", re.IGNORECASE), r"\1[REDACTED]"),
        (
            re.compile(r"((?:password|secret|token|api[_-]?key)[\"'\s:=]+)[^\"'}\s,]+", re.IGNORECASE),
            r"\1[REDACTED]",
        ),
        (re.compile(r"([A-Za-z0-9._%+-]{1,3})[A-Za-z0-9._%+-]*@([A-Za-z0-9.-]+)"), r"\1***@\2"),
        (re.compile(r"(\+?852)?\b\d{8}\b"), "[PHONE]"),
    ]

    def filter(self, record: logging.LogRecord) -> bool:
        if record.msg:
            try:
                msg = record.getMessage()
            except (TypeError, ValueError):
                return True
            for pattern, replacement in self.SENSITIVE_PATTERNS:
                msg = pattern.sub(replacement, msg)
            record.msg = msg
            record.args = None
        return True


def configure_logging(level: Optional[str] = None) -> None:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler.addFilter(RequestIdFilter())
    handler.addFilter(SensitiveDataFilter())

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel((level or config.LOG_LEVEL).upper())
