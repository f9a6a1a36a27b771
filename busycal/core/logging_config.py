"""Logging configuration: JSON lines in production, readable text locally."""

import contextvars
import logging
import uuid
from urllib.parse import urlparse

from pythonjsonlogger.json import JsonFormatter

request_id_var: contextvars.ContextVar[str] = contextvars.ContextVar("request_id", default="")

_FIELDS = "%(asctime)s %(levelname)s %(name)s %(message)s %(request_id)s"
_TEXT_FORMAT = "%(asctime)s %(levelname)-8s [%(request_id)s] %(name)s: %(message)s"

# Libraries that log full request URLs at INFO
_NOISY_LOGGERS = ("httpx", "httpcore")


class RequestIdFilter(logging.Filter):
    """Inject request_id into every log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get("")  # type: ignore[attr-defined]
        return True


def setup_logging(*, debug: bool = False, json_logs: bool = True) -> None:
    """Configure the root logger with a request-id filter.

    Args:
        debug: Log at DEBUG instead of INFO.
        json_logs: Emit one JSON object per line; otherwise plain text.
    """
    handler = logging.StreamHandler()
    formatter: logging.Formatter
    if json_logs:
        formatter = JsonFormatter(
            fmt=_FIELDS,
            rename_fields={"asctime": "timestamp", "levelname": "level"},
        )
    else:
        formatter = logging.Formatter(_TEXT_FORMAT)
    handler.setFormatter(formatter)
    handler.addFilter(RequestIdFilter())

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(logging.DEBUG if debug else logging.INFO)

    # Upstream URLs carry the feed owner's access secret
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def generate_request_id() -> str:
    """Generate a new request ID."""
    return uuid.uuid4().hex[:16]


def redact_url(url: str) -> str:
    """Reduce a calendar URL to scheme and host for logging.

    Private feed URLs embed their access secret in the path or query, so
    only the host is ever written to the log. Never raises, so it is safe
    inside error paths.
    """
    try:
        parsed = urlparse(url)
        hostname = parsed.hostname
    except ValueError:
        return "<invalid url>"
    if not parsed.netloc:
        return "<invalid url>"
    return f"{parsed.scheme}://{hostname}"
