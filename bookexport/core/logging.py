"""Structured logging for the export service.

Every record leaving the process is a single JSON line (or a plain line when
``LOG_FORMAT=plain``) tagged with the request id of the HTTP call that produced
it. Client addresses and book text never reach the log sink: the rate limiter
sees forwarded-for headers and the exporter handles whole chapters, so both are
scrubbed from record extras before formatting.
"""

from __future__ import annotations

import json
import logging
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from logging import LogRecord
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Callable, Iterable, Mapping

from bookexport.core.config import LogSettings, settings

REDACTED = "[REDACTED]"
SERVICE_NAME = "book-export-api"
PLAIN_FORMAT = "%(asctime)s %(levelname)s [%(request_id)s] %(name)s %(message)s"

# Keys compared lower-cased
REDACTED_KEYS: frozenset[str] = frozenset(
    {
        "x-forwarded-for",
        "forwarded_for",
        "client_ip",
        "ip",
        "authorization",
        "cookie",
        "set-cookie",
        "content",
        "book_content",
        "chapter_content",
    }
)

_STANDARD_RECORD_ATTRS = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", None, None))
) | {"message", "asctime", "request_id", "taskName"}

_current_request_id: ContextVar[str | None] = ContextVar("request_id", default=None)


def set_request_id(request_id: str | None) -> None:
    _current_request_id.set(request_id)


def get_request_id() -> str | None:
    """Request id bound to the running task, or None outside a request."""
    return _current_request_id.get()


def clear_request_id() -> None:
    _current_request_id.set(None)


class Redactor:
    """Replaces values stored under sensitive keys, at any nesting depth."""

    def __init__(self, keys: Iterable[str] | None = None) -> None:
        self.keys = frozenset(k.lower() for k in (keys if keys is not None else REDACTED_KEYS))

    def is_sensitive(self, key: Any) -> bool:
        return str(key).lower() in self.keys

    def scrub(self, value: Any) -> Any:
        if isinstance(value, Mapping):
            return {
                key: REDACTED if self.is_sensitive(key) else self.scrub(item)
                for key, item in value.items()
            }
        if isinstance(value, (list, tuple)):
            return type(value)(self.scrub(item) for item in value)
        return value

    def extras(self, record: LogRecord) -> dict[str, Any]:
        """Return the ``extra=`` fields of a record, already scrubbed."""
        return {
            key: REDACTED if self.is_sensitive(key) else self.scrub(value)
            for key, value in vars(record).items()
            if key not in _STANDARD_RECORD_ATTRS and not key.startswith("_")
        }


class RequestIdFilter(logging.Filter):
    """Stamp records with the current request id ("-" outside requests)."""

    def filter(self, record: LogRecord) -> bool:
        if not getattr(record, "request_id", None):
            record.request_id = get_request_id() or "-"
        return True


class SensitiveDataFilter(logging.Filter):
    """Scrub record extras in place so every formatter sees clean values."""

    def __init__(self, keys: Iterable[str] | None = None) -> None:
        super().__init__()
        self.redactor = Redactor(keys)

    def filter(self, record: LogRecord) -> bool:
        for key, value in self.redactor.extras(record).items():
            setattr(record, key, value)
        return True


class JsonFormatter(logging.Formatter):
    def __init__(self, *, keys: Iterable[str] | None = None, ensure_ascii: bool = False) -> None:
        super().__init__()
        self.redactor = Redactor(keys)
        self.ensure_ascii = ensure_ascii

    def format(self, record: LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "service": SERVICE_NAME,
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }

        request_id = getattr(record, "request_id", None) or get_request_id()
        if request_id and request_id != "-":
            payload["request_id"] = request_id

        payload.update(self.redactor.extras(record))

        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=str, ensure_ascii=self.ensure_ascii)


def _stdout_handler(log_settings: LogSettings) -> logging.Handler:
    return logging.StreamHandler(sys.stdout)


def _file_handler(log_settings: LogSettings) -> logging.Handler:
    path = Path(log_settings.file_path or "logs/bookexport.log")
    path.parent.mkdir(parents=True, exist_ok=True)
    if not log_settings.max_bytes:
        return logging.FileHandler(path, encoding="utf-8")
    return RotatingFileHandler(
        path,
        maxBytes=log_settings.max_bytes,
        backupCount=log_settings.backup_count,
        encoding="utf-8",
    )


_HANDLER_FACTORIES: dict[str, Callable[[LogSettings], logging.Handler]] = {
    "stdout": _stdout_handler,
    "file": _file_handler,
}


def configure_logging(log_settings: LogSettings | None = None) -> None:
    """Install the single root handler used by the service.

    Args:
        log_settings: Settings to apply; ``settings.log`` when omitted.
    """
    cfg = log_settings or settings.log

    factory = _HANDLER_FACTORIES.get(cfg.output.lower(), _stdout_handler)
    handler = factory(cfg)
    handler.addFilter(RequestIdFilter())
    handler.addFilter(SensitiveDataFilter())
    if cfg.format.lower() == "plain":
        handler.setFormatter(logging.Formatter(PLAIN_FORMAT))
    else:
        handler.setFormatter(JsonFormatter())

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, cfg.level.upper(), logging.INFO))

    # uvicorn installs its own handlers
    for name in ("uvicorn", "uvicorn.access"):
        logging.getLogger(name).propagate = False
