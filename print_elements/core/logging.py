"""
Logging utilities for print-elements.

- ElementContextFilter attaches the id of the element being prepared on the
  current thread (set by the preparer through a context variable)
- JsonFormatter for structured logs when PRINTELEMENTS_JSON_LOGS=true
- configure_logging() initializes root logging with journald or console
"""

from __future__ import annotations

import contextvars
import logging
import os
from typing import Optional

current_element: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar("current_element", default=None)


class ElementContextFilter(logging.Filter):
    """
    Attach element-scoped metadata (element_id) to log records.
    Records emitted outside of a preparation get "-".
    """

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        record.element_id = current_element.get() or "-"
        return True


class JsonFormatter(logging.Formatter):
    """
    Minimal JSON formatter that includes timestamp, level, logger, message and element_id.
    """

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        from json import dumps

        base = {
            "ts": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
            "element_id": getattr(record, "element_id", "-"),
        }
        if record.exc_info:
            base["exc"] = self.formatException(record.exc_info)
        return dumps(base, ensure_ascii=False)


def configure_logging(level: int = logging.INFO) -> logging.Logger:
    """
    Configure root logging for the application.

    Behavior:
    - Sets root logger to `level`
    - Clears any existing handlers to avoid duplicates on repeated calls
    - Chooses JSON or plain formatter based on PRINTELEMENTS_JSON_LOGS
    - Prefer systemd's JournalHandler, fallback to StreamHandler
    - Adds ElementContextFilter so formatters can reference %(element_id)s

    Returns the configured root logger.
    """
    root = logging.getLogger()
    root.setLevel(level)
    root.handlers = []

    json_logs = os.environ.get("PRINTELEMENTS_JSON_LOGS", "false").lower() in ("1", "true", "yes")
    formatter: logging.Formatter
    if json_logs:
        formatter = JsonFormatter()
    else:
        formatter = logging.Formatter("[%(asctime)s] %(levelname)s %(element_id)s %(name)s: %(message)s")

    # Prefer systemd journal when available
    try:
        from systemd.journal import JournalHandler  # type: ignore

        handler: logging.Handler = JournalHandler()
    except ImportError:
        handler = logging.StreamHandler()
    handler.setFormatter(formatter)
    handler.addFilter(ElementContextFilter())
    root.addHandler(handler)
    return root


__all__ = ["ElementContextFilter", "JsonFormatter", "configure_logging", "current_element"]
