"""
Logging Configuration for QuantumCalc

Plain-text or JSON log lines, stamped with the calculator session that
produced them.
"""
import json
import logging
import sys
from contextvars import ContextVar
from typing import Any, Dict, Optional

import config

# Session id of the request being handled, if any
_session_id_ctx: ContextVar[Optional[str]] = ContextVar("session_id", default=None)

_logging_configured = False

_RESERVED_ATTRS = {
    "args", "asctime", "created", "exc_info", "exc_text", "filename",
    "funcName", "levelname", "levelno", "lineno", "module", "msecs",
    "message", "msg", "name", "pathname", "process", "processName",
    "relativeCreated", "stack_info", "thread", "threadName", "taskName",
    "session_id",
}


def get_session_id() -> Optional[str]:
    return _session_id_ctx.get()


def set_session_id(session_id: Optional[str]) -> None:
    _session_id_ctx.set(session_id)


class SessionFilter(logging.Filter):
    """Adds the current session id to every record"""

    def filter(self, record: logging.LogRecord) -> bool:
        record.session_id = get_session_id() or "-"
        return True


class JSONFormatter(logging.Formatter):
    """Formatter that outputs one JSON object per line"""

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "line": record.lineno,
        }

        session_id = getattr(record, "session_id", None)
        if session_id and session_id != "-":
            log_data["session_id"] = session_id

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS:
                log_data[key] = value

        return json.dumps(log_data, default=str)


def setup_logging(
    level: str = config.LOG_LEVEL,
    log_file: Optional[str] = None,
    json_format: bool = config.LOG_JSON,
) -> None:
    """
    Configure logging for the application.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        log_file: Optional file to write logs to
        json_format: Whether to use JSON formatting
    """
    global _logging_configured

    if _logging_configured:
        return

    if json_format:
        formatter = JSONFormatter()
    else:
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - [%(session_id)s] %(message)s"
        )

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    root_logger.handlers = []

    handlers = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    for handler in handlers:
        handler.setFormatter(formatter)
        handler.addFilter(SessionFilter())
        root_logger.addHandler(handler)

    # Request lines from the development server
    logging.getLogger("werkzeug").setLevel(logging.WARNING)

    _logging_configured = True
