"""
Logging helpers.

Text format for development, JSON lines for production (LOG_FORMAT=json).
Structured fields go in extra={"payload": {...}} and are promoted to
top-level keys in JSON output.
"""

# Python Packages
import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

# Constants
from ..base import constants


LOG_FORMAT_TEXT = "%(asctime)s - %(service)s - %(levelname)s - %(message)s"

_RESERVED_KEYS = {
    "name", "msg", "args", "created", "filename", "funcName",
    "levelname", "levelno", "lineno", "module", "msecs",
    "message", "pathname", "process", "processName", "relativeCreated",
    "thread", "threadName", "exc_info", "exc_text", "stack_info",
    "service", "payload", "taskName"
}





class ServiceFilter(logging.Filter):
    """Injects the service name into log records."""

    def __init__(self, service_name: str) -> None:
        super().__init__()
        self.service_name = service_name

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "service"):
            record.service = self.service_name
        return True





class JSONFormatter(logging.Formatter):
    """JSON formatter; merges extra={"payload": {...}} into the top level."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "service": getattr(record, "service", "advisor"),
            "level": record.levelname,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        payload = getattr(record, "payload", None)
        if isinstance(payload, dict):
            log_data.update(payload)

        for key, value in record.__dict__.items():
            if key not in _RESERVED_KEYS and not key.startswith("_"):
                log_data[key] = value

        return json.dumps(log_data, ensure_ascii = False, default = str)





def get_logger(name: str, service_name: str = "advisor", level: Optional[str] = None) -> logging.Logger:
    """
    Return a logger writing to stdout in the configured format.

    Args:
        name: Logger name, usually the module's __name__.
        service_name: Value injected as the "service" field.
        level: Level name; defaults to LOG_LEVEL.
    """

    logger = logging.getLogger(name)
    logger.setLevel(level or constants.LOG_LEVEL)
    logger.propagate = False

    if logger.handlers:
        return logger

    handler = logging.StreamHandler(sys.stdout)
    if constants.LOG_FORMAT.lower() == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(LOG_FORMAT_TEXT))

    handler.addFilter(ServiceFilter(service_name))
    logger.addHandler(handler)

    return logger
