"""
Service: LoggingSecurityLogger

Default SecurityLogger: writes one WARNING record per security event.
Logging failures are reported and dropped so the caller is never affected.
"""

# Python Packages
from typing import Any, Dict

# Logger
from ...util.logger import get_logger


logger = get_logger(__name__, service_name = "advisor-security")





class LoggingSecurityLogger:

    def log_security_event(self, event_type: str, category: str, success: bool, details: Dict[str, Any]) -> None:
        try:
            logger.warning(
                f"Security event: {event_type} ({category})",
                extra = {"payload": {
                    "event_type": event_type,
                    "category": category,
                    "success": success,
                    **(details or {})
                }}
            )
        except Exception as exc:
            print(f"⚠️  security log write failed ({event_type}): {exc}")
