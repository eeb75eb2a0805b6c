"""
Structured logging for the HTTP layer.

Features:
- JSON formatted log lines
- Correlation ID / actor / place tracking through context variables
- Performance metrics
"""
import sys
import json
import traceback
from typing import Any, Dict, Optional
from contextvars import ContextVar
import socket
import os

from curation.config import settings
from curation.utils.datetime_utils import to_iso_string

# Context variables for correlation tracking
correlation_id_var: ContextVar[Optional[str]] = ContextVar('correlation_id', default=None)
actor_var: ContextVar[Optional[str]] = ContextVar('actor', default=None)
place_id_var: ContextVar[Optional[str]] = ContextVar('place_id', default=None)


class StructuredLogger:
    """
    Structured logger with correlation tracking.

    Every line is a JSON object carrying the timestamp, service metadata,
    the logger name and the current correlation context.
    """

    def __init__(self, name: str):
        self.name = name
        self.hostname = socket.gethostname()
        self.service_name = settings.app_name
        self.service_version = settings.app_version
        self.environment = settings.environment
        self.instance_id = os.getenv("INSTANCE_ID", self.hostname)

    def _get_base_context(self) -> Dict[str, Any]:
        """Get base logging context"""
        return {
            "@timestamp": to_iso_string(),
            "service": {
                "name": self.service_name,
                "version": self.service_version,
                "environment": self.environment,
                "instance_id": self.instance_id,
            },
            "logger": {
                "name": self.name
            },
            "correlation": {
                "correlation_id": correlation_id_var.get(),
                "actor": actor_var.get(),
                "place_id": place_id_var.get(),
            }
        }

    def _format_log(
        self,
        level: str,
        event: str,
        message: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
        exc_info: Optional[BaseException] = None
    ) -> Dict[str, Any]:
        """Format log entry as JSON"""

        log_entry = self._get_base_context()

        log_entry.update({
            "level": level.upper(),
            "event": event,
            "message": message or event
        })

        if extra:
            log_entry["data"] = extra

        if exc_info:
            log_entry["error"] = {
                "type": type(exc_info).__name__,
                "message": str(exc_info),
                "stacktrace": "".join(
                    traceback.format_exception(type(exc_info), exc_info, exc_info.__traceback__)
                )
            }

        return log_entry

    def _emit(self, log_entry: Dict[str, Any], stream) -> None:
        print(json.dumps(log_entry, default=str), file=stream)

    def debug(self, event: str, message: str = None, extra: Dict = None):
        if settings.log_level != "DEBUG":
            return
        self._emit(self._format_log("DEBUG", event, message, extra), sys.stdout)

    def info(self, event: str, message: str = None, extra: Dict = None):
        self._emit(self._format_log("INFO", event, message, extra), sys.stdout)

    def warning(self, event: str, message: str = None, extra: Dict = None):
        self._emit(self._format_log("WARNING", event, message, extra), sys.stderr)

    def error(
        self,
        event: str,
        message: str = None,
        extra: Dict = None,
        exc_info: BaseException = None,
    ):
        self._emit(self._format_log("ERROR", event, message, extra, exc_info), sys.stderr)

    def performance(
        self,
        event: str,
        duration_ms: float,
        extra: Dict = None
    ):
        """Log performance metric"""
        perf_data = {
            "performance": {
                "duration_ms": round(duration_ms, 2),
            }
        }

        if extra:
            perf_data.update(extra)

        self._emit(
            self._format_log("INFO", event, f"Performance: {duration_ms:.2f}ms", perf_data),
            sys.stdout,
        )


def get_logger(name: str) -> StructuredLogger:
    """
    Get structured logger for module.

    Usage:
        logger = get_logger(__name__)
        logger.info("suggestion.added", extra={"field_path": "tags"})
    """
    return StructuredLogger(name)


class log_context:
    """
    Context manager for correlation tracking.

    Usage:
        with log_context(correlation_id="abc", actor="editor_1"):
            logger.info("suggestion.resolve.started")
    """

    def __init__(
        self,
        correlation_id: str = None,
        actor: str = None,
        place_id: str = None,
    ):
        self.correlation_id = correlation_id
        self.actor = actor
        self.place_id = place_id
        self._tokens = []

    def __enter__(self):
        """Set context variables"""
        if self.correlation_id:
            self._tokens.append((correlation_id_var, correlation_id_var.set(self.correlation_id)))
        if self.actor:
            self._tokens.append((actor_var, actor_var.set(self.actor)))
        if self.place_id:
            self._tokens.append((place_id_var, place_id_var.set(self.place_id)))
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Restore previous context"""
        for var, token in reversed(self._tokens):
            var.reset(token)
        self._tokens.clear()


"""
LOG EVENT NAMING CONVENTIONS:

Use dot notation: <domain>.<action>.<result>

Examples:
- http.request.received
- http.request.completed
- place.created
- suggestion.added
- suggestion.resolved
- persistence.save.failed
"""
