"""
Structured JSON logger.

Every entry is a single JSON line with:
- timestamp (ISO 8601, UTC)
- level
- event (UPPER_SNAKE event name, e.g. ORDER_CREATE_REQUESTED)
- traceId of the request being served, when there is one
- context (structured data: ids, counts, error text)
"""
import json
import logging
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from settings import get_settings

trace_id_var: ContextVar[Optional[str]] = ContextVar("trace_id", default=None)


class StructuredLogger:
    def __init__(self, name: str = "shop", log_level: Optional[str] = None):
        self.name = name
        level = log_level or get_settings().log_level
        self.logger = logging.getLogger(name)
        self.logger.setLevel(getattr(logging, level, logging.INFO))

        if not self.logger.handlers:
            handler = logging.StreamHandler(sys.stdout)
            handler.setFormatter(logging.Formatter("%(message)s"))
            self.logger.addHandler(handler)
        self.logger.propagate = False

    def _log(self, level: int, event: str, context: Optional[Dict[str, Any]] = None):
        if not self.logger.isEnabledFor(level):
            return
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": logging.getLevelName(level).lower(),
            "logger": self.name,
            "event": event,
        }
        trace_id = trace_id_var.get()
        if trace_id:
            entry["traceId"] = trace_id
        if context:
            entry["context"] = context
        self.logger.log(level, json.dumps(entry, default=str))

    def debug(self, event: str, context: Optional[Dict[str, Any]] = None):
        self._log(logging.DEBUG, event, context)

    def info(self, event: str, context: Optional[Dict[str, Any]] = None):
        self._log(logging.INFO, event, context)

    def warning(self, event: str, context: Optional[Dict[str, Any]] = None):
        self._log(logging.WARNING, event, context)

    def error(self, event: str, context: Optional[Dict[str, Any]] = None):
        self._log(logging.ERROR, event, context)

    def access(
        self,
        method: str,
        path: str,
        status: int,
        duration_ms: float,
        ip: Optional[str] = None,
        user_agent: Optional[str] = None,
    ):
        """Log one served request."""
        self.info(
            "ACCESS",
            {
                "type": "access",
                "method": method,
                "url": path,
                "status": status,
                "responseTime": f"{duration_ms:.1f} ms",
                "ip": ip,
                "userAgent": user_agent,
            },
        )


logger = StructuredLogger()
