"""
ttlmemo Observability

Structured logging for the cache engine.

Architecture:
    ┌─────────────────────────────────────────────────────────┐
    │                      CacheStore                          │
    │  logger.debug("cache hit", operation="gdp", size=3)     │
    └───────────────────────┬─────────────────────────────────┘
                            │
    ┌───────────────────────▼─────────────────────────────────┐
    │                      MemoLogger                          │
    │      component tagging, structured context fields       │
    └───────────────────────┬─────────────────────────────────┘
                            │
    ┌───────────────────────▼─────────────────────────────────┐
    │                 logging.Handler                          │
    │        StructuredHandler (json) │ StreamHandler (text)  │
    └─────────────────────────────────────────────────────────┘

Copyright (c) 2026 Momentum. All rights reserved.
"""

from __future__ import annotations

import json
import logging
import sys
import traceback
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from ttlmemo.config import get_config


class LogLevel(Enum):
    """Log severity levels."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class MemoComponent(Enum):
    """ttlmemo components for categorization."""
    STORE = "store"
    SIGNATURE = "signature"
    MEMO = "memo"
    CONFIG = "config"


@dataclass
class LogEvent:
    """Structured log event."""
    timestamp: str
    level: str
    logger: str
    message: str
    component: str = ""
    operation: str = ""
    duration_ms: Optional[float] = None
    context: Dict[str, Any] = field(default_factory=dict)
    exception: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary, excluding empty values."""
        d = asdict(self)
        return {k: v for k, v in d.items() if v is not None and v != "" and v != {}}

    def to_json(self) -> str:
        """Convert to JSON string."""
        return json.dumps(self.to_dict(), default=str)


class StructuredHandler(logging.Handler):
    """Logging handler that outputs structured JSON."""

    def __init__(self, stream: Any = None):
        super().__init__()
        self.stream = stream or sys.stderr

    def emit(self, record: logging.LogRecord) -> None:
        try:
            event = LogEvent(
                timestamp=datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
                level=record.levelname.lower(),
                logger=record.name,
                message=record.getMessage(),
                component=getattr(record, "component", ""),
                operation=getattr(record, "operation", ""),
                duration_ms=getattr(record, "duration_ms", None),
                context=getattr(record, "context", {}),
            )

            if record.exc_info:
                event.exception = "".join(traceback.format_exception(*record.exc_info))

            self.stream.write(event.to_json() + "\n")
            self.stream.flush()
        except Exception:
            self.handleError(record)


class TextFormatter(logging.Formatter):
    """Plain-text formatter that appends structured context as key=value pairs."""

    def __init__(self):
        super().__init__("%(asctime)s %(levelname)s %(name)s: %(message)s")

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = getattr(record, "context", None) or {}
        if context:
            line += " " + " ".join(f"{k}={v}" for k, v in sorted(context.items()))
        return line


def _make_handler(log_format: str, stream: Any = None) -> logging.Handler:
    if log_format == "text":
        handler = logging.StreamHandler(stream or sys.stderr)
        handler.setFormatter(TextFormatter())
        return handler
    return StructuredHandler(stream)


class MemoLogger:
    """
    Structured logger for ttlmemo components.

    Includes the component and operation in every event; extra keyword
    arguments land in the event context.
    """

    def __init__(
        self,
        name: str,
        component: MemoComponent,
        level: Optional[LogLevel] = None,
        log_format: Optional[str] = None,
        stream: Any = None,
    ):
        self.name = name
        self.component = component
        self._logger = logging.getLogger(f"ttlmemo.{component.value}.{name}")

        observability = get_config().observability
        level = level or LogLevel(observability.log_level.get())
        self._logger.setLevel(getattr(logging, level.value.upper()))

        if not any(getattr(h, "_ttlmemo", False) for h in self._logger.handlers):
            handler = _make_handler(log_format or observability.log_format.get(), stream)
            handler._ttlmemo = True  # type: ignore[attr-defined]
            self._logger.addHandler(handler)
            self._logger.propagate = False

    @property
    def logger(self) -> logging.Logger:
        """The underlying stdlib logger."""
        return self._logger

    def _log(
        self,
        level: int,
        message: str,
        operation: str = "",
        duration_ms: Optional[float] = None,
        exc_info: bool = False,
        **context: Any,
    ) -> None:
        """Internal log method."""
        extra = {
            "component": self.component.value,
            "operation": operation,
            "duration_ms": duration_ms,
            "context": context,
        }
        self._logger.log(level, message, extra=extra, exc_info=exc_info)

    def debug(self, message: str, **context: Any) -> None:
        """Log debug message."""
        self._log(logging.DEBUG, message, **context)

    def info(self, message: str, **context: Any) -> None:
        """Log info message."""
        self._log(logging.INFO, message, **context)

    def warning(self, message: str, **context: Any) -> None:
        """Log warning message."""
        self._log(logging.WARNING, message, **context)

    def error(self, message: str, exc_info: bool = False, **context: Any) -> None:
        """Log error message."""
        self._log(logging.ERROR, message, exc_info=exc_info, **context)


def get_logger(name: str, component: MemoComponent) -> MemoLogger:
    """Get a logger for a ttlmemo component."""
    return MemoLogger(name, component)


__all__ = [
    "LogLevel",
    "MemoComponent",
    "LogEvent",
    "StructuredHandler",
    "TextFormatter",
    "MemoLogger",
    "get_logger",
]
