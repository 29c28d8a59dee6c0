"""Request-scoped log context, a context-aware logger and transcode timings."""

import logging
import os
import statistics
import threading
import time
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterator, List, Optional

from .logging_config import get_logger


@dataclass(frozen=True)
class LogContext:
    """Correlates the log lines of one request."""

    correlation_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    operation: str = ""
    component: str = ""
    metadata: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def for_request(cls, operation: str, component: str, path: str) -> "LogContext":
        """Context for one request on ``path``, keyed by file name and start time."""
        correlation_id = f"{operation}_{os.path.basename(path)}_{int(time.time() * 1000)}"
        return cls(
            correlation_id=correlation_id,
            operation=operation,
            component=component,
            metadata={"path": path},
        )

    def with_operation(self, operation: str) -> "LogContext":
        return replace(self, operation=operation)

    def with_metadata(self, **kwargs: Any) -> "LogContext":
        return replace(self, metadata={**self.metadata, **kwargs})


def render_message(message: str, context: Optional[LogContext] = None, **fields: Any) -> str:
    """Render ``[operation] [correlation id] message (key=value, ...)``."""
    parts = []
    if context is not None:
        if context.operation:
            parts.append(f"[{context.operation}]")
        parts.append(f"[{context.correlation_id}]")
        fields = {**context.metadata, **fields}
    parts.append(message)

    rendered = " ".join(parts)
    if fields:
        rendered += " (" + ", ".join(f"{k}={v}" for k, v in fields.items()) + ")"
    return rendered


class StructuredLogger:
    """LoggerProtocol implementation on top of a library logger."""

    def __init__(self, name: str, level: Optional[str] = None):
        self._logger = get_logger(name)
        if level:
            resolved = logging.getLevelName(level.upper())
            self._logger.setLevel(resolved if isinstance(resolved, int) else logging.INFO)

    @property
    def name(self) -> str:
        return self._logger.name

    def debug(self, message: str, context: Optional[LogContext] = None, **kwargs: Any) -> None:
        if self._logger.isEnabledFor(logging.DEBUG):
            self._logger.debug(render_message(message, context, **kwargs))

    def info(self, message: str, context: Optional[LogContext] = None, **kwargs: Any) -> None:
        self._logger.info(render_message(message, context, **kwargs))

    def warning(self, message: str, context: Optional[LogContext] = None, **kwargs: Any) -> None:
        self._logger.warning(render_message(message, context, **kwargs))

    def error(self, message: str, context: Optional[LogContext] = None, **kwargs: Any) -> None:
        self._logger.error(render_message(message, context, **kwargs))


@dataclass(frozen=True)
class OperationTiming:
    """Wall-clock timing of one transcode or property query."""

    operation: str
    start_time: float
    end_time: float
    success: bool
    error_message: Optional[str] = None

    @property
    def duration_ms(self) -> float:
        return (self.end_time - self.start_time) * 1000


class MetricsCollector:
    """Thread-safe store of operation timings.

    Worker threads record concurrently, so every access takes the lock.
    """

    def __init__(self) -> None:
        self._timings: List[OperationTiming] = []
        self._lock = threading.Lock()

    def record(self, timing: OperationTiming) -> None:
        with self._lock:
            self._timings.append(timing)

    def get_timings(self, operation: Optional[str] = None) -> List[OperationTiming]:
        with self._lock:
            timings = list(self._timings)
        if operation:
            return [t for t in timings if t.operation == operation]
        return timings

    def get_summary(self, operation: Optional[str] = None) -> Dict[str, Any]:
        """
        Summarize recorded timings.

        Returns:
            Counts, success rate and median/max duration in milliseconds,
            or an empty dictionary if nothing was recorded
        """
        timings = self.get_timings(operation)
        if not timings:
            return {}

        durations = [t.duration_ms for t in timings]
        succeeded = sum(1 for t in timings if t.success)
        return {
            "total_operations": len(timings),
            "successful_operations": succeeded,
            "failed_operations": len(timings) - succeeded,
            "success_rate": succeeded / len(timings),
            "median_duration_ms": statistics.median(durations),
            "max_duration_ms": max(durations),
        }

    def clear(self) -> None:
        with self._lock:
            self._timings.clear()


@contextmanager
def measure(collector: Optional[MetricsCollector], operation: str) -> Iterator[None]:
    """Record the timing of the enclosed block; a no-op without a collector."""
    start_time = time.time()
    try:
        yield
    except Exception as exc:
        if collector is not None:
            collector.record(
                OperationTiming(operation, start_time, time.time(), False, str(exc))
            )
        raise
    if collector is not None:
        collector.record(OperationTiming(operation, start_time, time.time(), True))
