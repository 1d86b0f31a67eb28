"""Utility modules for domscribe."""

from .logging import LogContext, configure_logging, get_logger, log_operation
from .scheduling import (
    AsyncioScheduler,
    Debouncer,
    ManualScheduler,
    Scheduler,
    Throttler,
    TimerHandle,
)

__all__ = [
    "configure_logging",
    "get_logger",
    "LogContext",
    "log_operation",
    "Scheduler",
    "TimerHandle",
    "AsyncioScheduler",
    "ManualScheduler",
    "Debouncer",
    "Throttler",
]
