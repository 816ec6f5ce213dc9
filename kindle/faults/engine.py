"""
Kindle Faults - Fault Engine.

The FaultEngine is the non-fatal diagnostic channel:
1. Wraps reported faults in a FaultContext
2. Logs them at a level derived from their severity
3. Notifies registered listeners
4. Keeps a bounded history for inspection

Reporting never raises, even when a listener fails.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from .core import Fault, FaultContext, Severity


_LOG_LEVELS = {
    Severity.INFO: logging.INFO,
    Severity.WARN: logging.WARNING,
    Severity.ERROR: logging.ERROR,
    Severity.FATAL: logging.CRITICAL,
}


class FaultEngine:
    """
    Runtime fault reporter.

    Usage:
        ```python
        engine = FaultEngine()
        engine.on_fault(lambda ctx: metrics.increment(ctx.fault.code))
        engine.report(LockUnderflowFault())
        ```
    """

    def __init__(
        self,
        *,
        logger: Optional[logging.Logger] = None,
        max_history: int = 100,
    ):
        """
        Initialize fault engine.

        Args:
            logger: Logger for fault events (creates default if None)
            max_history: How many reported faults to retain
        """
        self.logger = logger or logging.getLogger("kindle.faults")
        self._event_listeners: list[Callable[[FaultContext], None]] = []
        self._history: list[FaultContext] = []
        self._max_history = max_history

    def on_fault(self, listener: Callable[[FaultContext], None]):
        """
        Register fault event listener.

        Args:
            listener: Callback receiving FaultContext
        """
        self._event_listeners.append(listener)

    def report(self, fault: Fault, *, app: Optional[str] = None) -> FaultContext:
        """
        Report a fault without raising it.

        Args:
            fault: Fault to report
            app: App name the fault belongs to

        Returns:
            The captured FaultContext
        """
        ctx = FaultContext.capture(fault, app=app)

        self.logger.log(
            _LOG_LEVELS.get(fault.severity, logging.ERROR),
            f"{fault}",
            extra={"fault_code": fault.code, "trace_id": ctx.trace_id, "app": app},
        )

        for listener in self._event_listeners:
            try:
                listener(ctx)
            except Exception as e:
                self.logger.error(f"Fault listener error: {e}")

        self._history.append(ctx)
        if len(self._history) > self._max_history:
            self._history.pop(0)

        return ctx

    def get_history(self) -> list[FaultContext]:
        """Return reported faults, oldest first."""
        return self._history.copy()

    def clear_history(self):
        self._history.clear()


# ============================================================================
# Default engine
# ============================================================================

_default_engine: Optional[FaultEngine] = None


def get_default_engine() -> FaultEngine:
    """Get or create the process-wide fault engine."""
    global _default_engine
    if _default_engine is None:
        _default_engine = FaultEngine()
    return _default_engine


def report_fault(fault: Fault, *, app: Optional[str] = None) -> FaultContext:
    """Report a fault through the default engine."""
    return get_default_engine().report(fault, app=app)
