"""
Kindle Signals - one-shot environment signal sources.

The coordinator only needs two notifications from its host:

- "ready": the environment is usable, fired once
- "unload": the environment is about to go away, fired once

OneShotSignal models both. Subscribers added after the signal fired are
called immediately, so readiness is a permanent state.

AtexitSignal fires itself from the interpreter's atexit hooks, which is
the natural unload source for long-running processes.
"""

from __future__ import annotations

import atexit
import logging
from typing import Any, Callable, List

logger = logging.getLogger("kindle.signals")

__all__ = ["OneShotSignal", "AtexitSignal"]


class OneShotSignal:
    """
    A signal that fires at most once.

    Usage:
        ready = OneShotSignal("ready")
        ready.subscribe(lambda: print("go"))
        ready.fire()
        ready.fire()   # no-op
    """

    def __init__(self, name: str = "signal"):
        self.name = name
        self._subscribers: List[Callable[[], Any]] = []
        self._fired = False

    @property
    def fired(self) -> bool:
        return self._fired

    def subscribe(self, callback: Callable[[], Any]) -> None:
        """
        Register a callback.

        If the signal already fired, the callback runs immediately.
        """
        if self._fired:
            callback()
            return
        self._subscribers.append(callback)

    def unsubscribe(self, callback: Callable[[], Any]) -> None:
        """Remove a pending callback. Unknown callbacks are ignored."""
        self._subscribers = [cb for cb in self._subscribers if cb != callback]

    def fire(self) -> bool:
        """
        Fire the signal.

        Returns:
            True if this call fired the signal, False if it had already fired
        """
        if self._fired:
            logger.debug(f"Signal '{self.name}' already fired")
            return False

        self._fired = True
        subscribers, self._subscribers = self._subscribers, []
        for callback in subscribers:
            callback()
        return True

    def __repr__(self) -> str:
        state = "fired" if self._fired else "pending"
        return f"<OneShotSignal '{self.name}' {state} subscribers={len(self._subscribers)}>"


class AtexitSignal(OneShotSignal):
    """OneShotSignal fired automatically at interpreter exit."""

    def __init__(self, name: str = "atexit"):
        super().__init__(name)
        atexit.register(self._fire_at_exit)

    def _fire_at_exit(self) -> None:
        try:
            self.fire()
        except Exception as e:
            # Nothing above us can handle it during interpreter shutdown
            logger.error(f"Unload handler failed at exit: {e}")

    def disarm(self) -> None:
        """Remove the atexit hook without firing."""
        atexit.unregister(self._fire_at_exit)
