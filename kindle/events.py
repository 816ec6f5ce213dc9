"""
Kindle Events - synchronous observable.

A lightweight named-event emitter used by every App (per-instance
namespace) and by the Coordinator (environment events).

Usage:
    from kindle.events import Observable

    bus = Observable()

    def on_ready():
        print("ready")

    bus.on("environment:ready", on_ready)
    bus.trigger("environment:ready")

    # Temporary subscription
    with bus.listening("start:after", handler):
        app.ignite()

Handlers run synchronously, in subscription order. A handler that raises
stops dispatch and the exception propagates to the caller of trigger().
"""

from __future__ import annotations

import contextlib
import logging
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger("kindle.events")

__all__ = ["Observable"]


class Observable:
    """
    Named-event emitter.

    Features:
        - Many handlers per event, called in subscription order
        - One-shot handlers via once()
        - Temporary subscriptions via listening()
    """

    def __init__(self, *args: Any, **kwargs: Any):
        # Each entry: (handler, once)
        self._handlers: Dict[str, List[tuple]] = {}
        super().__init__(*args, **kwargs)

    def on(self, event: str, handler: Callable = None):
        """
        Subscribe a handler to an event. Can be used as a decorator.

        Args:
            event: Event name
            handler: Callable invoked with the trigger() arguments

        Returns:
            The handler (decorator form) or self (call form)
        """
        if handler is None:
            def _decorator(fn: Callable) -> Callable:
                self._add_handler(event, fn, once=False)
                return fn
            return _decorator

        self._add_handler(event, handler, once=False)
        return self

    def once(self, event: str, handler: Callable):
        """Subscribe a handler that is removed after its first call."""
        self._add_handler(event, handler, once=True)
        return self

    def _add_handler(self, event: str, handler: Callable, *, once: bool) -> None:
        self._handlers.setdefault(event, []).append((handler, once))

    def off(self, event: Optional[str] = None, handler: Optional[Callable] = None):
        """
        Unsubscribe handlers.

        - off() removes everything
        - off(event) removes all handlers of an event
        - off(event, handler) removes that handler
        """
        if event is None:
            self._handlers.clear()
            return self

        if handler is None:
            self._handlers.pop(event, None)
            return self

        # Bound methods are rebuilt on every attribute access; compare by equality
        entries = self._handlers.get(event, [])
        self._handlers[event] = [(h, o) for h, o in entries if h != handler]
        return self

    def trigger(self, event: str, *args: Any, **kwargs: Any):
        """
        Fire an event, calling all subscribed handlers.

        Handlers subscribed during dispatch are not called for the
        current trigger.

        Returns:
            self
        """
        entries = self._handlers.get(event)
        if not entries:
            return self

        for entry in list(entries):
            handler, once = entry
            if once:
                if not self._discard_entry(event, entry):
                    continue
            handler(*args, **kwargs)
        return self

    def _discard_entry(self, event: str, entry: tuple) -> bool:
        """Remove one subscription entry. Returns False if it was already gone."""
        entries = self._handlers.get(event, [])
        for index, existing in enumerate(entries):
            if existing is entry:
                del entries[index]
                return True
        return False

    def listeners(self, event: str) -> List[Callable]:
        """Handlers currently subscribed to an event."""
        return [h for h, _ in self._handlers.get(event, [])]

    def has_listeners(self, event: Optional[str] = None) -> bool:
        if event is None:
            return any(self._handlers.values())
        return bool(self._handlers.get(event))

    @contextlib.contextmanager
    def listening(self, event: str, handler: Callable):
        """
        Context manager for a temporary subscription.

        The handler is unsubscribed on exit.
        """
        self.on(event, handler)
        try:
            yield self
        finally:
            self.off(event, handler)
