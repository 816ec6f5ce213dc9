"""
Environment bridge - turns host signals into coordinator events.

Apps never subscribe to the host directly. The bridge subscribes once to
a ready source and once to an unload source, then republishes them on the
coordinator's Observable as:

- ``environment:ready``
- ``environment:unload``

Readiness is permanent: once ready, ``is_ready`` stays True.
"""

from __future__ import annotations

import logging
from typing import Optional

from .events import Observable
from .signals import OneShotSignal

logger = logging.getLogger("kindle.environment")

READY = "environment:ready"
UNLOAD = "environment:unload"


class EnvironmentBridge:
    """
    Republishes one-shot host signals as internal events.

    Args:
        events: Observable the events are published on
        ready_source: Signal fired when the environment becomes ready
            (a fresh OneShotSignal if omitted; fire it with ready())
        unload_source: Signal fired before the environment unloads
            (a fresh OneShotSignal if omitted; fire it with unload())
    """

    def __init__(
        self,
        events: Observable,
        ready_source: Optional[OneShotSignal] = None,
        unload_source: Optional[OneShotSignal] = None,
    ):
        self.events = events
        self.is_ready = False
        self.is_unloading = False
        self.ready_source: Optional[OneShotSignal] = None
        self.unload_source: Optional[OneShotSignal] = None
        self.attach(
            ready_source or OneShotSignal("ready"),
            unload_source or OneShotSignal("unload"),
        )

    def attach(
        self,
        ready_source: Optional[OneShotSignal] = None,
        unload_source: Optional[OneShotSignal] = None,
    ) -> None:
        """
        Subscribe to host signals, replacing the current ones.

        The replaced source is unsubscribed, so firing it afterwards has no
        effect here. Omitted sources are kept. Readiness already reached
        stays reached.

        Usage:
            coordinator.environment.attach(unload_source=AtexitSignal())
        """
        if ready_source is not None:
            self.ready_source = self._replace(self.ready_source, ready_source, self._on_ready)
        if unload_source is not None:
            self.unload_source = self._replace(self.unload_source, unload_source, self._on_unload)

    @staticmethod
    def _replace(current: Optional[OneShotSignal], new: OneShotSignal, callback) -> OneShotSignal:
        if current is new:
            return current
        if current is not None:
            current.unsubscribe(callback)
            logger.debug(f"Replacing signal source {current!r} with {new!r}")
        new.subscribe(callback)
        return new

    def ready(self) -> bool:
        """Fire the ready source. Returns False if it already fired."""
        return self.ready_source.fire()

    def unload(self) -> bool:
        """Fire the unload source. Returns False if it already fired."""
        return self.unload_source.fire()

    def _on_ready(self) -> None:
        if self.is_ready:
            return
        self.is_ready = True
        logger.info("Environment ready")
        self.events.trigger(READY)

    def _on_unload(self) -> None:
        if self.is_unloading:
            return
        self.is_unloading = True
        logger.info("Environment unloading")
        self.events.trigger(UNLOAD)
