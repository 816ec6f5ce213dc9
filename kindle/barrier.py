"""
Lock barrier - a counter that suspends app initialization while held.

Any number of independent callers may hold the barrier at once. There is
no identity tracking: each lock() must be paired with an unlock().
Every unlock() asks the owner to re-check all apps; apps only initialize
once the count is back to zero.
"""

from __future__ import annotations

import contextlib
import logging
from typing import Callable, Optional, Union

from .faults import FaultEngine, LockUnderflowFault, get_default_engine

logger = logging.getLogger("kindle.barrier")


class LockBarrier:
    """
    Counting barrier.

    Args:
        on_unlock: Called after every unlock(), whatever the resulting count
        fault_engine: Where underflow is reported
        strict: Raise LockUnderflowFault instead of reporting it. Either a
            bool or a callable returning one, read at every unlock()
    """

    def __init__(
        self,
        on_unlock: Optional[Callable[[], None]] = None,
        *,
        fault_engine: Optional[FaultEngine] = None,
        strict: Union[bool, Callable[[], bool]] = False,
    ):
        self._count = 0
        self._on_unlock = on_unlock
        self._faults = fault_engine or get_default_engine()
        self._strict = strict

    @property
    def strict(self) -> bool:
        """Current strict mode; a callable policy is evaluated on each read."""
        if callable(self._strict):
            return bool(self._strict())
        return self._strict

    @strict.setter
    def strict(self, value: Union[bool, Callable[[], bool]]) -> None:
        self._strict = value

    @property
    def count(self) -> int:
        return self._count

    @property
    def is_locked(self) -> bool:
        return self._count > 0

    def lock(self) -> None:
        self._count += 1
        logger.debug(f"Barrier locked (count={self._count})")

    def unlock(self) -> None:
        """
        Release one lock, then broadcast a re-check.

        Unlocking at zero keeps the count at zero and reports
        LOCK_UNDERFLOW (or raises it in strict mode). The re-check still
        runs.
        """
        if self._count == 0:
            fault = LockUnderflowFault(self._count)
            if self.strict:
                raise fault
            self._faults.report(fault)
        else:
            self._count -= 1

        logger.debug(f"Barrier unlocked (count={self._count})")

        if self._on_unlock is not None:
            self._on_unlock()

    @contextlib.contextmanager
    def held(self):
        """
        Hold the barrier for the duration of a block.

        Usage:
            with barrier.held():
                load_remote_settings()
            # apps waiting on the barrier start here
        """
        self.lock()
        try:
            yield self
        finally:
            self.unlock()

    def __repr__(self) -> str:
        return f"<LockBarrier count={self._count}>"
