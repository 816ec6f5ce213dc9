"""
App - one independently lifecycled unit of setup/start/end logic.

An App collects configuration and callbacks, then waits. It initializes
once the environment is ready (or it is ignited manually) and no lock is
held on its coordinator's barrier. It unloads when the environment
unloads (or it is smothered), but only if it ever initialized.

Usage:
    app = App(name="checkout")

    app.configure("currency", "EUR")
    app.setup(lambda config: config.setdefault("retries", 3))
    app.start(lambda config: print("starting with", config))
    app.end(lambda app, config: print("bye"))

    coordinator.ready()   # app initializes here

Lifecycle events emitted on the app, in order:
    setup:before, setup:after, start:before, start:after  (config)
    end                                                   (no payload)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Iterator, List, Mapping, Optional

from .environment import READY, UNLOAD
from .events import Observable
from .faults import CallbackMisuseFault, ConfigureMisuseFault, LateSetupFault
from .module import Module

if TYPE_CHECKING:
    from .coordinator import Coordinator

logger = logging.getLogger("kindle.app")


def _noop(config: dict) -> None:
    pass


class CallbackQueue:
    """Setup callbacks, drained once in registration order."""

    def __init__(self):
        self._callbacks: List[Callable] = []

    def append(self, fn: Callable) -> None:
        self._callbacks.append(fn)

    def drain(self, *args: Any) -> None:
        """
        Call every queued callback with ``args``, oldest first.

        The queue is emptied before the first call, so a failing callback
        leaves nothing behind to run later.
        """
        callbacks, self._callbacks = self._callbacks, []
        for fn in callbacks:
            fn(*args)

    def __len__(self) -> int:
        return len(self._callbacks)

    def __iter__(self) -> Iterator[Callable]:
        return iter(list(self._callbacks))


@dataclass(slots=True)
class LifecycleState:
    """Per-app transition flags and the single start/end callbacks."""
    has_initialized: bool = False
    is_ignited: bool = False
    has_unloaded: bool = False
    start_callback: Optional[Callable] = None
    end_callback: Optional[Callable] = None


class App(Observable, Module):
    """
    Centralized start point for an application.

    Lets several separate apps run side by side on one coordinator,
    each binding once to the environment's ready/unload events.

    Args:
        name: Label used in logs and to look up initial config in settings
        coordinator: Coordinator to register with (default coordinator if None)
        auto_start: Initialize on environment ready (settings default if None)
        auto_end: Unload on environment unload (settings default if None)
        config: Initial config, merged over the settings' ``apps.<name>``
    """

    #: Class-level defaults; None defers to the coordinator settings.
    auto_start: Optional[bool] = None
    auto_end: Optional[bool] = None

    def initialize(
        self,
        name: Optional[str] = None,
        *,
        coordinator: Optional["Coordinator"] = None,
        auto_start: Optional[bool] = None,
        auto_end: Optional[bool] = None,
        config: Optional[Mapping[str, Any]] = None,
        **kwargs: Any,
    ) -> None:
        # Extra keywords are only for initializers added by extend() or
        # by subclasses overriding initialize()
        if kwargs and type(self).initialize is App.initialize:
            raise TypeError(
                f"{type(self).__name__}() got unexpected keyword argument(s): "
                f"{', '.join(sorted(kwargs))}"
            )

        if coordinator is None:
            from .coordinator import get_default_coordinator
            coordinator = get_default_coordinator()

        self.coordinator = coordinator
        self.name = name or f"app-{len(coordinator.registry) + 1}"

        settings = coordinator.settings
        self.auto_start = self._resolve_flag(auto_start, type(self).auto_start, settings.auto_start)
        self.auto_end = self._resolve_flag(auto_end, type(self).auto_end, settings.auto_end)

        self.config: dict = settings.app_config(self.name)
        if config:
            self.config.update(config)

        self.setup_callbacks = CallbackQueue()
        self._state = LifecycleState()

        coordinator.register(self)

        self._bind_auto_start()
        self._bind_auto_end()

    @staticmethod
    def _resolve_flag(explicit: Optional[bool], declared: Optional[bool], default: bool) -> bool:
        if explicit is not None:
            return explicit
        if declared is not None:
            return declared
        return default

    # ========================================================================
    # State
    # ========================================================================

    @property
    def has_initialized(self) -> bool:
        return self._state.has_initialized

    @property
    def is_ignited(self) -> bool:
        return self._state.is_ignited

    @property
    def has_unloaded(self) -> bool:
        return self._state.has_unloaded

    @property
    def start_callback(self) -> Optional[Callable]:
        return self._state.start_callback

    @property
    def end_callback(self) -> Optional[Callable]:
        return self._state.end_callback

    # ========================================================================
    # Environment bindings
    # ========================================================================

    def _bind_auto_start(self) -> None:
        if not self.auto_start:
            return

        if self.coordinator.is_ready:
            self._check()
            return

        self.coordinator.events.on(READY, self._check)

    def _bind_auto_end(self) -> None:
        if not self.auto_end:
            return
        self.coordinator.events.on(UNLOAD, self._unload)

    def _check(self) -> None:
        """
        Initialize if no lock is held and the app is ignited, or is an
        auto-start app in a ready environment.

        Manual apps (``auto_start=False``) only start through ignite(),
        even when an unlock broadcast reaches them after ready.
        """
        if self.coordinator.lock_count > 0:
            return
        if self._state.is_ignited or (self.auto_start and self.coordinator.is_ready):
            self._initialize()

    # ========================================================================
    # Registration API
    # ========================================================================

    def configure(self, key: Any, value: Any = None) -> "App":
        """
        Extend this app's configuration.

        Args:
            key: A config key, or a mapping merged into the config
            value: Value for ``key`` when key is a string

        Any other key is reported as CONFIGURE_INVALID_KEY and ignored.

        Returns:
            The app
        """
        if isinstance(key, str):
            self.config[key] = value
        elif isinstance(key, Mapping):
            self.config.update(key)
        else:
            self.coordinator.faults.report(ConfigureMisuseFault(key, app=self.name), app=self.name)
        return self

    def setup(self, fn: Callable[[dict], Any]) -> "App":
        """
        Queue a function to run before the app starts.

        It still waits for the environment (or ignite) to run. Setup
        functions run in the order they were registered.
        """
        self._verify_callable("setup", fn)

        if self._state.has_initialized:
            self._late_setup(fn)
            return self

        self.setup_callbacks.append(fn)
        return self

    def start(self, fn: Callable[[dict], Any]) -> "App":
        """Set the function run when the app starts. Replaces any previous one."""
        self._verify_callable("start", fn)
        self._state.start_callback = fn
        return self

    def end(self, fn: Callable[["App", dict], Any]) -> "App":
        """Set the function run when the app ends. Replaces any previous one."""
        self._verify_callable("end", fn)
        self._state.end_callback = fn
        return self

    def _verify_callable(self, kind: str, fn: Any) -> None:
        # Reported, not raised: the value is still stored
        if not callable(fn):
            self.coordinator.faults.report(CallbackMisuseFault(kind, fn, app=self.name), app=self.name)

    def _late_setup(self, fn: Callable[[dict], Any]) -> None:
        policy = self.coordinator.settings.late_setup

        if policy == "run":
            logger.debug(f"App '{self.name}' already initialized; running setup immediately")
            fn(self.config)
        elif policy == "raise":
            raise LateSetupFault(self.name, policy=policy)
        elif policy == "warn":
            self.coordinator.faults.report(LateSetupFault(self.name, policy=policy), app=self.name)

    # ========================================================================
    # Manual controls
    # ========================================================================

    def ignite(self) -> "App":
        """
        Start the app without waiting for the environment.

        Still respects the lock barrier.
        """
        self._state.is_ignited = True
        self._check()
        return self

    def smother(self, options: Optional[Mapping[str, Any]] = None, *, is_silent: bool = False) -> "App":
        """
        Unload the app without waiting for the environment.

        Args:
            options: Legacy options mapping, e.g. ``{"is_silent": True}``
            is_silent: Skip the end callback and ``end`` event

        Does nothing if the app never initialized.
        """
        if not self._state.has_initialized:
            return self

        if options:
            is_silent = bool(options.get("is_silent", is_silent))

        if not is_silent:
            self._unload()

        return self

    # ========================================================================
    # Transitions
    # ========================================================================

    def _initialize(self) -> None:
        """Run setup and start. Only the first call does anything."""
        if self._state.has_initialized:
            return

        if self._state.start_callback is None:
            self._state.start_callback = _noop

        self._state.has_initialized = True
        logger.debug(f"Initializing app '{self.name}'")

        self.trigger("setup:before", self.config)
        self._call_setup()
        self.trigger("setup:after", self.config)

        self.trigger("start:before", self.config)
        self._call_start()
        self.trigger("start:after", self.config)

    def _call_setup(self) -> None:
        self.setup_callbacks.drain(self.config)

    def _call_start(self) -> None:
        self._state.start_callback(self.config)
        # Dropped so it can never run twice
        self._state.start_callback = None

    def _unload(self) -> None:
        """Run the end callback once, and only after initialization."""
        if not self._state.has_initialized or self._state.has_unloaded:
            return

        self._state.has_unloaded = True
        logger.debug(f"Unloading app '{self.name}'")

        if self._state.end_callback is not None:
            self._state.end_callback(self, self.config)
        self.trigger("end")

    # ========================================================================
    # Introspection
    # ========================================================================

    def get_status(self) -> dict:
        return {
            "name": self.name,
            "auto_start": self.auto_start,
            "auto_end": self.auto_end,
            "ignited": self._state.is_ignited,
            "initialized": self._state.has_initialized,
            "unloaded": self._state.has_unloaded,
            "pending_setup": len(self.setup_callbacks),
        }

    def __repr__(self) -> str:
        if self._state.has_unloaded:
            phase = "unloaded"
        elif self._state.has_initialized:
            phase = "initialized"
        else:
            phase = "pending"
        return f"<App '{self.name}' {phase}>"
