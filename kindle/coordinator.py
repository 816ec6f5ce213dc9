"""
Coordinator - owns the app registry, the lock barrier and the
environment bridge for a group of apps.

One coordinator per process is the normal setup; a default one is created
lazily and backs the module-level ``lock()`` / ``unlock()`` functions.
Independent coordinators never affect each other, which keeps tests
isolated.

Usage:
    coordinator = Coordinator()

    app = coordinator.app("search")
    app.start(lambda config: build_index(config))

    coordinator.lock()            # hold every app back
    coordinator.ready()           # environment is up, apps still wait
    coordinator.unlock()          # search starts here

    with LifecycleManager(coordinator):
        serve_forever()
    # apps unloaded here
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from .app import App
from .barrier import LockBarrier
from .config import Settings, load_settings
from .environment import EnvironmentBridge
from .events import Observable
from .faults import FaultEngine, get_default_engine
from .registry import AppRegistry
from .signals import OneShotSignal

logger = logging.getLogger("kindle.coordinator")


class Coordinator:
    """
    Coordinates activation of every app registered with it.

    Responsibilities:
    - Track registered apps
    - Hold the lock barrier and broadcast re-checks on unlock
    - Bridge host ready/unload signals to the apps
    - Report misuse through the fault engine
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        *,
        fault_engine: Optional[FaultEngine] = None,
        ready_source: Optional[OneShotSignal] = None,
        unload_source: Optional[OneShotSignal] = None,
    ):
        """
        Initialize coordinator.

        Args:
            settings: Policies and per-app config (defaults if None)
            fault_engine: Misuse reporter (process default if None)
            ready_source: Host "ready" signal (manual if None)
            unload_source: Host "unload" signal (manual if None)
        """
        self.settings = settings or Settings()
        self.faults = fault_engine or get_default_engine()
        self.events = Observable()
        self.registry = AppRegistry()
        self.barrier = LockBarrier(
            self.run_checks,
            fault_engine=self.faults,
            strict=lambda: self.settings.strict_locks,
        )
        self.environment = EnvironmentBridge(self.events, ready_source, unload_source)
        self._default_app: Optional[App] = None

    # ========================================================================
    # Apps
    # ========================================================================

    def register(self, app: App) -> None:
        """Called by App on construction."""
        self.registry.add(app)
        logger.debug(f"Registered app '{app.name}'")

    def app(self, name: Optional[str] = None, **kwargs: Any) -> App:
        """Create an App bound to this coordinator."""
        return App(name, coordinator=self, **kwargs)

    @property
    def apps(self) -> List[App]:
        return list(self.registry)

    @property
    def default_app(self) -> App:
        """A base app, created on first access."""
        if self._default_app is None:
            self._default_app = self.app("app")
        return self._default_app

    def run_checks(self) -> None:
        """Re-evaluate every app's gating check."""
        self.registry.run_checks()

    # ========================================================================
    # Lock barrier
    # ========================================================================

    def lock(self) -> None:
        """Hold back every pending initialization."""
        self.barrier.lock()

    def unlock(self) -> None:
        """Release one lock and re-check every app."""
        self.barrier.unlock()

    def held(self):
        """Context manager holding one lock."""
        return self.barrier.held()

    @property
    def lock_count(self) -> int:
        return self.barrier.count

    # ========================================================================
    # Environment
    # ========================================================================

    @property
    def is_ready(self) -> bool:
        return self.environment.is_ready

    def ready(self) -> bool:
        """Signal that the environment is ready."""
        return self.environment.ready()

    def unload(self) -> bool:
        """Signal that the environment is about to unload."""
        return self.environment.unload()

    def attach(
        self,
        ready_source: Optional[OneShotSignal] = None,
        unload_source: Optional[OneShotSignal] = None,
    ) -> None:
        """
        Wire host signals after construction.

        Usage:
            kindle.get_default_coordinator().attach(unload_source=AtexitSignal())
        """
        self.environment.attach(ready_source, unload_source)

    def running(self) -> "LifecycleManager":
        return LifecycleManager(self)

    # ========================================================================
    # Status
    # ========================================================================

    def get_status(self) -> Dict[str, Any]:
        """
        Get current coordinator status.

        Returns:
            Status dict with readiness, lock count and app counts
        """
        return {
            "ready": self.is_ready,
            "unloading": self.environment.is_unloading,
            "locks": self.lock_count,
            "total_apps": len(self.registry),
            "initialized_apps": [app.name for app in self.registry.initialized],
            "unloaded_apps": [app.name for app in self.registry.unloaded],
        }

    def __repr__(self) -> str:
        return (
            f"<Coordinator apps={len(self.registry)} ready={self.is_ready} "
            f"locks={self.lock_count}>"
        )


class LifecycleManager:
    """
    Lifecycle context manager.

    Fires the environment's ready signal on entry and its unload signal
    on exit. Exceptions are never suppressed.

    Usage:
        with LifecycleManager(coordinator) as coordinator:
            run_worker()

        async with LifecycleManager(coordinator):
            await serve()
    """

    def __init__(self, coordinator: Optional[Coordinator] = None):
        self.coordinator = coordinator or get_default_coordinator()

    def __enter__(self) -> Coordinator:
        self.coordinator.ready()
        return self.coordinator

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.coordinator.unload()
        return False

    async def __aenter__(self) -> Coordinator:
        return self.__enter__()

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return self.__exit__(exc_type, exc_val, exc_tb)


def create_coordinator(
    config_paths: Optional[list[str]] = None,
    *,
    env_file: Optional[str] = None,
    overrides: Optional[Dict[str, Any]] = None,
    **kwargs: Any,
) -> Coordinator:
    """
    Factory: load settings and build a coordinator.

    Args:
        config_paths: Settings files (YAML/JSON)
        env_file: Optional .env file
        overrides: Settings overrides
        **kwargs: Passed to Coordinator

    Returns:
        Configured Coordinator
    """
    settings = load_settings(config_paths, env_file=env_file, overrides=overrides)
    return Coordinator(settings, **kwargs)


# ============================================================================
# Default coordinator
# ============================================================================

_default_coordinator: Optional[Coordinator] = None


def get_default_coordinator() -> Coordinator:
    """Get or create the process-wide coordinator."""
    global _default_coordinator
    if _default_coordinator is None:
        _default_coordinator = Coordinator()
    return _default_coordinator


def set_default_coordinator(coordinator: Coordinator) -> None:
    global _default_coordinator
    _default_coordinator = coordinator


def reset_default_coordinator() -> None:
    """Drop the default coordinator; the next access builds a fresh one."""
    global _default_coordinator
    _default_coordinator = None


def lock() -> None:
    """Hold back every pending initialization on the default coordinator."""
    get_default_coordinator().lock()


def unlock() -> None:
    """Release one lock on the default coordinator and re-check its apps."""
    get_default_coordinator().unlock()


def apps() -> List[App]:
    """Apps registered with the default coordinator."""
    return get_default_coordinator().apps


def default_app() -> App:
    """The default coordinator's base app."""
    return get_default_coordinator().default_app
