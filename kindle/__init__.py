"""
Kindle - application lifecycle coordinator.

Lets independent apps register setup/start/end callbacks and activates
them when their environment becomes ready, with:
- Manual override (ignite / smother)
- A global lock barrier that holds back pending activations
- One-shot initialize and unload transitions
- Structured, non-fatal misuse diagnostics (faults)
- Layered settings (YAML, .env, environment variables)
"""

__version__ = "0.1.0"

from .app import App, CallbackQueue, LifecycleState
from .barrier import LockBarrier
from .config import Settings, SettingsLoader, load_settings
from .coordinator import (
    Coordinator,
    LifecycleManager,
    apps,
    create_coordinator,
    default_app,
    get_default_coordinator,
    lock,
    reset_default_coordinator,
    set_default_coordinator,
    unlock,
)
from .environment import EnvironmentBridge
from .events import Observable
from .faults import (
    CallbackMisuseFault,
    ConfigInvalidFault,
    ConfigureMisuseFault,
    Fault,
    FaultEngine,
    LateSetupFault,
    LockUnderflowFault,
)
from .module import Module
from .registry import AppRegistry
from .signals import AtexitSignal, OneShotSignal

__all__ = [
    "__version__",
    # Lifecycle
    "App",
    "CallbackQueue",
    "LifecycleState",
    "Coordinator",
    "LifecycleManager",
    "create_coordinator",
    "AppRegistry",
    "LockBarrier",
    "EnvironmentBridge",
    # Default coordinator
    "get_default_coordinator",
    "set_default_coordinator",
    "reset_default_coordinator",
    "lock",
    "unlock",
    "apps",
    "default_app",
    # Primitives
    "Observable",
    "Module",
    "OneShotSignal",
    "AtexitSignal",
    # Config
    "Settings",
    "SettingsLoader",
    "load_settings",
    # Faults
    "Fault",
    "FaultEngine",
    "CallbackMisuseFault",
    "ConfigInvalidFault",
    "ConfigureMisuseFault",
    "LateSetupFault",
    "LockUnderflowFault",
]
