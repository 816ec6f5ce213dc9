"""
Kindle Faults - Domain-specific fault types.

Provides concrete fault classes for each domain:
- CONFIG faults
- REGISTRATION faults
- LIFECYCLE faults
- BARRIER faults
"""

from typing import Any, Optional
from .core import Fault, FaultDomain, Severity


# ============================================================================
# CONFIG Faults
# ============================================================================

class ConfigFault(Fault):
    """Base class for configuration faults."""

    def __init__(
        self,
        code: str,
        message: str,
        *,
        severity: Severity = Severity.FATAL,
        metadata: Optional[dict[str, Any]] = None,
    ):
        super().__init__(
            code=code,
            message=message,
            domain=FaultDomain.CONFIG,
            severity=severity,
            metadata=metadata,
        )


class ConfigInvalidFault(ConfigFault):
    """Configuration value is invalid."""

    def __init__(self, key: str, reason: str, **kwargs):
        super().__init__(
            code="CONFIG_INVALID",
            message=f"Configuration key '{key}' is invalid: {reason}",
            metadata={"key": key, "reason": reason, **kwargs.get("metadata", {})},
        )


# ============================================================================
# REGISTRATION Faults
# ============================================================================

class CallbackMisuseFault(Fault):
    """A non-callable value was registered as a lifecycle callback."""

    def __init__(self, kind: str, value: Any, *, app: Optional[str] = None):
        super().__init__(
            code="CALLBACK_NOT_CALLABLE",
            message=f"{kind.capitalize()} must have a function, got {type(value).__name__}",
            domain=FaultDomain.REGISTRATION,
            metadata={"kind": kind, "app": app, "value_type": type(value).__name__},
        )


class ConfigureMisuseFault(Fault):
    """configure() was given a key that is neither a string nor a mapping."""

    def __init__(self, key: Any, *, app: Optional[str] = None):
        super().__init__(
            code="CONFIGURE_INVALID_KEY",
            message=f"Configure expects a string key or a mapping, got {type(key).__name__}",
            domain=FaultDomain.REGISTRATION,
            metadata={"app": app, "key_type": type(key).__name__},
        )


# ============================================================================
# LIFECYCLE Faults
# ============================================================================

class LateSetupFault(Fault):
    """A setup callback was registered after the app already initialized."""

    def __init__(self, app: str, *, policy: str = "warn"):
        super().__init__(
            code="SETUP_AFTER_INITIALIZE",
            message=f"App '{app}' already initialized; setup callback will not be drained",
            domain=FaultDomain.LIFECYCLE,
            metadata={"app": app, "policy": policy},
        )


# ============================================================================
# BARRIER Faults
# ============================================================================

class LockUnderflowFault(Fault):
    """unlock() was called more times than lock()."""

    def __init__(self, count: int = 0):
        super().__init__(
            code="LOCK_UNDERFLOW",
            message="unlock() called without a matching lock(); lock count stays at 0",
            domain=FaultDomain.BARRIER,
            metadata={"count": count},
        )
