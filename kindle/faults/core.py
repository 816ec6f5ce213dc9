"""
Kindle Faults - Core types and fault taxonomy.

Defines:
- Fault base class (structured fault objects)
- FaultContext (runtime context wrapper)
- FaultDomain (explicit fault domains)
- Severity levels
"""

from __future__ import annotations

import hashlib
import time
from enum import Enum
from dataclasses import dataclass, field
from typing import Any, Optional
from datetime import datetime, timezone


# ============================================================================
# Severity & Domain
# ============================================================================

class Severity(str, Enum):
    """
    Fault severity levels.

    Determines the logging level a reported fault is emitted at.
    """
    INFO = "info"
    WARN = "warn"
    ERROR = "error"
    FATAL = "fatal"


class FaultDomain:
    """
    Fault domains (taxonomy).

    Identifies the functional area where a fault occurred.
    Can be one of the standard domains or a custom domain.
    """

    def __init__(self, name: str, description: str = ""):
        self.name = name
        self.value = name  # For compatibility with Enum consumers
        self.description = description

    def __str__(self) -> str:
        return self.name

    def __repr__(self) -> str:
        return f"FaultDomain(name='{self.name}')"

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, FaultDomain):
            return self.name == other.name
        return str(self) == str(other)

    def __hash__(self) -> int:
        return hash(self.name)


# Standard Domains
FaultDomain.CONFIG = FaultDomain("config", "Configuration errors")
FaultDomain.REGISTRATION = FaultDomain("registration", "Callback registration misuse")
FaultDomain.LIFECYCLE = FaultDomain("lifecycle", "App lifecycle transitions")
FaultDomain.BARRIER = FaultDomain("barrier", "Lock barrier accounting")
FaultDomain.SYSTEM = FaultDomain("system", "System level faults")


DOMAIN_DEFAULTS = {
    FaultDomain.CONFIG: Severity.FATAL,
    FaultDomain.REGISTRATION: Severity.WARN,
    FaultDomain.LIFECYCLE: Severity.WARN,
    FaultDomain.BARRIER: Severity.WARN,
    FaultDomain.SYSTEM: Severity.FATAL,
}


# ============================================================================
# Fault - Base Class
# ============================================================================

class Fault(Exception):
    """
    Base fault class - structured, typed fault object.

    A fault is a first-class value with:
    - Stable machine-readable code
    - Human-readable message
    - Severity level
    - Domain classification

    Faults may be raised, or reported through a FaultEngine without
    interrupting the caller.

    Attributes:
        code: Stable machine-readable identifier (e.g., "LOCK_UNDERFLOW")
        message: Human-readable summary
        severity: Fault severity (INFO, WARN, ERROR, FATAL)
        domain: Fault domain (CONFIG, LIFECYCLE, BARRIER, ...)
        metadata: Additional context data

    Example:
        ```python
        raise Fault(
            code="APP_NOT_FOUND",
            message="No app named 'billing'",
            domain=FaultDomain.LIFECYCLE,
        )
        ```
    """

    def __init__(
        self,
        code: str | None = None,
        message: str | None = None,
        *,
        domain: FaultDomain | None = None,
        severity: Optional[Severity] = None,
        metadata: Optional[dict[str, Any]] = None,
    ):
        # Fallback to class attributes if not provided
        self.code = code if code is not None else getattr(self, "code", None)
        self.message = message if message is not None else getattr(self, "message", None)
        self.domain = domain if domain is not None else getattr(self, "domain", None)

        if self.code is None or self.message is None or self.domain is None:
            raise TypeError(f"{self.__class__.__name__} missing required code, message, or domain")

        super().__init__(self.message)

        self.severity = severity or DOMAIN_DEFAULTS.get(self.domain, Severity.ERROR)
        self.metadata = metadata or {}

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"

    def __repr__(self) -> str:
        return (
            f"Fault(code={self.code!r}, domain={self.domain.value}, "
            f"severity={self.severity.value})"
        )

    def to_dict(self) -> dict[str, Any]:
        """
        Serialize fault to dictionary.

        Returns:
            Dictionary representation suitable for logging/serialization
        """
        return {
            "code": self.code,
            "message": self.message,
            "domain": self.domain.value,
            "severity": self.severity.value,
            "metadata": self.metadata,
        }


# ============================================================================
# FaultContext - Runtime Context Wrapper
# ============================================================================

@dataclass(slots=True)
class FaultContext:
    """
    Runtime context wrapper for reported faults.

    Attributes:
        fault: The underlying fault
        trace_id: Unique id for this fault occurrence
        app: App name (if the fault occurred in app scope)
        timestamp: When the fault was captured
    """

    fault: Fault
    trace_id: str
    app: Optional[str] = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def capture(cls, fault: Fault, *, app: Optional[str] = None) -> FaultContext:
        """Wrap a fault with a generated trace id."""
        trace_data = f"{fault.code}:{time.time_ns()}"
        trace_id = hashlib.sha256(trace_data.encode()).hexdigest()[:16]
        return cls(fault=fault, trace_id=trace_id, app=app)

    def fingerprint(self) -> str:
        """
        Stable fingerprint for grouping similar faults.

        Fingerprint = hash(code + domain + app)
        """
        data = ":".join([self.fault.code, self.fault.domain.value, self.app or ""])
        return hashlib.sha256(data.encode()).hexdigest()[:16]

    def to_dict(self) -> dict[str, Any]:
        return {
            "fault": self.fault.to_dict(),
            "trace_id": self.trace_id,
            "fingerprint": self.fingerprint(),
            "timestamp": self.timestamp.isoformat(),
            "app": self.app,
        }

    def __str__(self) -> str:
        scope = f"app={self.app}" if self.app else "global"
        return f"FaultContext[{self.trace_id}]({scope}): {self.fault}"
