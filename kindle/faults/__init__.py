"""
Kindle Faults - Structured diagnostics for the lifecycle coordinator.

Misuse in kindle is not thrown at the caller. It is a **typed fault**
reported through a FaultEngine, logged, and handed to listeners.

Core exports:
- Fault: Base fault class
- FaultContext: Runtime context wrapper
- FaultDomain: Domain taxonomy
- Severity: Severity levels
- FaultEngine: Non-fatal fault reporter
"""

from .core import (
    Fault,
    FaultContext,
    FaultDomain,
    Severity,
)

from .engine import (
    FaultEngine,
    get_default_engine,
    report_fault,
)

from .domains import (
    ConfigFault,
    ConfigInvalidFault,
    CallbackMisuseFault,
    ConfigureMisuseFault,
    LateSetupFault,
    LockUnderflowFault,
)

__all__ = [
    "Fault",
    "FaultContext",
    "FaultDomain",
    "Severity",
    "FaultEngine",
    "get_default_engine",
    "report_fault",
    "ConfigFault",
    "ConfigInvalidFault",
    "CallbackMisuseFault",
    "ConfigureMisuseFault",
    "LateSetupFault",
    "LockUnderflowFault",
]
