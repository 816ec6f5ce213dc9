"""
Kindle Testing - helpers for testing code built on kindle.

- MockFaultEngine / CapturedFault: assert on reported faults
- fixtures: pytest fixtures (coordinator, fault_engine, settings)
"""

from .faults import CapturedFault, MockFaultEngine

__all__ = ["CapturedFault", "MockFaultEngine"]
