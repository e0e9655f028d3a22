"""Core library for the unitflow test orchestration engine.

This package provides foundational data types, interfaces, and error types
shared by the other unitflow packages. It has no external dependencies so it
can serve as the base layer.

Key components:
    - Types: Timestamp and the TestId alias.
    - Interfaces: The Reporter protocol consumed by the scheduler.
    - Errors: Hierarchy of exception types for failures and misuse.
"""

from unitflow_core.errors import (
    CallCountError,
    StateError,
    TestFailure,
    UnitflowError,
)
from unitflow_core.interfaces import Reporter
from unitflow_core.types import TestId, Timestamp

__all__ = [
    # Errors
    "CallCountError",
    "StateError",
    "TestFailure",
    "UnitflowError",
    # Interfaces
    "Reporter",
    # Types
    "TestId",
    "Timestamp",
]
