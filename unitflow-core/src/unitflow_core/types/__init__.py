"""Core data types for unitflow.

Submodules:
    common: Base types (Timestamp, TestId)
"""

from unitflow_core.types.common import TestId, Timestamp

__all__ = [
    "TestId",
    "Timestamp",
]
