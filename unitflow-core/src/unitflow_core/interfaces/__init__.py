"""Protocol-based interface definitions for unitflow.

Interface Categories:
    Reporter: Receives test run lifecycle events from the scheduler.
"""

from unitflow_core.interfaces.reporter import Reporter

__all__ = [
    "Reporter",
]
