"""Common types used across unitflow modules.

Type Aliases:
    TestId: 1-based identifier assigned to a test case at registration.

Classes:
    Timestamp: High-resolution timestamp with nanosecond precision.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import NewType

TestId = NewType("TestId", int)
"""Type alias for test case identifiers (sequential, starting at 1)."""


@dataclass(frozen=True)
class Timestamp:
    """High-resolution timestamp with nanosecond precision.

    Timestamps are stored as nanoseconds since the Unix epoch (1970-01-01 00:00:00 UTC).

    Attributes:
        unix_ns: Nanoseconds since Unix epoch.

    Example:
        >>> started = Timestamp.now()
        >>> print(f"Started: {started.to_datetime().isoformat()}")
    """

    unix_ns: int

    @classmethod
    def now(cls) -> Timestamp:
        """Create a timestamp for the current time.

        Returns:
            A new Timestamp with the current time.
        """
        return cls(unix_ns=time.time_ns())

    def to_datetime(self) -> datetime:
        """Convert to a timezone-aware datetime object in UTC.

        Returns:
            A datetime object in UTC timezone.
        """
        return datetime.fromtimestamp(self.unix_ns / 1_000_000_000, tz=timezone.utc)

    def isoformat(self) -> str:
        """Return the timestamp as an ISO 8601 string in UTC."""
        return self.to_datetime().isoformat()

    def seconds_until(self, other: Timestamp) -> float:
        """Return the number of seconds from this timestamp to another.

        Args:
            other: The later timestamp.

        Returns:
            Elapsed seconds (negative if ``other`` is earlier).
        """
        return (other.unix_ns - self.unix_ns) / 1_000_000_000
