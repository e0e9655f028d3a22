"""Root conftest.py for the unitflow monorepo.

This provides shared pytest configuration and fixtures across all packages.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import TYPE_CHECKING, Any, Sequence

import pytest

if TYPE_CHECKING:
    from _pytest.config import Config


# Add all package src directories to path for imports
PROJECT_ROOT = Path(__file__).parent
for pkg_dir in PROJECT_ROOT.glob("unitflow-*/src"):
    if str(pkg_dir) not in sys.path:
        sys.path.insert(0, str(pkg_dir))

from unitflow_suite.reporter import BaseReporter  # noqa: E402
from unitflow_suite.testcase import TestCase  # noqa: E402


def pytest_configure(config: Config) -> None:
    """Register custom markers.

    Args:
        config: pytest configuration object.
    """
    config.addinivalue_line(
        "markers",
        "slow: Slow-running test",
    )


class RecordingReporter(BaseReporter):
    """Reporter that records every event it receives."""

    def __init__(self, auto_start: bool = False) -> None:
        super().__init__(auto_start=auto_start)
        self.events: list[tuple[Any, ...]] = []
        self.summary: tuple[int, int, int, str | None] | None = None
        self.success: bool | None = None

    def on_init(self) -> None:
        self.events.append(("init",))

    def on_start(self) -> None:
        self.events.append(("start",))

    def on_test_start(self, case: TestCase) -> None:
        self.events.append(("test_start", case.id))

    def on_test_result(self, case: TestCase) -> None:
        self.events.append(("result", case.id, case.result))

    def on_test_result_changed(self, case: TestCase) -> None:
        self.events.append(("changed", case.id))

    def on_log_message(self, case: TestCase | None, message: str) -> None:
        self.events.append(("log", case.id if case else None, message))

    def on_summary(
        self,
        passed: int,
        failed: int,
        errors: int,
        cases: Sequence[TestCase],
        uncaught_error: str | None,
    ) -> None:
        self.summary = (passed, failed, errors, uncaught_error)
        self.events.append(("summary",))

    def on_done(self, success: bool) -> None:
        self.success = success
        self.events.append(("done", success))

    def names(self) -> list[str]:
        """Return the event names in order."""
        return [event[0] for event in self.events]


@pytest.fixture
def recorder() -> RecordingReporter:
    """Create a recording reporter."""
    return RecordingReporter()
