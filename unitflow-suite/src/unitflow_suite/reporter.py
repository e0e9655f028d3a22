"""Reporter implementations."""

from __future__ import annotations

import logging
from typing import Sequence

from unitflow_suite.testcase import TestCase, TestResult

logger = logging.getLogger(__name__)


class BaseReporter:
    """Reporter that ignores every event.

    Subclass and override the events you care about.
    """

    def __init__(self, auto_start: bool = False) -> None:
        """Initialize the reporter.

        Args:
            auto_start: Start the suite automatically once tests are registered.
        """
        self._auto_start = auto_start

    @property
    def auto_start(self) -> bool:
        """Return whether the suite starts itself."""
        return self._auto_start

    def on_init(self) -> None:
        """Suite initialized."""

    def on_start(self) -> None:
        """Run started."""

    def on_test_start(self, case: TestCase) -> None:
        """Test body about to run."""

    def on_test_result(self, case: TestCase) -> None:
        """Test received its result."""

    def on_test_result_changed(self, case: TestCase) -> None:
        """Completed test reported more problems."""

    def on_log_message(self, case: TestCase | None, message: str) -> None:
        """Test code logged a message."""

    def on_summary(
        self,
        passed: int,
        failed: int,
        errors: int,
        cases: Sequence[TestCase],
        uncaught_error: str | None,
    ) -> None:
        """Run finished; final tally."""

    def on_done(self, success: bool) -> None:
        """Run finished; overall outcome."""


class LoggingReporter(BaseReporter):
    """Reporter that writes every event to the ``logging`` module.

    Results go to INFO (failures and errors include their message), late
    problems to WARNING, and the summary to INFO or ERROR depending on the
    outcome.
    """

    def __init__(self, auto_start: bool = False, log: logging.Logger | None = None) -> None:
        """Initialize the reporter.

        Args:
            auto_start: Start the suite automatically once tests are registered.
            log: Logger to write to (defaults to this module's logger).
        """
        super().__init__(auto_start=auto_start)
        self._log = log or logger

    def on_start(self) -> None:
        self._log.info("Starting test run")

    def on_test_start(self, case: TestCase) -> None:
        self._log.debug("Running test %d: %s", case.id, case.description)

    def on_test_result(self, case: TestCase) -> None:
        if case.result is TestResult.PASS:
            self._log.info("PASS: %s", case.description)
        else:
            label = case.result.value.upper() if case.result else "?"
            self._log.info("%s: %s\n  %s", label, case.description, case.message)
            if case.stack_trace:
                self._log.debug("%s", case.stack_trace)

    def on_test_result_changed(self, case: TestCase) -> None:
        if case.late_errors:
            late = case.late_errors[-1]
            self._log.warning("Test %s reported after completion: %s", case.description, late.message)
        else:
            self._log.warning(
                "Test %s changed to %s: %s",
                case.description,
                case.result.value if case.result else None,
                case.message,
            )

    def on_log_message(self, case: TestCase | None, message: str) -> None:
        if case is None:
            self._log.info("%s", message)
        else:
            self._log.info("[%d] %s", case.id, message)

    def on_summary(
        self,
        passed: int,
        failed: int,
        errors: int,
        cases: Sequence[TestCase],
        uncaught_error: str | None,
    ) -> None:
        if uncaught_error:
            self._log.error("Top-level uncaught error: %s", uncaught_error)
        if passed == 0 and failed == 0 and errors == 0 and not uncaught_error:
            self._log.info("No tests found.")
            return
        total = passed + failed + errors
        if failed == 0 and errors == 0 and not uncaught_error:
            self._log.info("All %d tests passed.", passed)
        else:
            self._log.error(
                "%d PASSED, %d FAILED, %d ERRORS (of %d run, %d registered)",
                passed,
                failed,
                errors,
                total,
                len(cases),
            )

    def on_done(self, success: bool) -> None:
        self._log.info("Test run %s", "succeeded" if success else "failed")
