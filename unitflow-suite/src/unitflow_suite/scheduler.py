"""Sequential test scheduler."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Callable

from unitflow_core.errors import StateError
from unitflow_core.interfaces.reporter import Reporter

from unitflow_suite.testcase import TestCase, TestResult, format_trace

logger = logging.getLogger(__name__)


@dataclass
class SuiteResult:
    """Result of running a suite."""

    cases: tuple[TestCase, ...]
    uncaught_error: str | None = None
    passed: int = 0
    failed: int = 0
    errors: int = 0
    skipped: int = 0

    def __post_init__(self) -> None:
        """Calculate statistics."""
        enabled = [c for c in self.cases if c.enabled]
        self.passed = sum(1 for c in enabled if c.result is TestResult.PASS)
        self.failed = sum(1 for c in enabled if c.result is TestResult.FAIL)
        self.errors = sum(1 for c in enabled if c.result is TestResult.ERROR)
        self.skipped = sum(1 for c in self.cases if not c.enabled)

    @property
    def total(self) -> int:
        """Return the number of registered cases."""
        return len(self.cases)

    @property
    def success(self) -> bool:
        """Return True if something passed and nothing failed or errored."""
        return (
            self.passed > 0
            and self.failed == 0
            and self.errors == 0
            and self.uncaught_error is None
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "cases": [c.to_dict() for c in self.cases],
            "total": self.total,
            "passed": self.passed,
            "failed": self.failed,
            "errors": self.errors,
            "skipped": self.skipped,
            "uncaught_error": self.uncaught_error,
            "success": self.success,
        }


class Scheduler:
    """Runs test cases one at a time in registration order.

    Synchronous cases are run back to back inside one batch. When a case
    hands back a pending future the batch stops; once that future settles
    the cursor advances and a new batch is scheduled on the event loop, so
    long runs of asynchronous tests do not grow the call stack.

    There is no timeout. A case whose callbacks never complete stalls the
    run; put a timeout around ``run()`` if one is needed.

    Example:
        scheduler = Scheduler(reporter)
        scheduler.add(case)
        result = await scheduler.run()
    """

    def __init__(self, reporter: Reporter) -> None:
        """Initialize the scheduler.

        Args:
            reporter: Receives run lifecycle events.
        """
        self._reporter = reporter
        self._cases: list[TestCase] = []
        self._index = 0
        self._running = False
        self._loop: asyncio.AbstractEventLoop | None = None
        self._done: asyncio.Future[SuiteResult] | None = None
        self.uncaught_error: str | None = None

    @property
    def cases(self) -> tuple[TestCase, ...]:
        """Return the cases in execution order."""
        return tuple(self._cases)

    @property
    def is_running(self) -> bool:
        """Return True while a run is in progress."""
        return self._running

    @property
    def current_case(self) -> TestCase | None:
        """Return the case under the cursor while running, else None."""
        if self._running and 0 <= self._index < len(self._cases):
            return self._cases[self._index]
        return None

    def add(self, case: TestCase) -> None:
        """Append a case.

        Args:
            case: The case to append.
        """
        self._cases.append(case)

    def clear(self) -> None:
        """Remove all cases."""
        self._check_idle("clear")
        self._cases.clear()

    def retain(self, predicate: Callable[[TestCase], bool]) -> None:
        """Keep only the cases matching a predicate, preserving order.

        Args:
            predicate: Returns True for cases to keep.

        Raises:
            StateError: If a run is in progress.
        """
        self._check_idle("filter")
        before = len(self._cases)
        self._cases[:] = [c for c in self._cases if predicate(c)]
        logger.debug("Retained %d of %d test cases", len(self._cases), before)

    def find(self, test_id: int) -> TestCase | None:
        """Find a case by id.

        Args:
            test_id: The case id.

        Returns:
            The case, or None if no case has that id.
        """
        for case in self._cases:
            if case.id == test_id:
                return case
        return None

    def report_error(self, message: str, stack_trace: str = "") -> None:
        """Record an error not raised inside any guard.

        The error goes to the running case, or to the suite's uncaught
        error if no case is running.

        Args:
            message: Error message.
            stack_trace: Formatted stack trace.
        """
        case = self.current_case
        if case is not None:
            case.error(message, stack_trace)
        else:
            self.uncaught_error = f"{message}: {stack_trace}" if stack_trace else message
            logger.error("Uncaught error outside any test: %s", message)

    def run(self) -> asyncio.Future[SuiteResult]:
        """Start running all cases from the beginning.

        Returns:
            Future resolved with the SuiteResult when the run is complete.

        Raises:
            StateError: If already running or no event loop is running.
        """
        if self._running:
            raise StateError("Suite is already running")
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError as exc:
            raise StateError("Running a suite requires a running asyncio event loop") from exc

        self._loop = loop
        self._index = 0
        self._running = True
        self._done = loop.create_future()
        logger.info("Running %d test case(s)", len(self._cases))
        self._reporter.on_start()
        loop.call_soon(self._next_batch)
        return self._done

    def rerun(self) -> asyncio.Future[SuiteResult]:
        """Run again, keeping registrations and ids.

        Returns:
            Future resolved with the SuiteResult of the new run.
        """
        self.uncaught_error = None
        return self.run()

    def _next_batch(self) -> None:
        while True:
            if self._index >= len(self._cases):
                self._complete()
                return
            case = self._cases[self._index]
            if not case.enabled:
                logger.debug("Skipping disabled test %d: %s", case.id, case.description)
                case.reset_run()
                self._index += 1
                continue
            try:
                pending = case.run()
            except Exception as exc:  # pylint: disable=broad-except
                case.register_exception(exc)
                pending = None
            if pending is not None:
                pending.add_done_callback(self._on_case_settled)
                return
            self._index += 1

    def _on_case_settled(self, future: asyncio.Future[Any]) -> None:
        if not future.cancelled() and future.exception() is not None:
            exc = future.exception()
            self.report_error(f"Caught {exc!r}", format_trace(exc))
        assert self._loop is not None
        self._loop.call_soon(self._next_test_case)

    def _next_test_case(self) -> None:
        self._index += 1
        self._next_batch()

    def _complete(self) -> None:
        self._running = False
        result = SuiteResult(cases=tuple(self._cases), uncaught_error=self.uncaught_error)
        logger.info(
            "Run complete: %d passed, %d failed, %d errors",
            result.passed,
            result.failed,
            result.errors,
        )
        self._reporter.on_summary(
            result.passed, result.failed, result.errors, result.cases, result.uncaught_error
        )
        self._reporter.on_done(result.success)
        done, self._done = self._done, None
        if done is not None and not done.done():
            done.set_result(result)

    def _check_idle(self, operation: str) -> None:
        if self._running:
            raise StateError(f"Cannot {operation} test cases while the suite is running")
