"""Test case state machine."""

from __future__ import annotations

import asyncio
import logging
import threading
import traceback
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable

from unitflow_core.types.common import TestId, Timestamp

from unitflow_suite.action import Action, Immediate, Outcome, Pending, invoke, recover, then

if TYPE_CHECKING:
    from unitflow_core.interfaces.reporter import Reporter

logger = logging.getLogger(__name__)

# Stage names used in error messages
SETUP_STAGE = "Setup"
BODY_STAGE = "Test"
TEARDOWN_STAGE = "Teardown"

# Type for test bodies: called with no arguments, may return an awaitable
TestBody = Callable[[], Any]


class TestResult(Enum):
    """Terminal outcome of a test case."""

    __test__ = False

    PASS = "pass"
    FAIL = "fail"
    ERROR = "error"


@dataclass(frozen=True)
class LateError:
    """A problem reported after the test case already had a result.

    Late errors never change the stored result. They are kept so that
    activity after completion (a stray callback, a second failure) stays
    visible in the case record.
    """

    message: str
    stack_trace: str
    timestamp: Timestamp

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "message": self.message,
            "stack_trace": self.stack_trace,
            "timestamp": self.timestamp.unix_ns,
        }


def format_trace(exc: BaseException) -> str:
    """Return the formatted traceback of an exception."""
    return "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))


class TestCase:
    """One registered test.

    A case moves from "no result" to exactly one of PASS, FAIL or ERROR per
    run. While the body runs it holds one unit of outstanding work; guarded
    callbacks add more. When the count drops to zero and nothing failed, the
    case passes.

    Counter updates, the result transition and the hand-off to a waiting
    scheduler happen under one lock, so callbacks may complete from any
    thread without a case being completed twice.

    Example:
        case = TestCase(1, "adds numbers", body=lambda: None)
        pending = case.run()      # None: the body finished synchronously
        assert case.result is TestResult.PASS
    """

    __test__ = False

    def __init__(
        self,
        test_id: int,
        description: str,
        body: TestBody,
        setup: Action | None = None,
        teardown: Action | None = None,
        reporter: Reporter | None = None,
    ) -> None:
        """Initialize the test case.

        Args:
            test_id: 1-based registration id.
            description: Fully qualified description (group chain plus own description).
            body: The test procedure.
            setup: Composed setup chain of the enclosing group.
            teardown: Composed teardown chain of the enclosing group.
            reporter: Receives result events for this case.
        """
        self._id = TestId(test_id)
        self._description = description
        self._body = body
        self._setup = setup
        self._teardown = teardown
        self._reporter = reporter
        self.enabled = True
        self._lock = threading.Lock()
        self._generation = 0
        self.reset_run()

    def reset_run(self) -> None:
        """Clear per-run state and start a new run generation.

        Guards created during an earlier generation no longer count
        toward this case.
        """
        with self._lock:
            self._generation += 1
            self._clear_run_state()

    def _clear_run_state(self) -> None:
        self._result: TestResult | None = None
        self._message = ""
        self._stack_trace = ""
        self._late_errors: list[LateError] = []
        self._outstanding = 0
        self._started_at: Timestamp | None = None
        self._finished_at: Timestamp | None = None
        self._finalized = False
        self._waiter: asyncio.Future[None] | None = None

    @property
    def id(self) -> TestId:
        """Return the registration id."""
        return self._id

    @property
    def description(self) -> str:
        """Return the fully qualified description."""
        return self._description

    @property
    def body(self) -> TestBody:
        """Return the test procedure."""
        return self._body

    @property
    def setup(self) -> Action | None:
        """Return the composed setup chain."""
        return self._setup

    @property
    def teardown(self) -> Action | None:
        """Return the composed teardown chain."""
        return self._teardown

    @property
    def result(self) -> TestResult | None:
        """Return the result, or None if the case has not completed."""
        return self._result

    @property
    def message(self) -> str:
        """Return the failure or error message."""
        return self._message

    @property
    def stack_trace(self) -> str:
        """Return the stack trace recorded with the result."""
        return self._stack_trace

    @property
    def late_errors(self) -> tuple[LateError, ...]:
        """Return problems reported after the case completed."""
        return tuple(self._late_errors)

    @property
    def generation(self) -> int:
        """Return the run generation, bumped each time per-run state is reset."""
        return self._generation

    @property
    def outstanding_callbacks(self) -> int:
        """Return the number of units of work still expected."""
        return self._outstanding

    @property
    def started_at(self) -> Timestamp | None:
        """Return when the body started."""
        return self._started_at

    @property
    def finished_at(self) -> Timestamp | None:
        """Return when the result was set."""
        return self._finished_at

    @property
    def is_complete(self) -> bool:
        """Return True once a result is set."""
        return self._result is not None

    @property
    def passed(self) -> bool:
        """Return True if the case passed."""
        return self._result is TestResult.PASS

    @property
    def duration_seconds(self) -> float | None:
        """Return the time from body start to result, or None."""
        if self._started_at is None or self._finished_at is None:
            return None
        return self._started_at.seconds_until(self._finished_at)

    # -- Result transitions --

    def pass_(self) -> None:
        """Mark the case as passed.

        Only valid while the case has no result; otherwise this is ignored.
        """
        with self._lock:
            changed, waiter = self._set_result(TestResult.PASS, "", "")
        if not changed:
            logger.debug("Ignoring pass for completed test %d", self._id)
            return
        self._announce(waiter)

    def fail(self, message: str, stack_trace: str = "") -> None:
        """Mark the case as failed.

        If the case already has a result this is recorded as a late error
        instead, because it means something kept running after completion.

        Args:
            message: Failure message.
            stack_trace: Formatted stack trace.
        """
        with self._lock:
            previous = self._result
            changed, waiter = self._set_result(TestResult.FAIL, message, stack_trace)
        if not changed:
            self._report_late(
                f"fail() called after test already completed as {previous.value}: {message}",
                stack_trace,
            )
            return
        self._announce(waiter)

    def error(self, message: str, stack_trace: str = "") -> None:
        """Mark the case as errored.

        If the case already has a result the outcome is kept and the error
        is recorded as a late error.

        Args:
            message: Error message.
            stack_trace: Formatted stack trace.
        """
        with self._lock:
            changed, waiter = self._set_result(TestResult.ERROR, message, stack_trace)
        if not changed:
            self._report_late(message, stack_trace)
            return
        self._announce(waiter)

    def register_exception(self, exc: BaseException, stage: str | None = None) -> None:
        """Attribute an exception to this case.

        Assertion failures fail the case with their own message; anything
        else is an error. ``stage`` is set when the exception came from the
        case's own setup, body or teardown.

        Args:
            exc: The exception raised.
            stage: SETUP_STAGE, BODY_STAGE or TEARDOWN_STAGE, or None for
                exceptions raised in guarded callbacks.
        """
        stack_trace = format_trace(exc)
        if isinstance(exc, AssertionError):
            message = str(exc)
        elif stage in (SETUP_STAGE, TEARDOWN_STAGE):
            message = f"{stage} failed: Caught {exc!r}"
        else:
            message = f"Caught {exc!r}"

        if stage is not None and self._escalate(message, stack_trace):
            return
        if isinstance(exc, AssertionError):
            self.fail(message, stack_trace)
        else:
            self.error(message, stack_trace)

    def _set_result(
        self, result: TestResult, message: str, stack_trace: str
    ) -> tuple[bool, asyncio.Future[None] | None]:
        # Caller holds the lock.
        if self._result is not None:
            return False, None
        self._result = result
        self._message = message
        self._stack_trace = stack_trace
        self._finished_at = Timestamp.now()
        waiter, self._waiter = self._waiter, None
        return True, waiter

    def _escalate(self, message: str, stack_trace: str) -> bool:
        # A stage of this run failed after the case passed (e.g. teardown).
        with self._lock:
            if self._result is not TestResult.PASS or self._finalized:
                return False
            self._result = TestResult.ERROR
            self._message = f"Test failed after initially passing: {message}"
            self._stack_trace = stack_trace
        logger.info("Test %d: %s", self._id, self._message)
        self._notify("on_test_result_changed")
        return True

    def _announce(self, waiter: asyncio.Future[None] | None) -> None:
        if self._result is TestResult.PASS:
            logger.debug("Test %d passed: %s", self._id, self._description)
        else:
            logger.info(
                "Test %d %s: %s: %s",
                self._id,
                self._result.value if self._result else "?",
                self._description,
                self._message,
            )
        self._notify("on_test_result")
        if waiter is not None:
            waiter.get_loop().call_soon_threadsafe(_resolve, waiter)

    def _report_late(self, message: str, stack_trace: str) -> None:
        late = LateError(message=message, stack_trace=stack_trace, timestamp=Timestamp.now())
        with self._lock:
            self._late_errors.append(late)
        logger.warning(
            "Test %d (%s) already completed as %s: %s",
            self._id,
            self._description,
            self._result.value if self._result else "?",
            message,
        )
        self._notify("on_test_result_changed")

    def _notify(self, event: str) -> None:
        if self._reporter is not None:
            getattr(self._reporter, event)(self)

    # -- Outstanding work --

    def mark_callback_started(self) -> int:
        """Register one unit of outstanding work.

        Returns:
            The run generation the unit belongs to.
        """
        with self._lock:
            self._outstanding += 1
            return self._generation

    def mark_callback_complete(self, generation: int | None = None) -> None:
        """Release one unit of outstanding work.

        When the count reaches zero and the case has no result yet, the case
        passes and a waiting scheduler is woken.

        Args:
            generation: Run generation the unit was registered in. Units
                from an earlier run are ignored.
        """
        with self._lock:
            if generation is not None and generation != self._generation:
                logger.debug(
                    "Test %d: ignoring completion from run generation %d (now %d)",
                    self._id,
                    generation,
                    self._generation,
                )
                return
            if self._outstanding == 0:
                logger.warning("Test %d: callback completed with none outstanding", self._id)
                return
            self._outstanding -= 1
            if self._outstanding > 0 or self._result is not None:
                return
            _, waiter = self._set_result(TestResult.PASS, "", "")
        self._announce(waiter)

    def _completion_waiter(self) -> asyncio.Future[None] | None:
        with self._lock:
            if self._result is not None:
                return None
            self._waiter = asyncio.get_running_loop().create_future()
            return self._waiter

    # -- Execution --

    def run(self) -> asyncio.Future[Any] | None:
        """Run setup, body and teardown.

        Returns:
            None if the case finished synchronously, otherwise a future that
            completes once the case is finalized. Disabled cases return None
            without running.
        """
        if not self.enabled:
            return None
        self.reset_run()

        outcome = self._run_stage(SETUP_STAGE, self._setup)
        outcome = then(outcome, self._run_body)
        outcome = then(outcome, lambda: self._run_stage(TEARDOWN_STAGE, self._teardown))
        outcome = then(outcome, self._finalize)
        if isinstance(outcome, Pending):
            return outcome.handle
        return None

    def _run_stage(self, stage: str, action: Action | None) -> Outcome:
        if action is None:
            return Immediate()
        try:
            outcome = invoke(action)
        except Exception as exc:  # pylint: disable=broad-except
            self.register_exception(exc, stage)
            return Immediate()
        return recover(outcome, lambda exc: self.register_exception(exc, stage))

    def _run_body(self) -> Outcome:
        if self._result is not None:
            # Setup failed
            return Immediate()
        self._started_at = Timestamp.now()
        logger.debug("Starting test %d: %s", self._id, self._description)
        self._notify("on_test_start")
        generation = self.mark_callback_started()
        outcome = self._run_stage(BODY_STAGE, self._body)
        return then(outcome, lambda: self._await_callbacks(generation))

    def _await_callbacks(self, generation: int) -> Outcome:
        self.mark_callback_complete(generation)
        waiter = self._completion_waiter()
        if waiter is None:
            return Immediate()
        logger.debug(
            "Test %d waiting on %d outstanding callback(s)", self._id, self._outstanding
        )
        return Pending(waiter)

    def _finalize(self) -> Outcome:
        self._finalized = True
        return Immediate()

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "id": self._id,
            "description": self._description,
            "enabled": self.enabled,
            "result": self._result.value if self._result else None,
            "message": self._message,
            "stack_trace": self._stack_trace,
            "late_errors": [e.to_dict() for e in self._late_errors],
            "started_at": self._started_at.unix_ns if self._started_at else None,
            "finished_at": self._finished_at.unix_ns if self._finished_at else None,
            "duration_seconds": self.duration_seconds,
        }

    def __repr__(self) -> str:
        result = self._result.value if self._result else None
        return f"TestCase(id={self._id}, description={self._description!r}, result={result})"


def _resolve(waiter: asyncio.Future[None]) -> None:
    if not waiter.done():
        waiter.set_result(None)
