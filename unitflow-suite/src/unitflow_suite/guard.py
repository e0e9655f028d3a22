"""Callback guards for asynchronous tests.

A guard wraps a callback that test code hands to asynchronous machinery
(timers, futures, I/O completions). It ties the callback to the test case
that was running when the guard was created:

- exceptions raised by the callback are recorded against that case instead
  of propagating to whoever invoked the callback;
- the case is kept open until the callback has been called often enough
  (or until an ``is_done`` predicate says so);
- calls beyond the declared maximum fail the case.

Example:
    def body():
        done = expect_async(case, on_reply, count=2)
        client.request("ping", done)
        client.request("pong", done)
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable

from unitflow_core.errors import CallCountError, StateError

from unitflow_suite.action import Immediate, Pending, invoke, recover
from unitflow_suite.testcase import TestCase, TestResult

logger = logging.getLogger(__name__)

# Maximum call count meaning "no upper bound"
UNBOUNDED = -1


class CallbackGuard:
    """Wraps a callback with call-count accounting and error attribution.

    The guard is variadic: it forwards whatever positional and keyword
    arguments it receives, so one class serves callbacks of any arity.

    If an ``is_done`` predicate is given or ``min_calls`` is positive, the
    guard registers one unit of outstanding work on its case at construction
    and releases it once the completion criteria are met. Otherwise it only
    provides exception attribution.
    """

    def __init__(
        self,
        case: TestCase | None,
        callback: Callable[..., Any],
        min_calls: int = 0,
        max_calls: int = UNBOUNDED,
        is_done: Callable[[], bool] | None = None,
        id: str | None = None,  # pylint: disable=redefined-builtin
    ) -> None:
        """Initialize the guard.

        Args:
            case: The owning test case.
            callback: The callback to wrap.
            min_calls: Calls required before the guard is complete.
            max_calls: Maximum calls allowed; UNBOUNDED for no limit, 0 for
                "same as min_calls" when min_calls is positive.
            is_done: Optional predicate checked after each call.
            id: Name used in diagnostic messages.

        Raises:
            StateError: If no test case is running.
            ValueError: If min_calls is negative.
        """
        if case is None:
            raise StateError(
                "No valid test. Did you forget to run your test inside a call to test()?"
            )
        if min_calls < 0:
            raise ValueError(f"min_calls must be >= 0, got {min_calls}")

        self._case = case
        self._callback = callback
        self._min_calls = min_calls
        self._max_calls = min_calls if (max_calls == 0 and min_calls > 0) else max_calls
        self._is_done = is_done
        self._id = _make_callback_id(id, callback)
        self._actual_calls = 0
        self._lock = threading.Lock()

        if is_done is not None or min_calls > 0:
            self._generation = case.mark_callback_started()
            self._complete = False
        else:
            self._generation = case.generation
            self._complete = True

    @property
    def case(self) -> TestCase:
        """Return the owning test case."""
        return self._case

    @property
    def id(self) -> str:
        """Return the diagnostic id (may be empty)."""
        return self._id

    @property
    def actual_calls(self) -> int:
        """Return how many times the guard has been called."""
        return self._actual_calls

    @property
    def min_calls(self) -> int:
        """Return the minimum expected call count."""
        return self._min_calls

    @property
    def max_calls(self) -> int:
        """Return the maximum allowed call count (UNBOUNDED for no limit)."""
        return self._max_calls

    @property
    def complete(self) -> bool:
        """Return True once the guard no longer holds outstanding work."""
        return self._complete

    def __call__(self, *args: Any, **kwargs: Any) -> Any:
        outcome = Immediate()
        try:
            if self._should_call_back():
                outcome = invoke(self._callback, *args, **kwargs)
        except Exception as exc:  # pylint: disable=broad-except
            self._case.register_exception(exc)

        if isinstance(outcome, Pending):
            future = recover(outcome, self._case.register_exception).handle
            future.add_done_callback(lambda _: self._after())
            return future

        self._after()
        return outcome.value

    def _should_call_back(self) -> bool:
        with self._lock:
            self._actual_calls += 1
            calls = self._actual_calls

        case = self._case
        if case.generation != self._generation:
            # Created during an earlier run of this case.
            logger.debug(
                "Suppressing callback %sfrom an earlier run of test %d", self._label, case.id
            )
            return False

        if case.is_complete:
            # Not the current test any more; flag it if it had passed.
            if case.result is TestResult.PASS:
                case.error(
                    f"Callback {self._label}called ({calls}) after test case "
                    f"{case.description} has already been marked as {case.result.value}."
                )
            else:
                logger.debug("Suppressing callback %sfor completed test %d", self._label, case.id)
            return False

        if self._max_calls >= 0 and calls > self._max_calls:
            raise CallCountError(
                f"Callback {self._label}called more times than expected ({self._max_calls})."
            )
        return True

    def _after(self) -> None:
        with self._lock:
            if self._complete:
                return
            if self._min_calls > 0 and self._actual_calls < self._min_calls:
                return
            if self._is_done is not None and not self._is_done():
                return
            self._complete = True
        self._case.mark_callback_complete(self._generation)

    @property
    def _label(self) -> str:
        return f"{self._id} " if self._id else ""

    def __repr__(self) -> str:
        return (
            f"CallbackGuard(id={self._id!r}, case={self._case.id}, "
            f"calls={self._actual_calls}, complete={self._complete})"
        )


def _make_callback_id(id: str | None, callback: Callable[..., Any]) -> str:  # pylint: disable=redefined-builtin
    if id is not None:
        return id
    name = getattr(callback, "__name__", "")
    if not name or name == "<lambda>":
        return ""
    return name


def expect_async(
    case: TestCase | None,
    callback: Callable[..., Any],
    count: int = 1,
    max_count: int = 0,
    id: str | None = None,  # pylint: disable=redefined-builtin
) -> CallbackGuard:
    """Guard a callback that must be called ``count`` times.

    The test does not complete until the callback has been called at least
    ``count`` times. Calls beyond ``max_count`` fail the test.

    Args:
        case: The owning test case.
        callback: The callback to wrap.
        count: Number of expected calls.
        max_count: Maximum calls allowed; 0 means ``count``, -1 means unbounded.
        id: Name used in diagnostic messages.

    Returns:
        The guarded callback.
    """
    return CallbackGuard(case, callback, min_calls=count, max_calls=max_count, id=id)


def expect_async_until(
    case: TestCase | None,
    callback: Callable[..., Any],
    is_done: Callable[[], bool],
    id: str | None = None,  # pylint: disable=redefined-builtin
) -> CallbackGuard:
    """Guard a callback that is called until ``is_done`` returns True.

    Args:
        case: The owning test case.
        callback: The callback to wrap.
        is_done: Checked after each call; the test may complete once it is True.
        id: Name used in diagnostic messages.

    Returns:
        The guarded callback.
    """
    return CallbackGuard(case, callback, min_calls=0, max_calls=UNBOUNDED, is_done=is_done, id=id)


def protect_async(
    case: TestCase | None,
    callback: Callable[..., Any],
    id: str | None = None,  # pylint: disable=redefined-builtin
) -> CallbackGuard:
    """Guard an optional callback for exception attribution only.

    The callback may be called any number of times, including never.

    Args:
        case: The owning test case.
        callback: The callback to wrap.
        id: Name used in diagnostic messages.

    Returns:
        The guarded callback.
    """
    return CallbackGuard(case, callback, min_calls=0, max_calls=UNBOUNDED, id=id)


def guard_async(case: TestCase | None, action: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
    """Run an action now, attributing any exception to ``case``.

    Args:
        case: The owning test case.
        action: The callable to run.
        *args: Positional arguments for the action.
        **kwargs: Keyword arguments for the action.

    Returns:
        The action's return value, or None if it raised.

    Raises:
        StateError: If no test case is running.
    """
    if case is None:
        raise StateError("guard_async called with no test running")
    try:
        return action(*args, **kwargs)
    except Exception as exc:  # pylint: disable=broad-except
        case.register_exception(exc)
        return None
