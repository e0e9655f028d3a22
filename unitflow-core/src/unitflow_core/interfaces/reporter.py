"""Reporter interface consumed by the test scheduler.

A reporter is the output side of a test run. The scheduler and the test
cases call it at fixed points of the run lifecycle; what the reporter does
with the events (print, log, collect, render) is up to the implementation.

Lifecycle:
    on_init -> on_start -> (on_test_start -> on_test_result)* -> on_summary -> on_done

``on_test_result_changed`` may arrive at any time after a case has a result,
for example when a callback fires after the case already completed.

Protocols:
    Reporter: Receives run lifecycle events.
"""

# pylint: disable=unnecessary-ellipsis  # Ellipsis required for Protocol method stubs

from __future__ import annotations

from typing import Any, Protocol, Sequence, runtime_checkable


@runtime_checkable
class Reporter(Protocol):
    """Protocol for test run reporters.

    Example:
        >>> class PrintReporter(BaseReporter):
        ...     def on_test_result(self, case):
        ...         print(f"{case.id}: {case.result}")
        >>> suite = Suite(reporter=PrintReporter())
    """

    @property
    def auto_start(self) -> bool:
        """Whether the suite should start itself once tests are registered."""
        ...

    def on_init(self) -> None:
        """Called once when the suite initializes for a run cycle."""
        ...

    def on_start(self) -> None:
        """Called when the scheduler starts running test cases."""
        ...

    def on_test_start(self, case: Any) -> None:
        """Called when a test body is about to run.

        Args:
            case: The test case being started.
        """
        ...

    def on_test_result(self, case: Any) -> None:
        """Called when a test case first receives a result.

        Args:
            case: The completed test case.
        """
        ...

    def on_test_result_changed(self, case: Any) -> None:
        """Called when a completed test case reports more problems.

        Args:
            case: The test case whose record changed.
        """
        ...

    def on_log_message(self, case: Any | None, message: str) -> None:
        """Called for messages logged by test code.

        Args:
            case: The running test case, or None outside a test.
            message: The logged message.
        """
        ...

    def on_summary(
        self,
        passed: int,
        failed: int,
        errors: int,
        cases: Sequence[Any],
        uncaught_error: str | None,
    ) -> None:
        """Called with the final tally of the run.

        Args:
            passed: Number of passing cases.
            failed: Number of failing cases.
            errors: Number of errored cases.
            cases: All cases in the suite, in execution order.
            uncaught_error: Error raised outside any test case, if any.
        """
        ...

    def on_done(self, success: bool) -> None:
        """Called last, with the overall outcome of the run.

        Args:
            success: True if at least one case passed and nothing failed.
        """
        ...
