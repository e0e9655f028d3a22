"""Test orchestration engine for unitflow.

This package registers declarative tests (grouped, nested, optionally solo
or filtered), runs them one at a time in registration order and decides
whether each passed, failed or errored. That includes tests that finish
only when asynchronous callbacks fire after the body returns.

Example usage:

    import asyncio
    from unitflow_suite import Suite

    suite = Suite()

    def timers() -> None:
        def fires_later() -> None:
            loop = asyncio.get_running_loop()
            loop.call_later(0.01, suite.expect_async(lambda: None))

        suite.test("fires later", fires_later)

    suite.group("timers", timers)
    result = asyncio.run(suite.run_all())

    if result.success:
        print("PASS")
"""

from unitflow_suite.action import Immediate, Outcome, Pending, invoke, sequence, then
from unitflow_suite.group import GroupContext
from unitflow_suite.guard import (
    UNBOUNDED,
    CallbackGuard,
    expect_async,
    expect_async_until,
    guard_async,
    protect_async,
)
from unitflow_suite.reporter import BaseReporter, LoggingReporter
from unitflow_suite.scheduler import Scheduler, SuiteResult
from unitflow_suite.suite import Suite, SuiteConfig, TestFilter
from unitflow_suite.testcase import LateError, TestCase, TestResult

__all__ = [
    # Actions
    "Immediate",
    "Outcome",
    "Pending",
    "invoke",
    "sequence",
    "then",
    # Registration
    "GroupContext",
    "Suite",
    "SuiteConfig",
    "TestFilter",
    # Test cases
    "LateError",
    "TestCase",
    "TestResult",
    # Async guards
    "UNBOUNDED",
    "CallbackGuard",
    "expect_async",
    "expect_async_until",
    "guard_async",
    "protect_async",
    # Execution and reporting
    "BaseReporter",
    "LoggingReporter",
    "Scheduler",
    "SuiteResult",
]
