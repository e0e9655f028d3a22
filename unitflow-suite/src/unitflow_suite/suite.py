"""Test suite: registration, filtering and execution.

A Suite owns everything a test run needs: the registered cases, the group
context stack used while registering, the scheduler and the reporter.
Nothing is process-global; create one Suite per run and pass it to the code
that registers tests.

Example:
    suite = Suite()

    def register(suite: Suite) -> None:
        def parser_tests() -> None:
            suite.set_up(lambda: fixtures.load())
            suite.test("parses numbers", lambda: check(parse("1") == 1))

            async def reads_file() -> None:
                data = await read_async("input.txt")
                assert data

            suite.test("reads input", reads_file)

        suite.group("parser", parser_tests)

    register(suite)
    result = asyncio.run(suite.run_all())
"""

from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass
from typing import Any, Callable, Union

from unitflow_core.errors import StateError
from unitflow_core.interfaces.reporter import Reporter

from unitflow_suite.action import Action
from unitflow_suite.group import DEFAULT_SEPARATOR, GroupContext
from unitflow_suite.guard import (
    CallbackGuard,
    expect_async,
    expect_async_until,
    guard_async,
    protect_async,
)
from unitflow_suite.reporter import LoggingReporter
from unitflow_suite.scheduler import Scheduler, SuiteResult
from unitflow_suite.testcase import TestBody, TestCase, format_trace

logger = logging.getLogger(__name__)

# A filter is a regular expression (matched anywhere in the description)
# or a predicate over test cases.
TestFilter = Union[str, re.Pattern[str], Callable[[TestCase], bool]]


@dataclass(frozen=True)
class SuiteConfig:
    """Configuration for a suite."""

    group_separator: str = DEFAULT_SEPARATOR


class Suite:
    """Registry and runner for a set of test cases."""

    __test__ = False

    def __init__(
        self,
        reporter: Reporter | None = None,
        config: SuiteConfig | None = None,
    ) -> None:
        """Initialize the suite.

        Args:
            reporter: Receives run lifecycle events (default: LoggingReporter).
            config: Suite configuration.
        """
        self._config = config or SuiteConfig()
        self._reporter: Reporter = reporter if reporter is not None else LoggingReporter()
        self._scheduler = Scheduler(self._reporter)
        self._root = GroupContext(separator=self._config.group_separator)
        self._context = self._root
        self._next_id = 1
        self._solo_seen = False
        self._solo_nesting = 0
        self._initialized = False

    @property
    def config(self) -> SuiteConfig:
        """Return the suite configuration."""
        return self._config

    @property
    def reporter(self) -> Reporter:
        """Return the reporter."""
        return self._reporter

    @property
    def cases(self) -> tuple[TestCase, ...]:
        """Return the registered cases in execution order."""
        return self._scheduler.cases

    @property
    def current_case(self) -> TestCase | None:
        """Return the case being run, or None outside a run."""
        return self._scheduler.current_case

    @property
    def uncaught_error(self) -> str | None:
        """Return the error raised outside any test case, if any."""
        return self._scheduler.uncaught_error

    @property
    def is_running(self) -> bool:
        """Return True while the suite is running."""
        return self._scheduler.is_running

    # -- Registration --

    def test(self, description: str, body: TestBody) -> TestCase | None:
        """Register a test.

        Outside a solo group, tests are dropped once any solo directive has
        been seen.

        Args:
            description: What the test checks.
            body: The test procedure; may return an awaitable.

        Returns:
            The registered case, or None if it was not registered.
        """
        self._ensure_initialized(auto_start=True)
        if self._solo_seen and self._solo_nesting == 0:
            logger.debug("Dropping non-solo test: %s", description)
            return None
        case = TestCase(
            test_id=self._next_id,
            description=self._context.qualify(description),
            body=body,
            setup=self._context.setup,
            teardown=self._context.teardown,
            reporter=self._reporter,
        )
        self._next_id += 1
        self._scheduler.add(case)
        logger.debug("Registered test %d: %s", case.id, case.description)
        return case

    def solo_test(self, description: str, body: TestBody) -> TestCase | None:
        """Register a test and restrict the run to solo tests.

        The first solo directive discards every test registered before it.

        Args:
            description: What the test checks.
            body: The test procedure.

        Returns:
            The registered case.
        """
        self._ensure_initialized(auto_start=True)
        self._enter_solo()
        self._solo_nesting += 1
        try:
            return self.test(description, body)
        finally:
            self._solo_nesting -= 1

    def skip_test(self, description: str, body: TestBody) -> None:  # pylint: disable=unused-argument
        """Do not register a test."""
        logger.debug("Skipping test: %s", self._context.qualify(description))

    def group(self, description: str, body: Callable[[], Any]) -> None:
        """Register the tests declared by ``body`` inside a named group.

        An exception raised while the group body registers tests is stored
        as the suite's uncaught error; no test case owns it.

        Args:
            description: Group name, prefixed to every nested description.
            body: Registers the group's tests, setup and teardown.
        """
        self._ensure_initialized(auto_start=True)
        self._context = self._context.enter(description)
        try:
            body()
        except Exception as exc:  # pylint: disable=broad-except
            self._scheduler.uncaught_error = f"{exc!r}: {format_trace(exc)}"
            logger.error("Error registering group '%s': %s", self._context.full_name, exc)
        finally:
            parent = self._context.parent
            assert parent is not None
            self._context = parent

    def solo_group(self, description: str, body: Callable[[], Any]) -> None:
        """Register a group and restrict the run to solo tests.

        Every test inside a solo group is included.

        Args:
            description: Group name.
            body: Registers the group's tests.
        """
        self._ensure_initialized(auto_start=True)
        self._enter_solo()
        self._solo_nesting += 1
        try:
            self.group(description, body)
        finally:
            self._solo_nesting -= 1

    def skip_group(self, description: str, body: Callable[[], Any]) -> None:  # pylint: disable=unused-argument
        """Do not register a group."""
        logger.debug("Skipping group: %s", self._context.qualify(description))

    def set_up(self, action: Action) -> None:
        """Set the setup action of the innermost group.

        Args:
            action: Called before each test; may return an awaitable.
        """
        self._context.set_setup(action)

    def tear_down(self, action: Action) -> None:
        """Set the teardown action of the innermost group.

        Args:
            action: Called after each test; may return an awaitable.
        """
        self._context.set_teardown(action)

    def _enter_solo(self) -> None:
        if not self._solo_seen:
            # First solo directive: discard everything registered so far.
            self._solo_seen = True
            self._scheduler.clear()
            self._next_id = 1
            logger.debug("Solo directive seen; discarding earlier registrations")

    # -- Selection --

    def filter_tests(self, test_filter: TestFilter) -> None:
        """Keep only the tests that match a filter.

        Must be called before ``run()``.

        Args:
            test_filter: Regular expression (string or compiled) searched in
                each description, or a predicate over test cases.
        """
        if isinstance(test_filter, str):
            pattern = re.compile(test_filter)
            predicate: Callable[[TestCase], bool] = lambda c: pattern.search(c.description) is not None
        elif isinstance(test_filter, re.Pattern):
            compiled = test_filter
            predicate = lambda c: compiled.search(c.description) is not None
        elif callable(test_filter):
            predicate = test_filter
        else:
            raise TypeError(f"Unsupported test filter: {test_filter!r}")
        self._scheduler.retain(predicate)

    def set_solo_test(self, test_id: int) -> None:
        """Keep only the test with the given id."""
        self._scheduler.retain(lambda c: c.id == test_id)

    def enable_test(self, test_id: int) -> bool:
        """Enable a test by id.

        Returns:
            True if a test with that id exists.
        """
        return self._set_enabled(test_id, True)

    def disable_test(self, test_id: int) -> bool:
        """Disable a test by id.

        Disabled tests keep their id but are skipped by the scheduler.

        Returns:
            True if a test with that id exists.
        """
        return self._set_enabled(test_id, False)

    def _set_enabled(self, test_id: int, enabled: bool) -> bool:
        case = self._scheduler.find(test_id)
        if case is None:
            logger.warning("No test with id %d", test_id)
            return False
        case.enabled = enabled
        return True

    # -- Execution --

    def run(self) -> asyncio.Future[SuiteResult]:
        """Start running the suite on the current event loop.

        Returns:
            Future resolved with the SuiteResult.
        """
        self._ensure_initialized(auto_start=False)
        return self._watch(self._scheduler.run())

    def rerun(self) -> asyncio.Future[SuiteResult]:
        """Run again without clearing registrations or ids.

        Returns:
            Future resolved with the SuiteResult.
        """
        # Already initialized for this cycle; skip on_init.
        self._initialized = True
        return self._watch(self._scheduler.rerun())

    async def run_all(self) -> SuiteResult:
        """Run the suite and wait for the result."""
        return await self.run()

    def reset(self) -> None:
        """Discard all registrations and per-suite state."""
        self._scheduler.clear()
        self._scheduler.uncaught_error = None
        self._context = self._root = GroupContext(separator=self._config.group_separator)
        self._next_id = 1
        self._solo_seen = False
        self._solo_nesting = 0
        self._initialized = False

    def _watch(self, future: asyncio.Future[SuiteResult]) -> asyncio.Future[SuiteResult]:
        future.add_done_callback(self._on_run_complete)
        return future

    def _on_run_complete(self, _: asyncio.Future[SuiteResult]) -> None:
        self._initialized = False

    def _ensure_initialized(self, auto_start: bool) -> None:
        if self._initialized:
            return
        self._initialized = True
        self._scheduler.uncaught_error = None
        self._reporter.on_init()
        if auto_start and self._reporter.auto_start:
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                logger.debug("auto_start requested but no event loop is running")
                return
            loop.call_soon(self._auto_run)

    def _auto_run(self) -> None:
        if self.is_running:
            logger.debug("Suite already running; skipping auto-start")
            return
        self.run()

    # -- Helpers for test code --

    def log_message(self, message: str) -> None:
        """Send a message to the reporter, tagged with the running case."""
        self._reporter.on_log_message(self.current_case, message)

    def register_exception(self, exc: BaseException, case: TestCase | None = None) -> None:
        """Attribute an exception to a test case.

        Args:
            exc: The exception.
            case: The owning case (default: the running case).

        Raises:
            StateError: If no case is given and none is running.
        """
        owner = case if case is not None else self.current_case
        if owner is None:
            raise StateError("register_exception called with no test running")
        owner.register_exception(exc)

    def expect_async(
        self,
        callback: Callable[..., Any],
        count: int = 1,
        max_count: int = 0,
        id: str | None = None,  # pylint: disable=redefined-builtin
    ) -> CallbackGuard:
        """Guard a callback that the running test expects to be called.

        See ``unitflow_suite.guard.expect_async``.
        """
        return expect_async(self.current_case, callback, count=count, max_count=max_count, id=id)

    def expect_async_until(
        self,
        callback: Callable[..., Any],
        is_done: Callable[[], bool],
        id: str | None = None,  # pylint: disable=redefined-builtin
    ) -> CallbackGuard:
        """Guard a callback called until ``is_done`` holds.

        See ``unitflow_suite.guard.expect_async_until``.
        """
        return expect_async_until(self.current_case, callback, is_done, id=id)

    def protect_async(
        self,
        callback: Callable[..., Any],
        id: str | None = None,  # pylint: disable=redefined-builtin
    ) -> CallbackGuard:
        """Guard an optional callback for exception attribution only."""
        return protect_async(self.current_case, callback, id=id)

    def guard_async(self, action: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        """Run an action now, attributing exceptions to the running test."""
        return guard_async(self.current_case, action, *args, **kwargs)
