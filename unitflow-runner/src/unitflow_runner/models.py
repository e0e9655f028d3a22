"""Pydantic models for unitflow-runner reports.

This module defines the serialized form of a suite result, written by the
executor as a JSON report.
"""

from __future__ import annotations

from pydantic import BaseModel

from unitflow_suite.scheduler import SuiteResult
from unitflow_suite.testcase import LateError, TestCase


class LateErrorReport(BaseModel):
    """A problem reported after a test completed.

    Attributes:
        message: Description of the problem.
        stack_trace: Formatted stack trace, if any.
        timestamp: ISO timestamp when it was reported.
    """

    message: str
    stack_trace: str = ""
    timestamp: str

    @classmethod
    def from_late_error(cls, late: LateError) -> LateErrorReport:
        """Build from a LateError."""
        return cls(
            message=late.message,
            stack_trace=late.stack_trace,
            timestamp=late.timestamp.isoformat(),
        )


class CaseReport(BaseModel):
    """Outcome of one test case.

    Attributes:
        id: Registration id.
        description: Fully qualified description.
        enabled: False if the case was skipped.
        result: pass, fail, error, or None if it did not run.
        message: Failure or error message.
        stack_trace: Stack trace recorded with the result.
        duration_seconds: Time from body start to result.
        late_errors: Problems reported after completion.
    """

    id: int
    description: str
    enabled: bool = True
    result: str | None = None
    message: str = ""
    stack_trace: str = ""
    duration_seconds: float | None = None
    late_errors: list[LateErrorReport] = []

    @classmethod
    def from_case(cls, case: TestCase) -> CaseReport:
        """Build from a TestCase."""
        return cls(
            id=case.id,
            description=case.description,
            enabled=case.enabled,
            result=case.result.value if case.result else None,
            message=case.message,
            stack_trace=case.stack_trace,
            duration_seconds=case.duration_seconds,
            late_errors=[LateErrorReport.from_late_error(e) for e in case.late_errors],
        )


class SuiteReport(BaseModel):
    """Outcome of a whole run.

    Attributes:
        name: Suite name from the run config.
        passed: Number of passing cases.
        failed: Number of failing cases.
        errors: Number of errored cases.
        skipped: Number of disabled cases.
        uncaught_error: Error raised outside any test case.
        success: Overall outcome.
        cases: Per-case outcomes in execution order.
    """

    name: str = ""
    passed: int
    failed: int
    errors: int
    skipped: int = 0
    uncaught_error: str | None = None
    success: bool
    cases: list[CaseReport]

    @classmethod
    def from_result(cls, result: SuiteResult, name: str = "") -> SuiteReport:
        """Build from a SuiteResult."""
        return cls(
            name=name,
            passed=result.passed,
            failed=result.failed,
            errors=result.errors,
            skipped=result.skipped,
            uncaught_error=result.uncaught_error,
            success=result.success,
            cases=[CaseReport.from_case(c) for c in result.cases],
        )
