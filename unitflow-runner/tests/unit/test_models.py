"""Tests for report models."""

from __future__ import annotations

from unitflow_suite.scheduler import SuiteResult
from unitflow_suite.testcase import TestCase

from unitflow_runner.models import CaseReport, SuiteReport


class TestCaseReport:
    """Tests for CaseReport."""

    def test_from_passed_case(self) -> None:
        case = TestCase(1, "adds", lambda: None)
        case.run()

        report = CaseReport.from_case(case)

        assert report.id == 1
        assert report.result == "pass"
        assert report.duration_seconds is not None
        assert report.late_errors == []

    def test_from_case_with_late_error(self) -> None:
        case = TestCase(2, "late", lambda: None)
        case.run()
        case.error("stray callback")

        report = CaseReport.from_case(case)

        assert report.result == "pass"
        assert len(report.late_errors) == 1
        assert report.late_errors[0].message == "stray callback"
        assert report.late_errors[0].timestamp.endswith("+00:00")

    def test_from_disabled_case(self) -> None:
        case = TestCase(3, "off", lambda: None)
        case.enabled = False

        report = CaseReport.from_case(case)

        assert not report.enabled
        assert report.result is None
        assert report.duration_seconds is None


class TestSuiteReport:
    """Tests for SuiteReport."""

    def test_from_result(self) -> None:
        passing = TestCase(1, "a", lambda: None)
        passing.run()
        failing = TestCase(2, "b", lambda: None)
        failing.fail("no")

        report = SuiteReport.from_result(SuiteResult(cases=(passing, failing)), name="s")

        assert report.name == "s"
        assert (report.passed, report.failed, report.errors) == (1, 1, 0)
        assert not report.success
        assert [c.id for c in report.cases] == [1, 2]
        assert "uncaught_error" in report.model_dump()
