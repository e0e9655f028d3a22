"""Tests for suite building and execution."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from unitflow_suite.reporter import BaseReporter
from unitflow_suite.testcase import TestResult

from unitflow_runner.config import ReportConfig, RunConfig, SelectionConfig
from unitflow_runner.executor import build_suite, execute, write_report
from unitflow_runner.models import SuiteReport


class TestBuildSuite:
    """Tests for build_suite."""

    def test_registers_tests(self, sample_registrar: str) -> None:
        suite = build_suite(RunConfig(registrar=sample_registrar), BaseReporter())
        assert [(c.id, c.description) for c in suite.cases] == [
            (1, "parser numbers"),
            (2, "parser strings"),
            (3, "lexer words"),
        ]

    def test_group_separator(self, sample_registrar: str) -> None:
        config = RunConfig(registrar=sample_registrar, group_separator="::")
        suite = build_suite(config, BaseReporter())
        assert suite.cases[0].description == "parser::numbers"

    def test_filter(self, sample_registrar: str) -> None:
        config = RunConfig(
            registrar=sample_registrar,
            selection=SelectionConfig(filter="^parser"),
        )
        suite = build_suite(config, BaseReporter())
        assert [c.id for c in suite.cases] == [1, 2]

    def test_solo(self, sample_registrar: str) -> None:
        config = RunConfig(registrar=sample_registrar, selection=SelectionConfig(solo=3))
        suite = build_suite(config, BaseReporter())
        assert [c.id for c in suite.cases] == [3]

    def test_disabled(self, sample_registrar: str) -> None:
        config = RunConfig(registrar=sample_registrar, selection=SelectionConfig(disabled=[2, 9]))
        suite = build_suite(config, BaseReporter())
        assert [c.enabled for c in suite.cases] == [True, False, True]

    def test_registration_error(self, sample_registrar: str) -> None:
        module = sample_registrar.split(":")[0]
        suite = build_suite(RunConfig(registrar=f"{module}:broken"), BaseReporter())
        assert len(suite.cases) == 1
        assert suite.uncaught_error is not None
        assert "ZeroDivisionError" in suite.uncaught_error


class TestExecute:
    """Tests for execute."""

    @pytest.mark.asyncio
    async def test_runs_all(self, sample_registrar: str) -> None:
        result = await execute(RunConfig(registrar=sample_registrar), BaseReporter())

        assert (result.passed, result.failed, result.errors) == (2, 1, 0)
        assert not result.success
        assert result.cases[1].result is TestResult.FAIL
        assert result.cases[1].message == "expected quotes"

    @pytest.mark.asyncio
    async def test_disabled_failure_succeeds(self, sample_registrar: str) -> None:
        config = RunConfig(registrar=sample_registrar, selection=SelectionConfig(disabled=[2]))
        result = await execute(config, BaseReporter())

        assert result.success
        assert result.skipped == 1

    @pytest.mark.asyncio
    async def test_writes_json_report(self, sample_registrar: str, tmp_path: Path) -> None:
        report_path = tmp_path / "out" / "results.json"
        config = RunConfig(
            registrar=sample_registrar,
            name="sample",
            report=ReportConfig(json=str(report_path)),
        )

        await execute(config, BaseReporter())

        assert report_path.exists()
        data = json.loads(report_path.read_text())
        assert data["name"] == "sample"
        assert data["passed"] == 2
        assert data["success"] is False
        assert [c["result"] for c in data["cases"]] == ["pass", "fail", "pass"]


class TestWriteReport:
    """Tests for write_report."""

    @pytest.mark.asyncio
    async def test_round_trip(self, sample_registrar: str, tmp_path: Path) -> None:
        suite = build_suite(RunConfig(registrar=sample_registrar), BaseReporter())
        result = await suite.run_all()

        path = write_report(result, tmp_path / "report.json", name="sample")

        report = SuiteReport.model_validate_json(path.read_text())
        assert report.failed == 1
        assert report.cases[1].message == "expected quotes"
