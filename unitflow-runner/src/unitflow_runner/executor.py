"""Test execution for unitflow-runner.

The executor turns a RunConfig into a populated Suite, runs it on the
current event loop and optionally writes a JSON report.
"""

from __future__ import annotations

import logging
from pathlib import Path

from unitflow_core.interfaces.reporter import Reporter
from unitflow_suite.scheduler import SuiteResult
from unitflow_suite.suite import Suite, SuiteConfig

from unitflow_runner.config import RunConfig
from unitflow_runner.loader import load_registrar
from unitflow_runner.models import SuiteReport

logger = logging.getLogger(__name__)


def build_suite(config: RunConfig, reporter: Reporter | None = None) -> Suite:
    """Create a suite, register its tests and apply the selection.

    Args:
        config: Run configuration.
        reporter: Reporter for the suite (default: LoggingReporter).

    Returns:
        The populated suite, ready to run.
    """
    suite = Suite(reporter=reporter, config=SuiteConfig(group_separator=config.group_separator))
    registrar = load_registrar(config.registrar)
    logger.info("Registering tests from %s", config.registrar)
    registrar(suite)
    logger.info("Registered %d test case(s)", len(suite.cases))

    selection = config.selection
    if selection.filter:
        suite.filter_tests(selection.filter)
        logger.info("Filter '%s' kept %d test case(s)", selection.filter, len(suite.cases))
    if selection.solo is not None:
        suite.set_solo_test(selection.solo)
        if not suite.cases:
            logger.warning("Solo test id %d not found", selection.solo)
    for test_id in selection.disabled:
        suite.disable_test(test_id)

    return suite


def write_report(result: SuiteResult, path: str | Path, name: str = "") -> Path:
    """Write a suite result as JSON.

    Args:
        result: The suite result.
        path: Output file path; parent directories are created.
        name: Suite name recorded in the report.

    Returns:
        The path written.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    report = SuiteReport.from_result(result, name=name)
    path.write_text(report.model_dump_json(indent=2), encoding="utf-8")
    logger.info("Report written to %s", path)
    return path


async def execute(config: RunConfig, reporter: Reporter | None = None) -> SuiteResult:
    """Build and run a suite.

    Args:
        config: Run configuration.
        reporter: Reporter for the suite (default: LoggingReporter).

    Returns:
        The SuiteResult of the run.
    """
    suite = build_suite(config, reporter)
    result = await suite.run_all()
    if config.report.json:
        write_report(result, config.report.json, name=config.name)
    return result
