"""Command-line runner for unitflow suites.

This package loads a test registration function, applies the test
selection from a YAML run config or the command line, runs the suite and
writes a JSON report.

Example usage:

    from unitflow_runner import RunConfig, execute

    result = asyncio.run(execute(RunConfig(registrar="my_tests:register")))
"""

from unitflow_runner.config import (
    ReportConfig,
    RunConfig,
    SelectionConfig,
    load_run_config,
)
from unitflow_runner.executor import build_suite, execute, write_report
from unitflow_runner.loader import Registrar, load_registrar
from unitflow_runner.models import CaseReport, LateErrorReport, SuiteReport

__all__ = [
    # Configuration
    "ReportConfig",
    "RunConfig",
    "SelectionConfig",
    "load_run_config",
    # Loading
    "Registrar",
    "load_registrar",
    # Execution
    "build_suite",
    "execute",
    "write_report",
    # Reports
    "CaseReport",
    "LateErrorReport",
    "SuiteReport",
]
