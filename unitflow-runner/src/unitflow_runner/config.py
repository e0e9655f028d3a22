"""Run configuration loading for unitflow-runner.

A run config names the function that registers the tests and selects which
of them to run.

Example YAML:
    suite:
      name: "parser suite"
      registrar: "my_tests.parser:register"
      group_separator: " "

    selection:
      filter: "tokenizer"
      solo: 3
      disabled: [2, 5]

    report:
      json: "out/results.json"
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

import yaml

from unitflow_suite.group import DEFAULT_SEPARATOR


@dataclass(frozen=True)
class SelectionConfig:
    """Which registered tests to run.

    Attributes:
        filter: Regular expression searched in each test description.
        solo: Id of the only test to keep.
        disabled: Ids of tests to skip.
    """

    filter: str | None = None
    solo: int | None = None
    disabled: list[int] = field(default_factory=list)


@dataclass(frozen=True)
class ReportConfig:
    """Where to write results.

    Attributes:
        json: Path of the JSON report file, if any.
    """

    json: str | None = None


@dataclass(frozen=True)
class RunConfig:
    """Complete run configuration.

    Attributes:
        registrar: Registration function in "module:function" format.
        name: Human-readable suite name.
        group_separator: String placed between group and test names.
        selection: Test selection.
        report: Report output.
    """

    registrar: str
    name: str = ""
    group_separator: str = DEFAULT_SEPARATOR
    selection: SelectionConfig = field(default_factory=SelectionConfig)
    report: ReportConfig = field(default_factory=ReportConfig)


def load_run_config(path: str | Path) -> RunConfig:
    """Load run configuration from a YAML file.

    Args:
        path: Path to the run configuration YAML file.

    Returns:
        Parsed RunConfig.

    Raises:
        FileNotFoundError: If the config file doesn't exist.
        ValueError: If required fields are missing or malformed.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Run config not found: {path}")

    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f)

    if not isinstance(data, dict):
        raise ValueError("Run config must be a YAML mapping")

    # Parse suite section
    suite_data = data.get("suite", {})
    if not isinstance(suite_data, dict):
        raise ValueError("suite must be a mapping")
    registrar = suite_data.get("registrar")
    if not registrar:
        raise ValueError("Missing required field: suite.registrar")
    separator = suite_data.get("group_separator", DEFAULT_SEPARATOR)
    if not isinstance(separator, str):
        raise ValueError("suite.group_separator must be a string")

    # Parse selection section
    selection_data = data.get("selection", {}) or {}
    if not isinstance(selection_data, dict):
        raise ValueError("selection must be a mapping")
    disabled = selection_data.get("disabled", [])
    if not isinstance(disabled, list) or not all(isinstance(i, int) for i in disabled):
        raise ValueError("selection.disabled must be a list of test ids")
    solo = selection_data.get("solo")
    if solo is not None and not isinstance(solo, int):
        raise ValueError("selection.solo must be a test id")
    selection = SelectionConfig(
        filter=selection_data.get("filter"),
        solo=solo,
        disabled=list(disabled),
    )

    # Parse report section
    report_data = data.get("report", {}) or {}
    if not isinstance(report_data, dict):
        raise ValueError("report must be a mapping")
    report = ReportConfig(json=report_data.get("json"))

    return RunConfig(
        registrar=registrar,
        name=suite_data.get("name", ""),
        group_separator=separator,
        selection=selection,
        report=report,
    )
