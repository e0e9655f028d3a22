"""Tests for run configuration loading."""

from __future__ import annotations

import textwrap
from pathlib import Path

import pytest

from unitflow_runner.config import RunConfig, SelectionConfig, load_run_config


@pytest.fixture
def run_yaml(tmp_path: Path) -> Path:
    """Create a valid run config YAML file."""
    config = tmp_path / "suite.yaml"
    config.write_text(
        textwrap.dedent("""\
        suite:
          name: "parser suite"
          registrar: "my_tests.parser:register"
          group_separator: "."

        selection:
          filter: "tokenizer"
          solo: 3
          disabled: [2, 5]

        report:
          json: "out/results.json"
        """)
    )
    return config


class TestLoadRunConfig:
    """Tests for load_run_config."""

    def test_loads_valid_config(self, run_yaml: Path) -> None:
        config = load_run_config(run_yaml)

        assert config.name == "parser suite"
        assert config.registrar == "my_tests.parser:register"
        assert config.group_separator == "."
        assert config.selection.filter == "tokenizer"
        assert config.selection.solo == 3
        assert config.selection.disabled == [2, 5]
        assert config.report.json == "out/results.json"

    def test_minimal_config(self, tmp_path: Path) -> None:
        path = tmp_path / "min.yaml"
        path.write_text("suite:\n  registrar: 'a:b'\n")

        config = load_run_config(path)

        assert config == RunConfig(registrar="a:b")
        assert config.group_separator == " "
        assert config.selection == SelectionConfig()
        assert config.report.json is None

    def test_empty_sections(self, tmp_path: Path) -> None:
        path = tmp_path / "empty.yaml"
        path.write_text("suite:\n  registrar: 'a:b'\nselection:\nreport:\n")

        config = load_run_config(path)

        assert config.selection.disabled == []

    def test_file_not_found(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError, match="Run config not found"):
            load_run_config(tmp_path / "missing.yaml")

    def test_not_a_mapping(self, tmp_path: Path) -> None:
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ValueError, match="YAML mapping"):
            load_run_config(path)

    def test_missing_registrar(self, tmp_path: Path) -> None:
        path = tmp_path / "noreg.yaml"
        path.write_text("suite:\n  name: x\n")
        with pytest.raises(ValueError, match="suite.registrar"):
            load_run_config(path)

    def test_bad_disabled(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.yaml"
        path.write_text("suite:\n  registrar: 'a:b'\nselection:\n  disabled: [one]\n")
        with pytest.raises(ValueError, match="selection.disabled"):
            load_run_config(path)

    def test_bad_solo(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.yaml"
        path.write_text("suite:\n  registrar: 'a:b'\nselection:\n  solo: first\n")
        with pytest.raises(ValueError, match="selection.solo"):
            load_run_config(path)

    def test_bad_separator(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.yaml"
        path.write_text("suite:\n  registrar: 'a:b'\n  group_separator: 5\n")
        with pytest.raises(ValueError, match="group_separator"):
            load_run_config(path)
