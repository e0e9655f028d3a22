"""Unit tests for registrar loading."""

from __future__ import annotations

import pytest

from unitflow_suite.reporter import BaseReporter
from unitflow_suite.suite import Suite

from unitflow_runner.loader import load_registrar


def _module(registrar: str) -> str:
    return registrar.split(":")[0]


class TestLoadRegistrar:
    def test_load_valid_registrar(self, sample_registrar: str) -> None:
        register = load_registrar(sample_registrar)
        assert callable(register)
        assert register.__name__ == "register"

    def test_load_dotted_attribute(self, sample_registrar: str) -> None:
        register = load_registrar(f"{_module(sample_registrar)}:ParserTests.register")
        suite = Suite(reporter=BaseReporter())
        register(suite)
        assert [c.description for c in suite.cases] == ["parser smoke"]

    def test_missing_colon(self) -> None:
        with pytest.raises(ValueError, match="module:function"):
            load_registrar("my_tests.register")

    def test_empty_module(self) -> None:
        with pytest.raises(ValueError, match="both a module and a function"):
            load_registrar(":register")

    def test_empty_function(self) -> None:
        with pytest.raises(ValueError, match="both a module and a function"):
            load_registrar("my_tests:")

    def test_nonexistent_module(self) -> None:
        with pytest.raises(ImportError, match="Failed to import"):
            load_registrar("nonexistent_module_xyz:register")

    def test_nonexistent_function(self, sample_registrar: str) -> None:
        with pytest.raises(AttributeError, match="no attribute 'missing'"):
            load_registrar(f"{_module(sample_registrar)}:missing")

    def test_not_callable(self, sample_registrar: str) -> None:
        with pytest.raises(TypeError, match="not callable"):
            load_registrar(f"{_module(sample_registrar)}:NOT_CALLABLE")

    def test_wrong_arity(self, sample_registrar: str) -> None:
        with pytest.raises(TypeError, match="must accept the suite"):
            load_registrar(f"{_module(sample_registrar)}:no_arguments")
