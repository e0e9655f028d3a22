"""Shared fixtures for unitflow-runner tests."""

from __future__ import annotations

import importlib
import sys
import textwrap
from pathlib import Path
from typing import Iterator

import pytest

SAMPLE_MODULE = "unitflow_sample_registrar"


@pytest.fixture
def sample_registrar(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[str]:
    """Create an importable module that registers three tests.

    Registered tests:
        1  parser numbers  (passes)
        2  parser strings  (fails)
        3  lexer words     (passes)
    """
    source = tmp_path / f"{SAMPLE_MODULE}.py"
    source.write_text(
        textwrap.dedent("""\
        from unitflow_core.errors import TestFailure


        def _fails():
            raise TestFailure("expected quotes")


        def register(suite):
            def parser():
                suite.test("numbers", lambda: None)
                suite.test("strings", _fails)

            suite.group("parser", parser)
            suite.test("lexer words", lambda: None)


        def broken(suite):
            suite.test("registered", lambda: None)
            suite.group("bad", lambda: 1 / 0)


        class ParserTests:
            @staticmethod
            def register(suite):
                suite.test("parser smoke", lambda: None)


        def no_arguments():
            pass


        NOT_CALLABLE = 3
        """)
    )
    monkeypatch.syspath_prepend(str(tmp_path))
    importlib.invalidate_caches()
    yield f"{SAMPLE_MODULE}:register"
    sys.modules.pop(SAMPLE_MODULE, None)
