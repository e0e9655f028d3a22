"""Tests for the exception hierarchy."""

import pytest

from unitflow_core.errors import CallCountError, StateError, TestFailure, UnitflowError


class TestErrors:
    """Tests for unitflow exceptions."""

    def test_failure_is_assertion(self) -> None:
        """Test TestFailure is caught as an AssertionError."""
        with pytest.raises(AssertionError):
            raise TestFailure("expected 1, got 2")

    def test_failure_message_verbatim(self) -> None:
        """Test the message is kept exactly."""
        exc = TestFailure("expected 1, got 2")
        assert exc.message == "expected 1, got 2"
        assert str(exc) == "expected 1, got 2"

    def test_hierarchy(self) -> None:
        """Test every error derives from UnitflowError."""
        assert issubclass(TestFailure, UnitflowError)
        assert issubclass(CallCountError, TestFailure)
        assert issubclass(StateError, UnitflowError)
        assert not issubclass(StateError, AssertionError)

    def test_catch_all(self) -> None:
        """Test a single except clause catches framework errors."""
        with pytest.raises(UnitflowError):
            raise CallCountError("called too often")
