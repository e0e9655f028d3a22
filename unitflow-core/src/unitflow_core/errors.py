"""Exception types for unitflow-core.

This module defines the exception hierarchy used throughout the unitflow
framework. All unitflow exceptions inherit from UnitflowError, allowing
consumers to catch all framework-specific errors with a single except clause.

Exception hierarchy:
    UnitflowError (base)
    +-- TestFailure: Assertion failures reported by test code (also an AssertionError)
    |   +-- CallCountError: A guarded callback was called too many times
    +-- StateError: Framework API used in the wrong phase
"""


class UnitflowError(Exception):
    """Base exception for all unitflow errors.

    This is the root of the unitflow exception hierarchy. Catch this to handle
    any framework-specific error.
    """


class TestFailure(UnitflowError, AssertionError):
    """Raised by expectation code when a check does not hold.

    A TestFailure marks the owning test case as failed rather than errored.
    Because it is also an AssertionError, a plain ``assert`` statement in a
    test body is treated the same way.

    Attributes:
        message: The failure message, reported verbatim.
    """

    __test__ = False

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class CallCountError(TestFailure):
    """Raised when a guarded callback is invoked more often than allowed."""


class StateError(UnitflowError):
    """Raised for operations attempted in the wrong phase.

    This may occur when creating a callback guard with no test running,
    starting a suite that is already running, or running a suite without
    an event loop.
    """
