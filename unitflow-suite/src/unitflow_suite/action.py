"""Possibly-suspending actions.

Setup, teardown, test bodies and guarded callbacks may either finish
immediately or hand back an awaitable. Rather than branching on "is this a
future" at every call site, an invocation is turned into an Outcome:

    Immediate(value)  the action finished synchronously
    Pending(handle)   the action continues in ``handle`` (an asyncio future)

Continuations are chained with ``then`` which keeps the synchronous fast
path synchronous and only suspends when something actually is pending.

Example:
    outcome = invoke(setup)
    outcome = then(outcome, lambda: invoke(body))
    if isinstance(outcome, Pending):
        await outcome.handle
"""

from __future__ import annotations

import asyncio
import inspect
from dataclasses import dataclass
from typing import Any, Callable, Union

# An action returns either a plain value or an awaitable.
Action = Callable[..., Any]


@dataclass(frozen=True)
class Immediate:
    """Outcome of an action that completed synchronously."""

    value: Any = None


@dataclass(frozen=True)
class Pending:
    """Outcome of an action that is still running.

    Attributes:
        handle: Future that settles when the action completes.
    """

    handle: asyncio.Future[Any]


Outcome = Union[Immediate, Pending]

# Continuations take no arguments and return the next outcome.
Continuation = Callable[[], Outcome]


def invoke(action: Action, *args: Any, **kwargs: Any) -> Outcome:
    """Call an action and classify its result.

    Exceptions raised synchronously by the action propagate to the caller.

    Args:
        action: The callable to invoke.
        *args: Positional arguments for the action.
        **kwargs: Keyword arguments for the action.

    Returns:
        Pending if the action returned an awaitable, Immediate otherwise.
    """
    result = action(*args, **kwargs)
    if inspect.isawaitable(result):
        return Pending(asyncio.ensure_future(result))
    return Immediate(result)


def then(outcome: Outcome, continuation: Continuation) -> Outcome:
    """Run a continuation once an outcome has settled.

    If the outcome is immediate the continuation runs right away. Otherwise
    it runs after the pending handle completes successfully; a failed handle
    skips the continuation and the returned outcome fails the same way.

    Args:
        outcome: The outcome to wait for.
        continuation: Produces the next outcome.

    Returns:
        The continuation's outcome, or a Pending wrapping the whole chain.
    """
    if isinstance(outcome, Immediate):
        return continuation()

    async def _chain() -> Any:
        await outcome.handle
        return await _settled(continuation())

    return Pending(asyncio.ensure_future(_chain()))


def recover(outcome: Outcome, handler: Callable[[Exception], None]) -> Outcome:
    """Route failures of a pending outcome to a handler.

    Args:
        outcome: The outcome to protect.
        handler: Receives the exception if the pending handle fails.

    Returns:
        The same outcome if immediate, else a Pending that never fails
        with an ``Exception``.
    """
    if isinstance(outcome, Immediate):
        return outcome

    async def _recovered() -> Any:
        try:
            return await outcome.handle
        except Exception as exc:  # pylint: disable=broad-except
            handler(exc)
            return None

    return Pending(asyncio.ensure_future(_recovered()))


def settle(outcome: Outcome) -> Any:
    """Turn an outcome back into a plain value or an awaitable."""
    if isinstance(outcome, Pending):
        return outcome.handle
    return outcome.value


def sequence(first: Action | None, second: Action | None) -> Action | None:
    """Compose two actions so that ``second`` starts after ``first`` settles.

    Either action may be synchronous or return an awaitable; the composed
    action is synchronous only if both halves were.

    Args:
        first: Action to run first, or None.
        second: Action to run second, or None.

    Returns:
        The composed action, or whichever one is not None.
    """
    if first is None:
        return second
    if second is None:
        return first

    def composed() -> Any:
        return settle(then(invoke(first), lambda: invoke(second)))

    return composed


async def _settled(outcome: Outcome) -> Any:
    if isinstance(outcome, Pending):
        return await outcome.handle
    return outcome.value

