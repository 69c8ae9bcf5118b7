"""Shared helpers for asserting exceptions and waiting on async state in tests."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import ParamSpec, TypeVar

P = ParamSpec("P")
TException = TypeVar("TException", bound=BaseException)

DEFAULT_WAIT_SECONDS = 2.0


async def expect_async_exception(
    func: Callable[P, Awaitable[object]],
    exception_type: type[TException],
    *args: P.args,
    **kwargs: P.kwargs,
) -> TException:
    """Await a coroutine and return the raised exception for inspection."""
    try:
        _ = await func(*args, **kwargs)
    except exception_type as err:
        return err
    message = f"Expected {exception_type.__name__} to be raised"
    raise AssertionError(message)  # pragma: no cover


def expect_exception(
    func: Callable[P, object],
    exception_type: type[TException],
    *args: P.args,
    **kwargs: P.kwargs,
) -> TException:
    """Run a callable and return the raised exception for inspection."""
    try:
        _ = func(*args, **kwargs)
    except exception_type as err:
        return err
    message = f"Expected {exception_type.__name__} to be raised"
    raise AssertionError(message)  # pragma: no cover


async def wait_until(predicate: Callable[[], bool], timeout: float = DEFAULT_WAIT_SECONDS) -> None:
    """Yield to the loop until ``predicate()`` holds; fail after ``timeout``."""
    try:
        async with asyncio.timeout(timeout):
            while not predicate():
                await asyncio.sleep(0.001)
    except TimeoutError:
        message = f"Condition not met within {timeout}s"
        raise AssertionError(message) from None
