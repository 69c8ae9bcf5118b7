"""Correlation ids for commands issued through the switch core.

A command's encode, session borrow and publish log lines share one id. The
id lives in a ContextVar, so concurrent asyncio tasks never see each
other's ids.
"""

from __future__ import annotations

import contextvars
import uuid
from collections.abc import Iterator
from contextlib import contextmanager

__all__ = [
    "correlation_context",
    "ensure_correlation_id",
    "generate_correlation_id",
    "get_correlation_id",
    "set_correlation_id",
]

_current: contextvars.ContextVar[str | None] = contextvars.ContextVar("esmart_correlation_id", default=None)


def generate_correlation_id() -> str:
    """32 hex chars (uuid4, no dashes)."""
    return uuid.uuid4().hex


def get_correlation_id() -> str | None:
    return _current.get()


def set_correlation_id(value: str | None) -> None:
    """Replace the id for the rest of the current context; None clears it."""
    _ = _current.set(value)


@contextmanager
def correlation_context(correlation_id: str | None = None, auto_generate: bool = True) -> Iterator[str | None]:
    """Scope a correlation id; the outer id is back in place on exit.

    Example:
        with correlation_context() as corr_id:
            logger.info("publishing POWER")

    """
    if correlation_id is None and auto_generate:
        correlation_id = generate_correlation_id()
    token = _current.set(correlation_id)
    try:
        yield correlation_id
    finally:
        _current.reset(token)


def ensure_correlation_id() -> str:
    """Current id, or a fresh one bound to this context (background task entry points)."""
    existing = _current.get()
    if existing is not None:
        return existing
    fresh = generate_correlation_id()
    _ = _current.set(fresh)
    return fresh
