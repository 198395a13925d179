"""Actions and transactions — batched state mutations.

Writes never run effects synchronously; they only queue them. Wrapping
mutations in an @action or `with transaction()` flushes that queue once,
when the outermost scope exits, so effects see every change at once.

If the wrapped code raises, the writes it made before raising are still
flushed. An effect failing during that flush is logged, and the original
exception propagates.
"""

from __future__ import annotations

import functools
import logging
from contextlib import contextmanager
from typing import Callable, ParamSpec, TypeVar

from reactivity._runtime import get_runtime

logger = logging.getLogger("reactivity.action")

P = ParamSpec("P")
R = TypeVar("R")


def begin_batch() -> None:
    """Enter a batching scope. Nested batches are supported."""
    get_runtime().batch_depth += 1


def end_batch() -> None:
    """Exit a batching scope. The outermost exit flushes pending effects."""
    runtime = get_runtime()
    runtime.batch_depth -= 1
    if runtime.batch_depth == 0:
        runtime.flush()


def _end_batch_after_error() -> None:
    try:
        end_batch()
    except Exception:
        logger.exception("Exception occurred while flushing after a failed action")


def action(fn: Callable[P, R]) -> Callable[P, R]:
    """Decorator: flush once after fn returns.

    Usage:
        first = create_state("Ada")
        last = create_state("Lovelace")

        @action
        def rename(a, b):
            first.set(a)
            last.set(b)
            # effects reading both run once, after both are set
    """

    @functools.wraps(fn)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        begin_batch()
        try:
            result = fn(*args, **kwargs)
        except BaseException:
            _end_batch_after_error()
            raise
        end_batch()
        return result

    return wrapper


@contextmanager
def transaction():
    """Context manager form of @action.

    Usage:
        with transaction():
            a.set(1)
            b.set(2)
            # effects run here, after both are set
    """
    begin_batch()
    try:
        yield
    except BaseException:
        _end_batch_after_error()
        raise
    end_batch()
