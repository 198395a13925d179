"""Scoped timers — delayed and repeating callbacks tied to an effect.

A timer belongs to the generation of the effect that created it: when
that effect re-runs or is disposed, its cancel token fires and the timer
stops without calling back again. Timers run as asyncio tasks on the
running loop, so callbacks stay on the single thread that owns the graph.

Exceptions raised by a callback are logged and end that timer.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable

from reactivity._runtime import InvalidScopeError, get_runtime
from reactivity._tracking import untracked
from reactivity.effect import CancelToken

logger = logging.getLogger("reactivity.timers")


def _current_token(kind: str) -> CancelToken:
    effect = get_runtime().current_effect
    if effect is None:
        raise InvalidScopeError(f"{kind} must be created inside an effect root")
    return effect.cancel_token


def _start(loop: asyncio.AbstractEventLoop, token: CancelToken, coro) -> asyncio.Task:
    task = loop.create_task(coro)
    token.add_callback(task.cancel)
    return task


def timeout(callback: Callable[[], object], seconds: float) -> asyncio.Task:
    """Call callback once after `seconds`, unless the current scope ends first.

    Usage:
        async def main():
            root = create_effect_root(lambda: timeout(lambda: print("later"), 0.5))
            await asyncio.sleep(1)   # prints "later"
    """
    token = _current_token("timeout")
    loop = asyncio.get_running_loop()

    async def _run() -> None:
        try:
            await asyncio.sleep(seconds)
            if token.cancelled:
                return
            callback()
        except asyncio.CancelledError:
            pass  # scope ended
        except Exception:
            logger.exception("Exception occurred during timeout")

    return _start(loop, token, _run())


def interval(callback: Callable[[], object], seconds: float, immediate: bool = False) -> asyncio.Task | None:
    """Call callback every `seconds` until the current scope ends.

    With immediate=True the callback also runs once right away, without
    tracking. Returns None if that first call raised.
    """
    token = _current_token("interval")
    # fail before the immediate call when there is no loop to continue on
    loop = asyncio.get_running_loop()

    if immediate:
        try:
            with untracked():
                callback()
        except Exception:
            logger.exception("Exception occurred during interval")
            return None

    async def _run() -> None:
        try:
            while not token.cancelled:
                await asyncio.sleep(seconds)
                if token.cancelled:
                    return
                callback()
        except asyncio.CancelledError:
            pass  # scope ended
        except Exception:
            logger.exception("Exception occurred during interval")

    return _start(loop, token, _run())
