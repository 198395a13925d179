"""Runtime — the mutable state shared by every producer and reaction.

One Runtime exists per execution context. It is held in a contextvar so
asyncio tasks spawned from a context see the same runtime, and tests can
swap in a fresh one with reset_runtime().

The runtime owns:
- the global version counter used to compare producer writes with
  reaction reads,
- the ambient current effect / current reaction / untracking flag,
- the FIFO queue of effects waiting to re-run, and the flush that drains it.
"""

from __future__ import annotations

import contextvars
import logging
from collections import deque
from typing import TYPE_CHECKING, Callable

if TYPE_CHECKING:
    from reactivity._tracking import Reaction
    from reactivity.effect import Effect

logger = logging.getLogger("reactivity.runtime")


class InvalidScopeError(RuntimeError):
    """Raised when an effect, collection or timer is created outside an effect root."""


class Runtime:
    """Process-wide reactive state for a single logical thread of control."""

    __slots__ = (
        "version",
        "current_effect",
        "current_reaction",
        "is_untracking",
        "is_running_teardown",
        "is_flush_scheduled",
        "batch_depth",
        "scheduler",
        "_pending",
        "_is_flushing",
    )

    def __init__(self) -> None:
        self.version: int = 1
        self.current_effect: Effect | None = None
        self.current_reaction: Reaction | None = None
        self.is_untracking: bool = False
        self.is_running_teardown: bool = False
        self.is_flush_scheduled: bool = False
        self.batch_depth: int = 0
        self.scheduler: Callable[[Callable[[], None]], object] | None = None
        self._pending: deque[Effect] = deque()
        self._is_flushing = False

    @property
    def is_flushing(self) -> bool:
        return self._is_flushing

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def schedule_effect(self, effect: Effect) -> None:
        """Queue an effect to re-run on the next flush."""
        effect.is_scheduled = True
        self._pending.append(effect)

        if not self.is_flush_scheduled and not self._is_flushing:
            self.is_flush_scheduled = True
            if self.scheduler is not None:
                self.scheduler(self.flush)

    def flush(self) -> None:
        """Run every pending effect, including ones queued while flushing.

        Re-entrant calls are no-ops. An exception from an effect propagates
        to the caller. Effects still queued behind it stay queued, and the
        scheduler hook, if any, is asked for another flush.
        """
        if self._is_flushing:
            return

        self._is_flushing = True
        self.is_flush_scheduled = False
        ran = 0

        try:
            while self._pending:
                effect = self._pending.popleft()
                effect.is_scheduled = False
                if effect.is_disposed:
                    continue
                if effect.should_run:
                    effect.run()
                    ran += 1
        finally:
            self._is_flushing = False
            if self._pending:
                # an effect raised; what is left still needs a flush
                self.is_flush_scheduled = True
                if self.scheduler is not None:
                    self.scheduler(self.flush)

        if ran:
            logger.debug("Flushed %d effects", ran)

    def dispose(self) -> None:
        """Drop all pending work and ambient state. The runtime stops tracking."""
        if self._pending:
            logger.debug("Disposing runtime with %d pending effects", len(self._pending))
        for effect in self._pending:
            effect.is_scheduled = False
        self._pending.clear()
        self.current_effect = None
        self.current_reaction = None
        self.is_untracking = True
        self.is_running_teardown = False
        self.is_flush_scheduled = False
        self.batch_depth = 0
        self._is_flushing = False

    def __repr__(self) -> str:
        return f"Runtime(version={self.version}, pending={len(self._pending)})"


_runtime: contextvars.ContextVar[Runtime | None] = contextvars.ContextVar(
    "reactivity_runtime", default=None
)


def get_runtime() -> Runtime:
    """Return the runtime for the current context, creating it on first use."""
    runtime = _runtime.get()
    if runtime is None:
        runtime = Runtime()
        _runtime.set(runtime)
    return runtime


def reset_runtime() -> Runtime:
    """Dispose the current runtime and install a fresh one. Returns the new runtime."""
    old = _runtime.get()
    if old is not None:
        old.dispose()
    runtime = Runtime()
    _runtime.set(runtime)
    return runtime


def set_scheduler(scheduler: Callable[[Callable[[], None]], object] | None) -> None:
    """Install a hook that is told when a flush becomes necessary.

    The hook receives the flush callable the first time an effect is queued
    after a flush. Host loops typically pass something like loop.call_soon:

        reactivity.set_scheduler(asyncio.get_running_loop().call_soon)

    Pass None to go back to flushing manually.
    """
    get_runtime().scheduler = scheduler


def get_pending_count() -> int:
    """Number of effects waiting to run. Useful for testing."""
    return get_runtime().pending_count
