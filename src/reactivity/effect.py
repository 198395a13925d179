"""Effects — side effects triggered by reactive state changes.

Unlike Derived (which is lazy and only evaluates on read), an Effect
re-runs its function whenever a dependency changes, on the next flush.

Effects form a tree: every effect created while another one runs becomes
its child and is disposed when the parent re-runs or is disposed. An
effect function may return a teardown function, which runs before the
next run and on disposal, and sees the dependency values from the run
that returned it.

Two entry points:
- create_effect_root(fn): opens an untracked scope. Returns the handle that
  disposes everything created inside it.
- create_effect(fn): a tracked effect; only valid inside a scope.
"""

from __future__ import annotations

from typing import Callable, Optional

from reactivity._runtime import InvalidScopeError, get_runtime
from reactivity._tracking import Producer, Reaction, ReactionState

Teardown = Callable[[], None]
EffectFn = Callable[[], Optional[Teardown]]


class CancelToken:
    """Cancellation signal for work scoped to one generation of an effect."""

    __slots__ = ("_cancelled", "_callbacks")

    def __init__(self) -> None:
        self._cancelled = False
        self._callbacks: list[Callable[[], object]] = []

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def add_callback(self, callback: Callable[[], object]) -> None:
        """Call callback on cancellation; immediately if already cancelled."""
        if self._cancelled:
            callback()
        else:
            self._callbacks.append(callback)

    def cancel(self) -> None:
        if self._cancelled:
            return
        self._cancelled = True
        callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            callback()

    def __repr__(self) -> str:
        return f"CancelToken(cancelled={self._cancelled})"


class Effect(Reaction):
    """A function that re-runs when any producer it read has changed.

    fn may be None, in which case the effect is a pure scope: it is always
    up to date and running it only tears down its children.
    """

    __slots__ = (
        "_fn",
        "_children",
        "_should_track_dependencies",
        "_teardown",
        "_captured_values",
        "_cancel_token",
        "_is_disposed",
        "is_scheduled",
        "_dependencies",
        "_read_version",
        "_state",
    )

    def __init__(
        self,
        fn: EffectFn | None,
        parent: Effect | None,
        should_track_dependencies: bool,
        teardown: Teardown | None = None,
    ) -> None:
        self._fn = fn
        self._children: list[Effect] = []
        self._should_track_dependencies = should_track_dependencies
        self._teardown = teardown
        self._captured_values: list[object] | None = None
        self._cancel_token: CancelToken | None = None
        self._is_disposed = False
        # set while queued in the runtime's pending queue
        self.is_scheduled = False
        self._dependencies: list[Producer] = []
        self._read_version = 0
        self._state = ReactionState.UP_TO_DATE if fn is None else ReactionState.STALE

        if parent is not None:
            parent._children.append(self)

    @property
    def is_disposed(self) -> bool:
        return self._is_disposed

    @property
    def is_connected_to_effect(self) -> bool:
        return True

    @property
    def children(self) -> list[Effect]:
        return self._children

    @property
    def cancel_token(self) -> CancelToken:
        """Token cancelled when this effect re-runs or is disposed."""
        if self._is_disposed:
            token = CancelToken()
            token.cancel()
            return token

        if self._cancel_token is None:
            self._cancel_token = CancelToken()
        return self._cancel_token

    def on_dependency_changed(self, new_state: ReactionState) -> None:
        if self._is_disposed:
            return

        if new_state < self._state:
            self._state = new_state

        if not self.is_scheduled:
            get_runtime().schedule_effect(self)

    def run(self) -> None:
        """Run the effect for the first time, or again after a dependency changed."""
        if self._is_disposed:
            return

        self._run_teardown()

        if self._fn is None:
            return

        runtime = get_runtime()
        previous_effect = runtime.current_effect
        previous_reaction = runtime.current_reaction
        previous_untracking = runtime.is_untracking

        runtime.current_effect = self
        runtime.current_reaction = self if self._should_track_dependencies else None
        runtime.is_untracking = not self._should_track_dependencies

        try:
            result = self._fn()
        finally:
            runtime.current_effect = previous_effect
            runtime.current_reaction = previous_reaction
            runtime.is_untracking = previous_untracking

        self._teardown = result if callable(result) else None

        # the next teardown sees the values read during this run
        if self._teardown is not None and self._dependencies:
            self._captured_values = [producer.raw_value for producer in self._dependencies]

        self._read_version = runtime.version
        self._state = ReactionState.UP_TO_DATE

    def dispose(self, perform_teardown: bool = True) -> None:
        """Dispose this effect and its children so they never run again.

        perform_teardown=False skips only this effect's own teardown function.
        Children are still disposed with their teardowns, dependencies are
        detached and the cancel token fires.
        """
        if self._is_disposed:
            return

        self._is_disposed = True

        self._run_teardown(call_teardown=perform_teardown)

    def _run_teardown(self, call_teardown: bool = True) -> None:
        if self._children:
            children, self._children = self._children, []
            for child in children:
                child.dispose()

        teardown = self._teardown
        self._teardown = None
        captured = self._captured_values
        self._captured_values = None

        if teardown is not None and call_teardown:
            if not captured:
                teardown()
            else:
                self._call_with_captured_values(teardown, captured)

        if self._dependencies:
            for producer in self._dependencies:
                producer.remove_reaction(self)
            self._dependencies.clear()

        if self._cancel_token is not None:
            token, self._cancel_token = self._cancel_token, None
            token.cancel()

    def _call_with_captured_values(self, teardown: Teardown, captured: list[object]) -> None:
        dependencies = self._dependencies[: len(captured)]
        current = [producer.raw_value for producer in dependencies]

        for producer, value in zip(dependencies, captured):
            producer.raw_value = value

        runtime = get_runtime()
        previous = runtime.is_running_teardown
        runtime.is_running_teardown = True

        try:
            teardown()
        finally:
            for producer, value in zip(dependencies, current):
                producer.raw_value = value
            runtime.is_running_teardown = previous

    def __enter__(self) -> Effect:
        return self

    def __exit__(self, *exc_info) -> None:
        self.dispose()

    def __repr__(self) -> str:
        name = getattr(self._fn, "__name__", "scope") if self._fn is not None else "scope"
        state = "disposed" if self._is_disposed else self._state.name.lower()
        return f"Effect({name}, {state})"


def create_effect(fn: EffectFn) -> Effect:
    """Run fn now, and again whenever a producer it read changes.

    fn may return a teardown function. It runs before the next run and
    when the effect is disposed, and sees the values read by the run that
    returned it.

    Must be called inside an effect root or another effect.

    Usage:
        count = create_state(0)
        log = []

        root = create_effect_root(lambda: create_effect(lambda: log.append(count.get())))
        # log == [0]

        count.set(1)
        flush()
        # log == [0, 1]

        root.dispose()
    """
    parent = get_runtime().current_effect
    if parent is None:
        raise InvalidScopeError("Effect must be created inside an effect root")

    effect = Effect(fn, parent, True)
    effect.run()
    return effect


def create_effect_root(fn: Callable[[], object]) -> Effect:
    """Open a scope in which effects can be created.

    The root itself does not track anything read directly inside fn.
    Disposing the returned handle disposes every descendant effect.
    """

    def _scope() -> None:
        fn()

    _scope.__name__ = getattr(fn, "__name__", "root")

    root = Effect(_scope, get_runtime().current_effect, False)
    root.run()
    return root
