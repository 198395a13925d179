"""Derived values — lazily computed state with automatic dependency tracking.

A Derived wraps a compute function. When read, it tracks which producers
the function reads and caches the result. When a dependency changes, the
cached value is marked stale and recomputed on the next read.

A Derived that no effect depends on detaches itself from its
dependencies, so changes upstream cost nothing until it is read again.
"""

from __future__ import annotations

from typing import Callable, Generic, TypeVar

from reactivity._runtime import get_runtime
from reactivity._tracking import Producer, Reaction, ReactionState, values_equal

T = TypeVar("T")


class Derived(Producer, Reaction, Generic[T]):
    """A value derived from other producers, recomputed only when needed.

    Assigning a value overrides the computed one until the next time a
    dependency changes.
    """

    __slots__ = (
        "_compute",
        "_value",
        "_reactions",
        "_write_version",
        "_dependencies",
        "_read_version",
        "_state",
        "_is_connected_to_effect",
        "_has_notified",
    )

    def __init__(self, compute: Callable[[], T]) -> None:
        self._compute = compute
        self._value: T | None = None
        self._reactions: list[Reaction] = []
        # does not change when recomputing to an equal value
        self._write_version = 0
        self._dependencies: list[Producer] = []
        self._read_version = 0
        self._state = ReactionState.STALE
        self._is_connected_to_effect = False
        # reactions were told we are stale and we have not run since
        self._has_notified = False

    def get(self) -> T:
        """Read the value, recomputing first if any dependency changed."""
        self._track_read()

        # teardowns see the snapshot swapped into raw_value
        if not get_runtime().is_running_teardown and self.should_run:
            self.run()

        return self._value

    def set(self, value: T) -> None:
        """Override the computed value until a dependency changes."""
        if values_equal(self._value, value):
            return

        if self._state is ReactionState.STALE:
            # compute so the dependencies that will clear the override are tracked
            self.run()

        self._value = value
        runtime = get_runtime()
        runtime.version += 1
        self._write_version = runtime.version
        self._state = (
            ReactionState.UP_TO_DATE if self._is_connected_to_effect else ReactionState.POSSIBLY_STALE
        )

        self._propagate()

    value = property(get, set)

    @property
    def raw_value(self) -> T | None:
        return self._value

    @raw_value.setter
    def raw_value(self, value: T) -> None:
        self._value = value

    @property
    def is_connected_to_effect(self) -> bool:
        return self._is_connected_to_effect

    def add_reaction(self, reaction: Reaction) -> None:
        if not reaction.is_connected_to_effect or reaction in self._reactions:
            return

        self._reactions.append(reaction)

        if not self._is_connected_to_effect:
            # reattach to the dependencies we dropped while unobserved
            self._is_connected_to_effect = True
            self._has_notified = False
            for dependency in self._dependencies:
                dependency.add_reaction(self)

    def remove_reaction(self, reaction: Reaction) -> None:
        if reaction not in self._reactions:
            return

        self._reactions.remove(reaction)

        if not self._reactions:
            self._is_connected_to_effect = False
            self._state = ReactionState.POSSIBLY_STALE
            for dependency in self._dependencies:
                dependency.remove_reaction(self)

    def on_dependency_changed(self, new_state: ReactionState) -> None:
        if self._state <= new_state and self._has_notified:
            return

        if new_state < self._state:
            self._state = new_state
        self._has_notified = True
        self._propagate(ReactionState.POSSIBLY_STALE)

    def run(self) -> None:
        """Recompute the value, re-tracking dependencies."""
        self._has_notified = False
        for dependency in self._dependencies:
            dependency.remove_reaction(self)
        self._dependencies.clear()

        runtime = get_runtime()
        previous_reaction = runtime.current_reaction
        previous_untracking = runtime.is_untracking
        runtime.current_reaction = self
        runtime.is_untracking = False

        try:
            old_value = self._value
            self._value = self._compute()

            self._state = (
                ReactionState.UP_TO_DATE if self._is_connected_to_effect else ReactionState.POSSIBLY_STALE
            )

            if not values_equal(old_value, self._value):
                runtime.version += 1
                self._write_version = runtime.version

            self._read_version = runtime.version
        finally:
            runtime.current_reaction = previous_reaction
            runtime.is_untracking = previous_untracking

    def __repr__(self) -> str:
        name = getattr(self._compute, "__name__", "compute")
        if self._state is ReactionState.STALE:
            return f"Derived({name}, stale)"
        return f"Derived({name}, cached={self._value!r})"


def create_derived(compute: Callable[[], T]) -> Derived[T]:
    """Create a Derived from a function. Works as a decorator too.

    Usage:
        count = create_state(1)

        @create_derived
        def doubled():
            return count.get() * 2

        doubled.get()  # 2
        count.set(5)
        doubled.get()  # 10
    """
    return Derived(compute)
