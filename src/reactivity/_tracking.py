"""Dependency tracking engine — staleness states, producers and reactions.

Producers (State, Derived) hold values. Reactions (Derived, Effect) re-run
when a producer they read changes. Reading a producer while a reaction is
the runtime's current reaction registers an edge on both sides.

Changes are pushed as staleness marks and pulled as recomputation: a write
marks direct dependents STALE and everything downstream POSSIBLY_STALE,
and values are only recomputed when somebody asks for them.
"""

from __future__ import annotations

from contextlib import contextmanager
from enum import IntEnum
from typing import Callable, Iterator, TypeVar

from reactivity._runtime import get_runtime

T = TypeVar("T")


class ReactionState(IntEnum):
    """How fresh a reaction is. Lower is more stale."""

    # A direct dependency changed its value, or the reaction never ran.
    STALE = 0
    # An ancestor changed; direct dependencies have to be checked.
    POSSIBLY_STALE = 1
    UP_TO_DATE = 2


def values_equal(old: object, new: object) -> bool:
    return old is new or old == new


class Producer:
    """A reactive object whose value can be depended upon by a Reaction."""

    __slots__ = ()

    _reactions: list[Reaction]
    _write_version: int

    @property
    def reactions(self) -> list[Reaction]:
        return self._reactions

    @property
    def write_version(self) -> int:
        """The runtime version at which this producer's value last changed."""
        return self._write_version

    @property
    def raw_value(self) -> object:
        """The current value, without tracking."""
        raise NotImplementedError

    @raw_value.setter
    def raw_value(self, value: object) -> None:
        raise NotImplementedError

    def add_reaction(self, reaction: Reaction) -> None:
        raise NotImplementedError

    def remove_reaction(self, reaction: Reaction) -> None:
        raise NotImplementedError

    def _track_read(self) -> None:
        """Register this producer with the current reaction, if tracking."""
        runtime = get_runtime()
        reaction = runtime.current_reaction
        if not runtime.is_untracking and reaction is not None:
            self.add_reaction(reaction)
            reaction.add_dependency(self)

    def _propagate(self, state: ReactionState = ReactionState.STALE) -> None:
        """Tell every dependent reaction that this producer changed.

        Direct writes propagate STALE. Derived values propagate
        POSSIBLY_STALE to their own dependents, since a changed input does
        not guarantee a changed output.
        """
        for reaction in list(self._reactions):
            reaction.on_dependency_changed(state)


class Reaction:
    """An object that re-runs when one of its dependencies changes."""

    __slots__ = ()

    _dependencies: list[Producer]
    _read_version: int
    _state: ReactionState

    @property
    def dependencies(self) -> list[Producer]:
        return self._dependencies

    @property
    def read_version(self) -> int:
        """The runtime version at which this reaction last ran."""
        return self._read_version

    @property
    def state(self) -> ReactionState:
        return self._state

    @property
    def is_connected_to_effect(self) -> bool:
        """Whether an effect depends on this reaction, directly or transitively."""
        raise NotImplementedError

    def on_dependency_changed(self, new_state: ReactionState) -> None:
        raise NotImplementedError

    def run(self) -> None:
        raise NotImplementedError

    @property
    def should_run(self) -> bool:
        """Whether run() needs to be called to bring this reaction up to date.

        Reactions that are also producers are brought up to date first so
        their write versions can be compared against our read version.
        """
        state = self._state

        if state is ReactionState.STALE:
            return True

        if state is ReactionState.POSSIBLY_STALE:
            for producer in self._dependencies:
                if isinstance(producer, Reaction) and producer.should_run:
                    producer.run()

                if producer.write_version > self._read_version:
                    return True

            if self.is_connected_to_effect:
                # an ancestor changed without changing anything we read
                self._state = ReactionState.UP_TO_DATE

            # unconnected reactions are detached from their dependencies and
            # must keep checking them on every read
            return False

        return False

    def add_dependency(self, producer: Producer) -> None:
        if producer not in self._dependencies:
            self._dependencies.append(producer)


def flush() -> None:
    """Synchronously run every effect scheduled by a dependency change."""
    get_runtime().flush()


def untrack(fn: Callable[[], T]) -> T:
    """Call fn without registering any dependencies, and return its result."""
    runtime = get_runtime()
    previous = runtime.is_untracking
    runtime.is_untracking = True
    try:
        return fn()
    finally:
        runtime.is_untracking = previous


@contextmanager
def untracked() -> Iterator[None]:
    """Context manager form of untrack().

    Usage:
        with untracked():
            count.get()  # not a dependency
    """
    runtime = get_runtime()
    previous = runtime.is_untracking
    runtime.is_untracking = True
    try:
        yield
    finally:
        runtime.is_untracking = previous


def is_tracking() -> bool:
    """Whether reads right now happen inside a tracking effect scope."""
    runtime = get_runtime()
    return not runtime.is_untracking and runtime.current_effect is not None
