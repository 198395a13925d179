"""State — a primitive mutable cell that tracks its readers.

When a State is read inside a Derived or Effect, the dependency is
registered automatically. When the value changes, every dependent is
marked stale; effects are queued and run on the next flush.
"""

from __future__ import annotations

from typing import Generic, TypeVar

from reactivity._runtime import get_runtime
from reactivity._tracking import Producer, Reaction, values_equal

T = TypeVar("T")


class State(Producer, Generic[T]):
    """A single reactive value that can be changed at any time."""

    __slots__ = ("_value", "_reactions", "_write_version")

    def __init__(self, value: T) -> None:
        self._value = value
        self._reactions: list[Reaction] = []
        self._write_version = 0

    def get(self) -> T:
        """Read the value. Inside a tracking reaction, registers the dependency."""
        self._track_read()
        return self._value

    def set(self, value: T) -> None:
        """Write a new value. Equal values are ignored."""
        if values_equal(self._value, value):
            return

        self._value = value
        runtime = get_runtime()
        runtime.version += 1
        self._write_version = runtime.version

        self._propagate()

    value = property(get, set)

    @property
    def raw_value(self) -> T:
        return self._value

    @raw_value.setter
    def raw_value(self, value: T) -> None:
        self._value = value

    def add_reaction(self, reaction: Reaction) -> None:
        # observers nobody will ever run are not retained
        if not reaction.is_connected_to_effect:
            return

        if reaction not in self._reactions:
            self._reactions.append(reaction)

    def remove_reaction(self, reaction: Reaction) -> None:
        if reaction in self._reactions:
            self._reactions.remove(reaction)

    def __repr__(self) -> str:
        return f"State({self._value!r})"


def create_state(initial: T) -> State[T]:
    """Create a reactive value.

    Usage:
        count = create_state(0)
        count.get()   # 0
        count.set(1)
        count.value   # 1
    """
    return State(initial)
