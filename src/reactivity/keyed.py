"""each() — per-index effect scopes over a reactive collection.

The collection is read in a tracked effect. When it changes, only the
indices whose value changed get a new scope; equal values at the same
index keep theirs. Every index runs its callback in an independent
effect root, so the callback itself tracks nothing, but it can create
effects that do.
"""

from __future__ import annotations

import inspect
from typing import Callable, Generic, Optional, Sequence, TypeVar, Union

from reactivity._runtime import InvalidScopeError, get_runtime
from reactivity._tracking import values_equal
from reactivity.effect import Effect, Teardown, create_effect

T = TypeVar("T")

EachCallback = Union[Callable[[T, int], Optional[Teardown]], Callable[[T], Optional[Teardown]]]


def _wants_index(callback: Callable) -> bool:
    """Whether callback takes the index as a second positional argument."""
    try:
        parameters = inspect.signature(callback).parameters.values()
    except (TypeError, ValueError):
        return True

    positional = 0
    for parameter in parameters:
        if parameter.kind is parameter.VAR_POSITIONAL:
            return True
        if parameter.kind in (parameter.POSITIONAL_ONLY, parameter.POSITIONAL_OR_KEYWORD):
            positional += 1
    return positional != 1


class _Entry(Generic[T]):
    """One index of an each() collection and the root that owns its scope."""

    __slots__ = ("value", "_root")

    def __init__(self, value: T, index: int, callback: Callable[[T, int], Optional[Teardown]]) -> None:
        self.value = value
        # no parent: the collection effect re-running must not dispose us
        self._root = Effect(lambda: callback(value, index), None, False)
        self._root.run()

    def dispose(self) -> None:
        self._root.dispose()


def each(collection: Callable[[], Sequence[T]], callback: EachCallback[T]) -> Effect:
    """Run callback(item, index) for every index of the collection.

    callback may also take the item alone; it is then called as callback(item).

    collection is tracked: when it returns a different sequence, indices
    whose value changed are disposed and re-created, new indices are added,
    and indices past the new end are disposed, last first. The teardown
    returned by callback runs when its index is disposed.

    Must be called inside an effect root or another effect. Returns the
    scope that owns every index.

    Usage:
        items = create_state(["a", "b"])

        def show(item, index):
            print("add", index, item)
            return lambda: print("remove", index, item)

        create_effect_root(lambda: each(items.get, show))
    """
    parent = get_runtime().current_effect
    if parent is None:
        raise InvalidScopeError("each must be created inside an effect root")

    call = callback if _wants_index(callback) else (lambda item, index: callback(item))

    entries: list[_Entry[T]] = []
    is_first_run = True

    def _reconcile() -> None:
        nonlocal is_first_run
        new_items = collection()
        count = len(new_items)

        if is_first_run or (not entries and count > 0):
            for index, item in enumerate(new_items):
                entries.append(_Entry(item, index, call))
            is_first_run = False
            return

        if entries and count == 0:
            for entry in entries:
                entry.dispose()
            entries.clear()
            return

        for index, item in enumerate(new_items):
            if index < len(entries):
                if not values_equal(item, entries[index].value):
                    entries[index].dispose()
                    entries[index] = _Entry(item, index, call)
            else:
                entries.append(_Entry(item, index, call))

        if count < len(entries):
            for index in range(len(entries) - 1, count - 1, -1):
                entries[index].dispose()
            del entries[count:]

    def _scope() -> Teardown:
        create_effect(_reconcile)

        def _dispose_entries() -> None:
            nonlocal is_first_run
            for entry in entries:
                entry.dispose()
            entries.clear()
            is_first_run = True

        return _dispose_entries

    root = Effect(_scope, parent, False)
    root.run()
    return root
