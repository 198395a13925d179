"""Store — key-based container of reactive producers.

A Store maps a key to the producer backing it. Producers are created on
first access: a State seeded from `defaults`, or a Derived when the key
has a compute function in `derived`.

The reactive / derived_property descriptors use a Store kept on each
instance to give plain attributes reactive backing cells:

    class Player:
        health = reactive(100)

        @derived_property
        def is_alive(self):
            return self.health > 0
"""

from __future__ import annotations

from typing import Any, Callable, Generic, Iterator, TypeVar

from reactivity._tracking import Producer
from reactivity.derived import Derived
from reactivity.state import State

T = TypeVar("T")

_MISSING = object()
_STORE_ATTR = "__reactive_store__"


class Store:
    """Key-based producer container with lazily created cells."""

    def __init__(
        self,
        defaults: dict[str, object] | None = None,
        derived: dict[str, Callable[[Store], object]] | None = None,
    ) -> None:
        self._defaults = dict(defaults) if defaults else {}
        self._derived = dict(derived) if derived else {}
        self._producers: dict[str, State | Derived] = {}

    def _create(self, key: str, value: object = _MISSING) -> State | Derived:
        compute = self._derived.get(key)
        if compute is not None:
            producer: State | Derived = Derived(lambda: compute(self))
        elif value is not _MISSING:
            producer = State(value)
        elif key in self._defaults:
            producer = State(self._defaults[key])
        else:
            raise KeyError(key)
        self._producers[key] = producer
        return producer

    def producer(self, key: str) -> State | Derived:
        """Return the cell backing key, creating it if it has a default."""
        producer = self._producers.get(key)
        if producer is None:
            producer = self._create(key)
        return producer

    def get(self, key: str) -> object:
        return self.producer(key).get()

    def set(self, key: str, value: object) -> None:
        producer = self._producers.get(key)
        if producer is None:
            producer = self._create(key, value)
        producer.set(value)

    def keys(self) -> list[str]:
        """Keys whose producers have been created."""
        return list(self._producers)

    def __contains__(self, key: str) -> bool:
        return key in self._producers or key in self._defaults or key in self._derived

    def __iter__(self) -> Iterator[str]:
        return iter(self._producers)

    def __repr__(self) -> str:
        return f"Store({sorted(self._producers)!r})"


def _store_of(obj: object) -> Store:
    try:
        namespace = vars(obj)
    except TypeError:
        raise TypeError(
            f"reactive property defined on unsupported type {type(obj).__name__}"
        ) from None

    store = namespace.get(_STORE_ATTR)
    if store is None:
        store = namespace[_STORE_ATTR] = Store()
    return store


class reactive(Generic[T]):
    """Descriptor backing an attribute with a per-instance State."""

    def __init__(self, default: T = _MISSING) -> None:  # type: ignore[assignment]
        self._default = default
        self.name = ""

    def __set_name__(self, owner: type, name: str) -> None:
        self.name = name

    def _producer(self, obj: object) -> State:
        store = _store_of(obj)
        producer = store._producers.get(self.name)
        if producer is None:
            if self._default is _MISSING:
                raise AttributeError(
                    f"{type(obj).__name__!r} object has no value for reactive attribute {self.name!r}"
                )
            producer = store._create(self.name, self._default)
        return producer

    def __get__(self, obj: object, objtype: type | None = None) -> Any:
        if obj is None:
            return self
        return self._producer(obj).get()

    def __set__(self, obj: object, value: T) -> None:
        _store_of(obj).set(self.name, value)


class derived_property(Generic[T]):
    """Decorator turning a method into a per-instance Derived attribute.

    Assigning to the attribute overrides the computed value until one of
    its dependencies changes.
    """

    def __init__(self, compute: Callable[[Any], T]) -> None:
        self._compute = compute
        self.name = compute.__name__
        self.__doc__ = compute.__doc__

    def __set_name__(self, owner: type, name: str) -> None:
        self.name = name

    def _producer(self, obj: object) -> Derived[T]:
        store = _store_of(obj)
        producer = store._producers.get(self.name)
        if producer is None:
            compute = self._compute
            producer = store._producers[self.name] = Derived(lambda: compute(obj))
        return producer

    def __get__(self, obj: object, objtype: type | None = None) -> Any:
        if obj is None:
            return self
        return self._producer(obj).get()

    def __set__(self, obj: object, value: T) -> None:
        self._producer(obj).set(value)


def producer_of(obj: object, name: str) -> Producer:
    """Return the cell backing a reactive attribute of obj, creating it if needed."""
    descriptor = getattr(type(obj), name, None)
    if not isinstance(descriptor, (reactive, derived_property)):
        raise AttributeError(f"{type(obj).__name__!r} has no reactive attribute {name!r}")
    return descriptor._producer(obj)
