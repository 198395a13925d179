"""Tests for Store and the reactive attribute descriptors."""

import pytest

from reactivity import (
    Derived,
    State,
    Store,
    create_effect,
    create_effect_root,
    create_state,
    derived_property,
    flush,
    producer_of,
    reactive,
)


class TestStore:
    def test_defaults(self):
        s = Store({"x": 10, "y": "hello"})
        assert s.get("x") == 10
        assert s.get("y") == "hello"

    def test_producers_are_created_lazily(self):
        s = Store({"x": 10, "y": "hello"})
        assert s.keys() == []
        s.get("y")
        assert s.keys() == ["y"]
        assert "x" in s

    def test_unknown_key(self):
        s = Store({"x": 1})
        with pytest.raises(KeyError):
            s.get("nope")

    def test_set_creates_state(self):
        s = Store()
        s.set("x", 42)
        assert s.get("x") == 42
        assert isinstance(s.producer("x"), State)

    def test_derived_keys(self):
        s = Store({"count": 2}, derived={"doubled": lambda store: store.get("count") * 2})
        assert isinstance(s.producer("doubled"), Derived)
        assert s.get("doubled") == 4
        s.set("count", 5)
        assert s.get("doubled") == 10

    def test_reactive_tracking(self):
        s = Store({"count": 0})
        log = []
        create_effect_root(lambda: create_effect(lambda: log.append(s.get("count"))))
        s.set("count", 1)
        flush()
        assert log == [0, 1]


class Player:
    health = reactive(100)
    name = reactive()

    def __init__(self, name):
        self.name = name

    @derived_property
    def is_alive(self):
        """Whether health is above zero."""
        return self.health > 0


class TestDescriptors:
    def test_default_value(self):
        assert Player("a").health == 100

    def test_per_instance_cells(self):
        a = Player("a")
        b = Player("b")
        a.health = 5
        assert b.health == 100
        assert producer_of(a, "health") is not producer_of(b, "health")

    def test_missing_value(self):
        class Empty:
            value = reactive()

        with pytest.raises(AttributeError):
            Empty().value

    def test_class_access_returns_descriptor(self):
        assert isinstance(Player.health, reactive)
        assert Player.is_alive.__doc__ == "Whether health is above zero."

    def test_derived_property(self):
        p = Player("a")
        assert p.is_alive
        p.health = 0
        assert not p.is_alive

    def test_derived_property_override(self):
        p = Player("a")
        p.health = 0
        p.is_alive = True
        assert p.is_alive
        p.health = -1
        assert not p.is_alive

    def test_effects_track_attributes(self):
        p = Player("a")
        log = []
        create_effect_root(lambda: create_effect(lambda: log.append((p.name, p.is_alive))))

        p.health = 0
        flush()
        p.name = "b"
        flush()
        assert log == [("a", True), ("a", False), ("b", False)]

    def test_producer_of(self):
        p = Player("a")
        assert isinstance(producer_of(p, "health"), State)
        assert isinstance(producer_of(p, "is_alive"), Derived)
        with pytest.raises(AttributeError):
            producer_of(p, "nope")

    def test_unsupported_type(self):
        class Slotted:
            __slots__ = ()
            value = reactive(1)

        with pytest.raises(TypeError):
            Slotted().value

    def test_cells_are_regular_producers(self):
        p = Player("a")
        other = create_state(1)
        total = []
        create_effect_root(lambda: create_effect(lambda: total.append(p.health + other.get())))
        producer_of(p, "health").set(10)
        flush()
        assert total == [101, 11]
