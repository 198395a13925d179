"""Tests for State."""

from reactivity import State, create_effect, create_effect_root, create_state, flush


class TestState:
    def test_get_set(self):
        s = create_state(42)
        assert s.get() == 42
        s.set(100)
        assert s.get() == 100

    def test_value_property(self):
        s = create_state("a")
        s.value = "b"
        assert s.value == "b"

    def test_factory_type(self):
        assert isinstance(create_state(0), State)

    def test_write_version_advances_on_change(self, runtime):
        s = create_state(1)
        assert s.write_version == 0
        s.set(2)
        assert s.write_version == runtime.version
        first = s.write_version
        s.set(3)
        assert s.write_version > first

    def test_equal_write_is_ignored(self, runtime):
        s = create_state([1, 2])
        version = runtime.version
        s.set([1, 2])
        assert s.write_version == 0
        assert runtime.version == version

    def test_dedup(self):
        """Setting an equal value does not re-run effects."""
        s = create_state(42)
        log = []
        create_effect_root(lambda: create_effect(lambda: log.append(s.get())))
        assert log == [42]
        s.set(42)
        flush()
        assert log == [42]

    def test_notifies_on_flush(self):
        s = create_state("hello")
        log = []
        create_effect_root(lambda: create_effect(lambda: log.append(s.get())))
        s.set("world")
        assert log == ["hello"]  # effects wait for a flush
        flush()
        assert log == ["hello", "world"]

    def test_read_outside_reaction_creates_no_edge(self):
        s = create_state(1)
        s.get()
        assert s.reactions == []

    def test_raw_value_is_untracked(self):
        s = create_state(1)
        log = []
        create_effect_root(lambda: create_effect(lambda: log.append(s.raw_value)))
        assert s.reactions == []
        s.raw_value = 5
        assert s.get() == 5
        assert s.write_version == 0

    def test_repr(self):
        assert repr(create_state(5)) == "State(5)"
