"""Tests for scoped timeout() and interval()."""

import asyncio
import logging

import pytest

from reactivity import (
    InvalidScopeError,
    create_effect,
    create_effect_root,
    create_state,
    flush,
    interval,
    timeout,
)


class TestTimeout:
    def test_requires_effect_root(self):
        with pytest.raises(InvalidScopeError):
            timeout(lambda: None, 0.01)

    def test_requires_running_loop(self):
        with pytest.raises(RuntimeError):
            create_effect_root(lambda: timeout(lambda: None, 0.01))

    def test_fires_after_delay(self):
        calls = []

        async def main():
            create_effect_root(lambda: timeout(lambda: calls.append(1), 0.01))
            assert calls == []
            await asyncio.sleep(0.05)

        asyncio.run(main())
        assert calls == [1]

    def test_cancelled_when_scope_disposed(self):
        calls = []

        async def main():
            root = create_effect_root(lambda: timeout(lambda: calls.append(1), 0.02))
            root.dispose()
            await asyncio.sleep(0.05)

        asyncio.run(main())
        assert calls == []

    def test_cancelled_when_disposed_without_teardown(self):
        calls = []
        effects = []

        async def main():
            create_effect_root(
                lambda: effects.append(create_effect(lambda: timeout(lambda: calls.append(1), 0.01)))
            )
            effects[0].dispose(perform_teardown=False)
            await asyncio.sleep(0.05)

        asyncio.run(main())
        assert calls == []

    def test_cancelled_when_effect_reruns(self):
        s = create_state(0)
        calls = []

        def body():
            value = s.get()
            timeout(lambda: calls.append(value), 0.02)

        async def main():
            create_effect_root(lambda: create_effect(body))
            s.set(1)
            flush()
            await asyncio.sleep(0.05)

        asyncio.run(main())
        assert calls == [1]

    def test_exception_is_logged(self, caplog):
        def boom():
            raise ValueError("boom")

        async def main():
            create_effect_root(lambda: timeout(boom, 0.01))
            await asyncio.sleep(0.05)

        with caplog.at_level(logging.ERROR, logger="reactivity.timers"):
            asyncio.run(main())

        assert "Exception occurred during timeout" in caplog.text
        assert "boom" in caplog.text


class TestInterval:
    def test_requires_effect_root(self):
        with pytest.raises(InvalidScopeError):
            interval(lambda: None, 0.01)

    def test_repeats_until_disposed(self):
        calls = []

        async def main():
            root = create_effect_root(lambda: interval(lambda: calls.append(1), 0.01))
            await asyncio.sleep(0.06)
            root.dispose()
            count = len(calls)
            await asyncio.sleep(0.04)
            return count

        count = asyncio.run(main())
        assert count >= 2
        assert len(calls) == count

    def test_immediate_runs_untracked(self):
        s = create_state(0)
        calls = []

        def tick():
            calls.append(s.get())

        async def main():
            root = create_effect_root(lambda: create_effect(lambda: interval(tick, 1, immediate=True)))
            assert calls == [0]
            assert s.reactions == []
            root.dispose()

        asyncio.run(main())
        assert calls == [0]

    def test_exception_stops_interval(self, caplog):
        calls = []

        def boom():
            calls.append(1)
            raise ValueError("boom")

        async def main():
            create_effect_root(lambda: interval(boom, 0.01))
            await asyncio.sleep(0.06)

        with caplog.at_level(logging.ERROR, logger="reactivity.timers"):
            asyncio.run(main())

        assert calls == [1]
        assert "Exception occurred during interval" in caplog.text

    def test_immediate_exception_is_logged(self, caplog):
        def boom():
            raise ValueError("boom")

        async def main():
            create_effect_root(lambda: interval(boom, 0.01, immediate=True))

        with caplog.at_level(logging.ERROR, logger="reactivity.timers"):
            asyncio.run(main())

        assert "Exception occurred during interval" in caplog.text
