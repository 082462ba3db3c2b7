"""Unit tests for the keyed throttle.

Timing uses a 50ms window; sleeps are sized to land well inside or well
past a window boundary.
"""

import asyncio
import logging

import pytest

from agentstream.streaming.throttle import KeyedThrottle, create_keyed_throttle

DELAY = 0.05


@pytest.fixture
def calls():
    return []


@pytest.fixture
def throttle(calls):
    t = create_keyed_throttle(lambda key, value: calls.append((key, value)), DELAY)
    yield t
    t.cancel()


class TestLeadingAndTrailing:
    @pytest.mark.asyncio
    async def test_leading_edge_fires_immediately(self, throttle, calls):
        throttle.schedule("k", 1)
        assert calls == [("k", 1)]

    @pytest.mark.asyncio
    async def test_single_burst_delivers_first_and_last(self, throttle, calls):
        throttle.schedule("k", 1)
        throttle.schedule("k", 2)
        throttle.schedule("k", 3)
        assert calls == [("k", 1)]

        await asyncio.sleep(DELAY * 1.6)

        assert calls == [("k", 1), ("k", 3)]

    @pytest.mark.asyncio
    async def test_no_trailing_without_new_values(self, throttle, calls):
        throttle.schedule("k", 1)
        await asyncio.sleep(DELAY * 1.6)

        assert calls == [("k", 1)]
        assert throttle.pending_keys == []

    @pytest.mark.asyncio
    async def test_idle_reset_after_trailing(self, throttle, calls):
        throttle.schedule("k", 1)
        throttle.schedule("k", 2)
        await asyncio.sleep(DELAY * 1.5)  # trailing fired, second cooldown armed
        assert calls == [("k", 1), ("k", 2)]

        await asyncio.sleep(DELAY * 1.5)  # second cooldown expired with nothing stored
        assert throttle.pending_keys == []

        throttle.schedule("k", 3)
        assert calls == [("k", 1), ("k", 2), ("k", 3)]

    @pytest.mark.asyncio
    async def test_updates_during_rearmed_cooldown(self, throttle, calls):
        throttle.schedule("k", 1)
        throttle.schedule("k", 2)
        await asyncio.sleep(DELAY * 1.5)
        throttle.schedule("k", 3)
        throttle.schedule("k", 4)
        assert calls == [("k", 1), ("k", 2)]

        await asyncio.sleep(DELAY)

        assert calls == [("k", 1), ("k", 2), ("k", 4)]

    @pytest.mark.asyncio
    async def test_keys_are_independent(self, throttle, calls):
        throttle.schedule("a", 1)
        throttle.schedule("b", 1)
        throttle.schedule("a", 2)
        assert calls == [("a", 1), ("b", 1)]

        await asyncio.sleep(DELAY * 1.6)

        assert calls == [("a", 1), ("b", 1), ("a", 2)]


class TestFlush:
    @pytest.mark.asyncio
    async def test_flush_delivers_trailing_exactly_once(self, throttle, calls):
        throttle.schedule("k", 1)
        throttle.schedule("k", 2)
        throttle.flush()

        assert calls == [("k", 1), ("k", 2)]

        await asyncio.sleep(DELAY * 2)

        assert calls == [("k", 1), ("k", 2)]

    @pytest.mark.asyncio
    async def test_flush_without_trailing_delivers_nothing(self, throttle, calls):
        throttle.schedule("k", 1)
        throttle.flush()

        assert calls == [("k", 1)]
        assert throttle.pending_keys == []

    @pytest.mark.asyncio
    async def test_flush_resets_to_leading_edge(self, throttle, calls):
        throttle.schedule("k", 1)
        throttle.flush()
        throttle.schedule("k", 2)

        assert calls == [("k", 1), ("k", 2)]

    @pytest.mark.asyncio
    async def test_timer_from_before_flush_never_fires(self):
        """A cycle started after flush runs on its own timer only."""
        calls = []
        throttle = KeyedThrottle(lambda key, value: calls.append((key, value)), 0.2)

        throttle.schedule("k", 1)
        await asyncio.sleep(0.1)
        throttle.flush()
        throttle.schedule("k", 2)
        throttle.schedule("k", 3)

        # The pre-flush timer was due at 0.2s, the new one at 0.3s
        await asyncio.sleep(0.12)
        assert calls == [("k", 1), ("k", 2)]

        await asyncio.sleep(0.15)
        assert calls == [("k", 1), ("k", 2), ("k", 3)]
        throttle.cancel()

    @pytest.mark.asyncio
    async def test_stale_generation_is_noop(self, throttle, calls):
        throttle.schedule("k", 1)
        throttle.schedule("k", 2)
        stale_gen = throttle._entries["k"].gen

        throttle.flush()
        throttle.schedule("k", 3)
        throttle.schedule("k", 4)
        throttle._on_cooldown_end("k", stale_gen)

        assert calls == [("k", 1), ("k", 2), ("k", 3)]
        assert throttle._entries["k"].gen > stale_gen

    @pytest.mark.asyncio
    async def test_flush_multiple_keys(self, throttle, calls):
        throttle.schedule("a", 1)
        throttle.schedule("b", 1)
        throttle.schedule("a", 2)
        throttle.schedule("b", 2)
        throttle.flush()

        assert calls == [("a", 1), ("b", 1), ("a", 2), ("b", 2)]

    @pytest.mark.asyncio
    async def test_flush_error_still_delivers_other_keys(self, caplog):
        delivered = []

        def fn(key, value):
            if (key, value) in {("a", 2), ("b", 2)}:
                raise RuntimeError(f"sink down for {key}")
            delivered.append((key, value))

        throttle = KeyedThrottle(fn, DELAY)
        for key in ("a", "b", "c"):
            throttle.schedule(key, 1)
            throttle.schedule(key, 2)

        with caplog.at_level(logging.ERROR, logger="agentstream.streaming.throttle"):
            with pytest.raises(RuntimeError, match="sink down for a"):
                throttle.flush()

        assert delivered == [("a", 1), ("b", 1), ("c", 1), ("c", 2)]
        assert throttle.pending_keys == []
        assert caplog.text.count("during flush") == 2


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_cancel_drops_pending_values(self, throttle, calls):
        throttle.schedule("k", 1)
        throttle.schedule("k", 2)
        throttle.cancel()

        await asyncio.sleep(DELAY * 1.6)

        assert calls == [("k", 1)]
        assert throttle.pending_keys == []

    def test_delay_must_be_positive(self):
        with pytest.raises(ValueError, match="positive"):
            KeyedThrottle(lambda k, v: None, 0)

    @pytest.mark.asyncio
    async def test_trailing_callback_error_is_logged(self, caplog):
        delivered = []

        def fn(key, value):
            if value == 2:
                raise RuntimeError("sink down")
            delivered.append(value)

        throttle = KeyedThrottle(fn, DELAY)
        throttle.schedule("k", 1)
        throttle.schedule("k", 2)

        with caplog.at_level(logging.ERROR, logger="agentstream.streaming.throttle"):
            await asyncio.sleep(DELAY * 1.5)

        assert "Throttled callback failed" in caplog.text

        throttle.schedule("k", 3)
        await asyncio.sleep(DELAY)
        throttle.cancel()

        assert delivered == [1, 3]

    @pytest.mark.asyncio
    async def test_leading_callback_error_propagates(self):
        def fn(key, value):
            raise RuntimeError("sink down")

        throttle = KeyedThrottle(fn, DELAY)
        with pytest.raises(RuntimeError, match="sink down"):
            throttle.schedule("k", 1)
        throttle.cancel()
