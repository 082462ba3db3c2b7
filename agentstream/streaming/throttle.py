"""Keyed throttle: leading+trailing throttling, independently per key.

Coalesces high-frequency partial updates (streaming tool-call arguments,
growing assistant messages) into a bounded rate per key while
guaranteeing the latest value for each key is eventually delivered.

Per key:
- The first ``schedule`` on an idle key calls ``fn`` immediately and
  starts a cooldown of ``delay`` seconds.
- Calls during the cooldown only store the latest value.
- When the cooldown ends with a stored value, ``fn`` is called with it
  and a new cooldown starts. When it ends with nothing stored, the key
  goes idle.
- ``flush()`` delivers every stored value synchronously and resets all
  keys.

Everything runs on one asyncio event loop, so there is no locking. Each
armed timer carries the generation it was armed with; a timer whose
generation no longer matches its key's entry does nothing when it fires.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
from collections.abc import Callable, Hashable
from dataclasses import dataclass
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")
K = TypeVar("K", bound=Hashable)


@dataclass
class ThrottleEntry(Generic[T]):
    """State of one key with an active cooldown.

    Attributes:
        latest_value: Most recent value passed to schedule().
        has_trailing: Whether latest_value still needs delivering.
        timer: The armed cooldown timer. At most one per key.
        gen: Generation of the armed timer.
    """

    latest_value: T
    has_trailing: bool = False
    timer: asyncio.TimerHandle | None = None
    gen: int = 0


class KeyedThrottle(Generic[K, T]):
    """Leading+trailing throttle with an independent cooldown per key.

    Usage::

        throttle = KeyedThrottle(on_update, delay=0.1)
        async for event in stream:
            throttle.schedule(event.tool_call_id, event.args)
        throttle.flush()
    """

    def __init__(
        self,
        fn: Callable[[K, T], None],
        delay: float,
        *,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        if delay <= 0:
            raise ValueError(f"Throttle delay must be positive, got {delay}")
        self._fn = fn
        self._delay = delay
        self._loop = loop
        self._entries: dict[K, ThrottleEntry[T]] = {}
        self._generations = itertools.count(1)

    @property
    def delay(self) -> float:
        return self._delay

    @property
    def pending_keys(self) -> list[K]:
        """Keys currently in a cooldown window."""
        return list(self._entries)

    def schedule(self, key: K, value: T) -> None:
        """Submit a new value for a key.

        Fires immediately if the key is idle, otherwise stores the value
        for the trailing edge.
        """
        entry = self._entries.get(key)
        if entry is not None:
            entry.latest_value = value
            entry.has_trailing = True
            return

        entry = ThrottleEntry(latest_value=value)
        self._entries[key] = entry
        self._arm(key, entry)
        self._fn(key, value)

    def flush(self) -> None:
        """Deliver all stored trailing values now and reset every key.

        Call this when the stream driving schedule() ends, otherwise a
        trailing value still waiting out its cooldown is never delivered.

        Every stored value is delivered even if ``fn`` raises for one key;
        the first error is re-raised once all keys have been tried.
        """
        entries = self._entries
        self._entries = {}
        pending: list[tuple[K, T]] = []
        for key, entry in entries.items():
            self._disarm(entry)
            if entry.has_trailing:
                entry.has_trailing = False
                pending.append((key, entry.latest_value))

        first_error: Exception | None = None
        for key, value in pending:
            try:
                self._fn(key, value)
            except Exception as e:
                logger.exception("Throttled callback failed for key %r during flush", key)
                if first_error is None:
                    first_error = e
        if first_error is not None:
            raise first_error

    def cancel(self) -> None:
        """Drop all pending state without delivering anything."""
        for entry in self._entries.values():
            self._disarm(entry)
        self._entries.clear()

    def _get_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def _arm(self, key: K, entry: ThrottleEntry[T]) -> None:
        entry.gen = next(self._generations)
        entry.timer = self._get_loop().call_later(self._delay, self._on_cooldown_end, key, entry.gen)

    def _disarm(self, entry: ThrottleEntry[T]) -> None:
        entry.gen = next(self._generations)
        if entry.timer is not None:
            entry.timer.cancel()
            entry.timer = None

    def _on_cooldown_end(self, key: K, gen: int) -> None:
        entry = self._entries.get(key)
        if entry is None or entry.gen != gen:
            return  # stale timer

        entry.timer = None
        if not entry.has_trailing:
            del self._entries[key]
            return

        value = entry.latest_value
        entry.has_trailing = False
        self._arm(key, entry)
        try:
            self._fn(key, value)
        except Exception:
            logger.exception("Throttled callback failed for key %r", key)


def create_keyed_throttle(
    fn: Callable[[K, T], None],
    delay: float,
) -> KeyedThrottle[K, T]:
    """Create a KeyedThrottle bound to the running event loop on first use.

    Args:
        fn: Callback invoked with (key, value).
        delay: Cooldown window in seconds.
    """
    return KeyedThrottle(fn, delay)
