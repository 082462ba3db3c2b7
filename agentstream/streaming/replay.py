"""Replay provider: serve a recorded stream as an AgentProvider.

Used by the ``agentstream replay`` command and by tests. Recordings are
JSON Lines files, one ``{"message": {...}}`` stream item per line.
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import AsyncGenerator, Iterable, Mapping, Sequence
from pathlib import Path
from typing import Any

from agentstream.exceptions import ConfigurationError
from agentstream.streaming.events import Event, StreamItem


def load_stream_items(path: Path) -> list[StreamItem]:
    """Load a JSON Lines recording. Blank lines are ignored.

    Raises:
        ConfigurationError: If a line is not a valid stream item.
    """
    items: list[StreamItem] = []
    with path.open(encoding="utf-8") as f:
        for lineno, line in enumerate(f, start=1):
            if not line.strip():
                continue
            try:
                items.append(StreamItem.model_validate_json(line))
            except ValueError as e:
                raise ConfigurationError(f"{path}:{lineno}: invalid stream item: {e}") from e
    return items


class ReplayProvider:
    """AgentProvider that replays recorded stream items in order.

    Attributes:
        opened_with: (messages, tools) for every open_stream() call.
    """

    def __init__(
        self,
        items: Iterable[StreamItem | Mapping[str, Any]],
        *,
        item_delay: float = 0.0,
    ) -> None:
        self._items = list(items)
        self._item_delay = item_delay
        self.opened_with: list[tuple[list[Event], list[Mapping[str, Any]]]] = []

    async def open_stream(
        self,
        messages: list[Event],
        tools: Sequence[Mapping[str, Any]],
    ) -> AsyncGenerator[StreamItem | Mapping[str, Any], None]:
        self.opened_with.append((list(messages), list(tools)))
        return self._replay()

    async def _replay(self) -> AsyncGenerator[StreamItem | Mapping[str, Any], None]:
        for item in self._items:
            if self._item_delay:
                await asyncio.sleep(self._item_delay)
            yield item


def load_json(path: Path) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"Cannot read {path}: {e}") from e
