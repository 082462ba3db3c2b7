"""Consumer-side sink: throttle a decision stream before persistence or UI.

Partial decisions for the same tool call (or message) arrive much faster
than a UI can render or a database should write them. ``stream_to_sink``
routes them through a KeyedThrottle and flushes when the stream ends so
the final decision per key is never lost.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterable, Callable

from agentstream.settings import get_settings
from agentstream.streaming.decisions import MessageDecision
from agentstream.streaming.throttle import KeyedThrottle

logger = logging.getLogger(__name__)

DecisionSink = Callable[[MessageDecision], None]


def decision_key(decision: MessageDecision) -> str:
    """Throttle key: the tool-call ID when present, else the message ID."""
    return decision.tool_call_id or decision.id


async def stream_to_sink(
    decisions: AsyncIterable[MessageDecision],
    sink: DecisionSink,
    *,
    delay: float | None = None,
    key_fn: Callable[[MessageDecision], str] = decision_key,
) -> int:
    """Drain a decision stream into a sink at a bounded rate per key.

    The throttle is flushed whether the stream ends normally or raises,
    so decisions already produced still reach the sink.

    Args:
        decisions: Decision stream, typically from run_agent_loop().
        sink: Called with the latest decision for a key.
        delay: Cooldown window in seconds (defaults to settings).
        key_fn: Maps a decision to its throttle key.

    Returns:
        Number of decisions consumed from the stream.
    """
    window = delay if delay is not None else get_settings().throttle_delay_seconds
    throttle: KeyedThrottle[str, MessageDecision] = KeyedThrottle(
        lambda _key, decision: sink(decision),
        window,
    )

    consumed = 0
    try:
        async for decision in decisions:
            consumed += 1
            throttle.schedule(key_fn(decision), decision)
    finally:
        throttle.flush()
        logger.debug("Sink drained %d decision(s)", consumed)
    return consumed
