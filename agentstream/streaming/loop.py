"""Agent loop: turn a provider event stream into message decisions.

Flow for one invocation::

    prefetch resources -> open provider stream -> for each event:
        map role (skip if unmapped) -> extract tool call -> yield decision

The loop is a pull-based async generator. It does no work between
``__anext__`` calls, holds at most one provider event in flight, and
yields decisions in provider order. Prefetch and provider failures
propagate to the consumer unchanged; retries and timeouts belong to the
provider client and the caller respectively.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterable, Mapping, Sequence
from typing import TYPE_CHECKING, Any, Protocol

from agentstream.streaming.content import flatten_content
from agentstream.streaming.decisions import MessageDecision, MessageRole
from agentstream.streaming.events import Event, StreamItem
from agentstream.streaming.parser import extract_tool_call_id, extract_tool_call_request
from agentstream.streaming.resources import ResourceCache, prefetch_resources
from agentstream.streaming.roles import map_role

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from agentstream.streaming.resources import ResourceFetcherMap

logger = logging.getLogger(__name__)

ToolSpec = Mapping[str, Any]


class AgentProvider(Protocol):
    """Provider-client collaborator that opens the event stream."""

    async def open_stream(
        self,
        messages: list[Event],
        tools: Sequence[ToolSpec],
    ) -> AsyncIterable[StreamItem | Mapping[str, Any]]: ...


def build_decision(event: Event, role: MessageRole) -> MessageDecision:
    """Build the decision for an event whose role has already been mapped."""
    tool_call_request = extract_tool_call_request(event) if role is MessageRole.ASSISTANT else None
    return MessageDecision(
        id=event.id,
        role=role,
        parent_message_id=event.parent_message_id,
        message=flatten_content(event.content),
        tool_call_request=tool_call_request,
        tool_call_id=extract_tool_call_id(event),
        reasoning=event.reasoning,
    )


def to_decision(event: Event) -> MessageDecision | None:
    """Convert one provider event, or return None if its role is unmapped."""
    role = map_role(event.role)
    if role is None:
        return None
    return build_decision(event, role)


def _as_stream_item(item: StreamItem | Mapping[str, Any]) -> StreamItem:
    if isinstance(item, StreamItem):
        return item
    return StreamItem.model_validate(item)


def _peek_message(item: StreamItem | Mapping[str, Any]) -> tuple[Any, Any]:
    """Read (id, role) without validating the rest of the event.

    Unmapped event kinds may carry content in shapes Event does not
    model, so their role is checked before full validation.
    """
    message = item.get("message") if isinstance(item, Mapping) else None
    if isinstance(message, Mapping):
        return message.get("id"), message.get("role")
    event = _as_stream_item(item).message
    return event.id, event.role


async def _aclose(stream: Any) -> None:
    aclose = getattr(stream, "aclose", None)
    if aclose is not None:
        await aclose()


async def run_agent_loop(
    provider: AgentProvider,
    messages: Sequence[Event | Mapping[str, Any]],
    tools: Sequence[ToolSpec],
    resource_fetchers: ResourceFetcherMap,
) -> AsyncGenerator[MessageDecision, None]:
    """Run one turn of the decision loop.

    Args:
        provider: Opens the provider event stream.
        messages: Prior conversation turns; resource references in them are
            fetched and inlined before the stream opens.
        tools: Tool specs, passed through to the provider untouched.
        resource_fetchers: Map of server key to resource fetcher.

    Yields:
        One MessageDecision per provider event with a representable role,
        in provider order.

    Raises:
        ResourceResolutionError: A resource cannot be routed to a fetcher.
        ResourceFetchError: A resource fetch failed.
        Exception: Anything raised by the provider stream, unchanged.
    """
    cache = ResourceCache()
    resolved = await prefetch_resources(messages, resource_fetchers, cache=cache)

    stream = await provider.open_stream(resolved, list(tools))
    logger.info(
        "Decision stream opened (%d message(s), %d tool(s), %d resource(s) inlined)",
        len(resolved),
        len(tools),
        len(cache),
    )

    yielded = 0
    skipped = 0
    try:
        async for raw_item in stream:
            event_id, raw_role = _peek_message(raw_item)
            role = map_role(raw_role)
            if role is None:
                skipped += 1
                logger.debug("Skipping event %s with unmapped role '%s'", event_id, raw_role)
                continue
            event = _as_stream_item(raw_item).message
            yield build_decision(event, role)
            yielded += 1
    finally:
        await _aclose(stream)
        logger.info("Decision stream closed (%d yielded, %d skipped)", yielded, skipped)
