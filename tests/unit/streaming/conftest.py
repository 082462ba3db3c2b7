"""Shared helpers for streaming module tests."""

from typing import Any

from agentstream.streaming.events import Event


def make_event(
    event_id: str,
    role: str,
    content: Any = None,
    **fields: Any,
) -> Event:
    """Create a provider event from wire-shaped fields."""
    return Event.model_validate({"id": event_id, "role": role, "content": content, **fields})


def make_tool_call_event(
    event_id: str,
    name: str,
    arguments: str | None,
    call_id: str = "tc_1",
    **fields: Any,
) -> Event:
    """Create an assistant event carrying a single tool call."""
    function: dict[str, Any] = {"name": name}
    if arguments is not None:
        function["arguments"] = arguments
    return make_event(
        event_id,
        "assistant",
        fields.pop("content", None),
        toolCalls=[{"id": call_id, "type": "function", "function": function}],
        **fields,
    )


def resource_part(**resource: Any) -> dict[str, Any]:
    """Wire-shaped resource content part."""
    return {"type": "resource", "resource": resource}


def stream_item(event_id: str, role: str, content: Any = None, **fields: Any) -> dict[str, Any]:
    """Wire-shaped provider stream item."""
    return {"message": {"id": event_id, "role": role, "content": content, **fields}}


async def async_iter(items):
    """Convert a list to an async iterator."""
    for item in items:
        yield item
