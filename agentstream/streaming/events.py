"""External event types consumed by the decision loop.

These mirror the provider's wire shape: camelCase on the wire, snake_case
attributes in Python. The role is deliberately an open string; narrowing
to the closed internal vocabulary happens in ``roles.map_role``.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

_WIRE_CONFIG = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Resource(BaseModel):
    """A resource reference or inlined resource body.

    A resource with a ``uri`` and neither ``text`` nor ``blob`` is an
    unresolved reference that must be prefetched.
    """

    model_config = ConfigDict(**_WIRE_CONFIG, extra="allow")

    uri: str | None = None
    name: str | None = None
    description: str | None = None
    mime_type: str | None = None
    text: str | None = None
    blob: str | None = None

    @property
    def has_content(self) -> bool:
        return self.text is not None or self.blob is not None


class ContentPart(BaseModel):
    """One typed part of a multi-part message content.

    Unknown part types are kept as-is (extra fields allowed) so they can
    still be surfaced downstream.
    """

    model_config = ConfigDict(**_WIRE_CONFIG, extra="allow")

    type: str
    text: str | None = None
    mime_type: str | None = None
    resource: Resource | None = None


class ToolCallFunction(BaseModel):
    model_config = _WIRE_CONFIG

    name: str
    arguments: str | None = None


class ToolCall(BaseModel):
    """A tool call attached to an assistant event."""

    model_config = _WIRE_CONFIG

    id: str
    type: str = "function"
    function: ToolCallFunction


class Event(BaseModel):
    """One unit of the raw provider stream.

    Attributes:
        id: Message ID assigned by the provider.
        role: Open-ended role string (user, assistant, system, tool, ...).
        content: Plain text, ordered content parts, or None.
        tool_calls: Tool calls (assistant events only).
        tool_call_id: The call being answered (tool events only).
        parent_message_id: Optional parent message.
        reasoning: Optional model reasoning text.
    """

    model_config = ConfigDict(**_WIRE_CONFIG, extra="ignore")

    id: str
    role: str
    content: str | list[ContentPart] | None = None
    tool_calls: list[ToolCall] | None = None
    tool_call_id: str | None = None
    parent_message_id: str | None = None
    reasoning: str | None = None


class StreamItem(BaseModel):
    """Wrapper object emitted by the provider stream."""

    model_config = ConfigDict(extra="ignore")

    message: Event


class ResourceContents(BaseModel):
    """One body returned by a resource fetcher."""

    model_config = ConfigDict(**_WIRE_CONFIG, extra="allow")

    uri: str | None = None
    mime_type: str | None = None
    text: str | None = None
    blob: str | None = None


class ResourceFetchResult(BaseModel):
    """Return value of a resource fetcher."""

    contents: list[ResourceContents] = Field(default_factory=list)


def to_wire(event: Event) -> dict[str, Any]:
    """Dump an event in its camelCase wire shape, omitting unset fields."""
    return event.model_dump(by_alias=True, exclude_none=True)
