"""Internal message decision types produced by the decision loop."""

from __future__ import annotations

from enum import StrEnum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class MessageRole(StrEnum):
    """Closed set of roles a decision can carry."""

    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"
    TOOL = "tool"


class ToolParameter(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    parameter_name: str
    parameter_value: Any = None


class ToolCallRequest(BaseModel):
    """Parsed tool invocation: tool name plus ordered parameters."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    tool_name: str
    parameters: list[ToolParameter] = Field(default_factory=list)

    def as_dict(self) -> dict[str, Any]:
        """Parameters as a name -> value mapping, in order."""
        return {p.parameter_name: p.parameter_value for p in self.parameters}


class MessageDecision(BaseModel):
    """One event rendered into the closed internal vocabulary.

    Ready to be appended to thread history or rendered by a UI. The
    component fields are always null and the status messages always
    empty; they exist so persistence and UI layers see a stable shape.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: str
    role: MessageRole
    parent_message_id: str | None = None
    message: str = ""
    component_name: Literal[None] = None
    props: Literal[None] = None
    component_state: Literal[None] = None
    status_message: Literal[""] = ""
    completion_status_message: Literal[""] = ""
    tool_call_request: ToolCallRequest | None = None
    tool_call_id: str | None = None
    reasoning: str | None = None

    @model_validator(mode="after")
    def _check_tool_fields(self) -> MessageDecision:
        if self.tool_call_request is not None and self.role is not MessageRole.ASSISTANT:
            raise ValueError("toolCallRequest is only valid on assistant decisions")
        if self.tool_call_id is not None and self.role not in (MessageRole.ASSISTANT, MessageRole.TOOL):
            raise ValueError("toolCallId is only valid on assistant or tool decisions")
        return self

    def to_wire(self) -> dict[str, Any]:
        """Dump in camelCase, omitting unset optional fields.

        The fixed component/status fields are always present.
        """
        data = self.model_dump(by_alias=True)
        for optional in ("parentMessageId", "toolCallRequest", "toolCallId", "reasoning"):
            if data[optional] is None:
                del data[optional]
        return data
