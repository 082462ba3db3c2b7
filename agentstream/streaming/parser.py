"""Tool-call extractor: surface tool-call metadata from provider events.

Pure functions. Only the first tool call of an assistant event is
surfaced, since the loop yields exactly one decision per event.
Malformed arguments never raise past this module; they are logged and
the request is omitted.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING

from agentstream.settings import get_settings
from agentstream.streaming.decisions import MessageRole, ToolCallRequest, ToolParameter
from agentstream.streaming.roles import map_role

if TYPE_CHECKING:
    from agentstream.streaming.events import Event, ToolCall

logger = logging.getLogger(__name__)


def _first_tool_call(event: Event) -> ToolCall | None:
    if map_role(event.role) is not MessageRole.ASSISTANT or not event.tool_calls:
        return None
    return event.tool_calls[0]


def _reject_constant(name: str) -> None:
    # NaN, Infinity and -Infinity are not valid JSON
    raise ValueError(f"Invalid JSON constant: {name}")


def _preview(raw: str) -> str:
    limit = get_settings().log_args_preview_chars
    return raw[:limit] if raw else "(empty)"


def extract_tool_call_id(event: Event) -> str | None:
    """Get the tool-call ID a decision should carry.

    Assistant events: ID of the first tool call, if any.
    Tool events: the ID of the call being answered.
    Anything else: None.
    """
    role = map_role(event.role)
    if role is MessageRole.ASSISTANT:
        tool_call = _first_tool_call(event)
        return tool_call.id if tool_call else None
    if role is MessageRole.TOOL:
        return event.tool_call_id
    return None


def extract_tool_call_request(event: Event) -> ToolCallRequest | None:
    """Parse the first tool call of an assistant event into a request.

    Arguments default to ``"{}"`` when absent or empty. Returns None
    (with a warning) when the call is not a function call, when the
    arguments are not valid JSON, or when they decode to something
    other than an object.

    Args:
        event: Provider event.

    Returns:
        ToolCallRequest with parameters in the order they appear in the
        arguments object, or None.
    """
    tool_call = _first_tool_call(event)
    if tool_call is None:
        return None

    tool_name = tool_call.function.name
    if tool_call.type != "function":
        logger.warning(
            "Skipping tool call '%s': unsupported tool call type '%s'",
            tool_name,
            tool_call.type,
        )
        return None

    raw_args = tool_call.function.arguments or "{}"
    try:
        args = json.loads(raw_args, parse_constant=_reject_constant)
    except (ValueError, RecursionError):
        logger.warning(
            "Tool call '%s' has unparseable arguments; omitting request. Raw args: %s",
            tool_name,
            _preview(raw_args),
        )
        return None

    if not isinstance(args, dict):
        logger.warning(
            "Tool call '%s' arguments are not a JSON object; omitting request. Raw args: %s",
            tool_name,
            _preview(raw_args),
        )
        return None

    return ToolCallRequest(
        tool_name=tool_name,
        parameters=[
            ToolParameter(parameter_name=name, parameter_value=value) for name, value in args.items()
        ],
    )
