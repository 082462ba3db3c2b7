"""Streaming decision loop.

Turns a provider's role-tagged event stream into validated message
decisions: resource prefetch, role narrowing, tool-call extraction, and
keyed throttling for consumers.
"""

from agentstream.streaming.consumer import decision_key, stream_to_sink
from agentstream.streaming.content import flatten_content
from agentstream.streaming.decisions import MessageDecision, MessageRole, ToolCallRequest, ToolParameter
from agentstream.streaming.events import ContentPart, Event, Resource, ResourceFetchResult, StreamItem, ToolCall
from agentstream.streaming.loop import AgentProvider, run_agent_loop, to_decision
from agentstream.streaming.parser import extract_tool_call_id, extract_tool_call_request
from agentstream.streaming.resources import ResourceCache, prefetch_resources
from agentstream.streaming.roles import map_role
from agentstream.streaming.throttle import KeyedThrottle, create_keyed_throttle

__all__ = [
    "AgentProvider",
    "ContentPart",
    "Event",
    "KeyedThrottle",
    "MessageDecision",
    "MessageRole",
    "Resource",
    "ResourceCache",
    "ResourceFetchResult",
    "StreamItem",
    "ToolCall",
    "ToolCallRequest",
    "ToolParameter",
    "create_keyed_throttle",
    "decision_key",
    "extract_tool_call_id",
    "extract_tool_call_request",
    "flatten_content",
    "map_role",
    "prefetch_resources",
    "run_agent_loop",
    "stream_to_sink",
    "to_decision",
]
