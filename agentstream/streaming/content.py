"""Flatten event content into the single message string of a decision."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from agentstream.streaming.events import ContentPart

DEFAULT_MIME_TYPE = "application/octet-stream"


def _part_mime_type(part: ContentPart) -> str:
    if part.mime_type:
        return part.mime_type
    if part.resource is not None and part.resource.mime_type:
        return part.resource.mime_type
    return DEFAULT_MIME_TYPE


def render_part(part: ContentPart) -> str:
    """Render one content part as text.

    Text parts (and resources with inline text) render as their text.
    Everything else becomes a ``[<type>: <mime>]`` placeholder so the
    consumer can tell non-text content existed.
    """
    if part.type == "text":
        return part.text or ""
    if part.type == "resource" and part.resource is not None and part.resource.text is not None:
        return part.resource.text
    return f"[{part.type}: {_part_mime_type(part)}]"


def flatten_content(content: str | list[ContentPart] | None) -> str:
    """Flatten event content to a single string, parts joined by newlines."""
    if content is None:
        return ""
    if isinstance(content, str):
        return content
    return "\n".join(render_part(part) for part in content)
