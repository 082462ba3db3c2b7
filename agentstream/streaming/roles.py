"""Role mapper: narrow the provider's open role vocabulary.

The provider may introduce event kinds (``developer``, ``activity``, ...)
that have no message representation. Those map to None and the loop
skips them; this is filtering, not validation.
"""

from __future__ import annotations

from agentstream.streaming.decisions import MessageRole

_ROLE_MAP: dict[str, MessageRole] = {role.value: role for role in MessageRole}


def map_role(external_role: str | None) -> MessageRole | None:
    """Map an external role string onto the closed role enum.

    Args:
        external_role: Role string from the provider event.

    Returns:
        The matching MessageRole, or None if the role is not representable.
    """
    if not isinstance(external_role, str):
        return None
    return _ROLE_MAP.get(external_role)
