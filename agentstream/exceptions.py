"""agentstream exception hierarchy.

Base exceptions for the decision loop with correlation ID support.

Usage:
    from agentstream.exceptions import ResourceFetchError

    try:
        messages = await prefetch_resources(messages, fetchers)
    except ResourceFetchError as e:
        logger.error("Prefetch failed (%s): %s", e.correlation_id, e.uri)
"""

import uuid


class AgentStreamError(Exception):
    """Base exception for all agentstream errors.

    Carries a correlation_id for tracing errors across layers.
    """

    def __init__(self, message: str, *, correlation_id: str | None = None):
        self.correlation_id = correlation_id or str(uuid.uuid4())
        super().__init__(message)


class ResourceResolutionError(AgentStreamError):
    """A resource reference cannot be routed to a fetcher.

    Raised for URIs without a server key and for server keys that have
    no registered fetcher.
    """

    def __init__(
        self,
        message: str,
        *,
        server_key: str | None = None,
        uri: str | None = None,
        **kwargs,
    ):
        self.server_key = server_key
        self.uri = uri
        super().__init__(message, **kwargs)


class ResourceFetchError(AgentStreamError):
    """A resource fetcher failed. The original exception is the __cause__."""

    def __init__(self, message: str, *, server_key: str, uri: str, **kwargs):
        self.server_key = server_key
        self.uri = uri
        super().__init__(message, **kwargs)


class ConfigurationError(AgentStreamError):
    """Errors from application configuration."""

    pass
