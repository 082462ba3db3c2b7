"""Resource prefetcher: resolve and inline resource references up front.

Every resource reference in the input messages is fetched before the
provider stream opens, so the agent's context is complete for the whole
turn. Each distinct ``(server_key, uri)`` pair is fetched exactly once
per invocation; the results live in a ResourceCache that is discarded
with the invocation.

No retries or timeouts happen here. Callers that need them wrap their
fetchers.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable, Mapping
from typing import Any

from agentstream.exceptions import ResourceFetchError, ResourceResolutionError
from agentstream.streaming.events import ContentPart, Event, Resource, ResourceFetchResult

logger = logging.getLogger(__name__)

ResourceFetcher = Callable[[str], Awaitable[ResourceFetchResult | Mapping[str, Any]]]
ResourceFetcherMap = Mapping[str, ResourceFetcher]
ResourceKey = tuple[str, str]


def extract_server_key(uri: str | None) -> str:
    """Get the server key from a resource URI (the prefix before ':').

    Raises:
        ResourceResolutionError: If the URI has no server key.
    """
    if not uri or ":" not in uri:
        raise ResourceResolutionError(f"No server key found in resource: {uri}", uri=uri)
    server_key = uri.split(":", 1)[0]
    if not server_key:
        raise ResourceResolutionError(f"No server key found in resource: {uri}", uri=uri)
    return server_key


def is_resource_part(part: ContentPart) -> bool:
    return part.type == "resource" and part.resource is not None


def is_resource_reference(part: ContentPart) -> bool:
    """True for resource parts that point at a URI and carry no body yet."""
    return is_resource_part(part) and bool(part.resource.uri) and not part.resource.has_content


def extract_resource_references(messages: Iterable[Event]) -> list[ContentPart]:
    """Collect unresolved resource parts from messages, in order."""
    references: list[ContentPart] = []
    for message in messages:
        if isinstance(message.content, list):
            references.extend(part for part in message.content if is_resource_reference(part))
    return references


class ResourceCache:
    """Fetched resource bodies for one loop invocation.

    Entries are written once by ``fill`` and never replaced.
    """

    def __init__(self) -> None:
        self._entries: dict[ResourceKey, ResourceFetchResult] = {}

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: ResourceKey) -> ResourceFetchResult | None:
        return self._entries.get(key)

    async def fill(self, keys: Iterable[ResourceKey], fetchers: ResourceFetcherMap) -> None:
        """Fetch every key not yet cached, concurrently, once each.

        Raises:
            ResourceResolutionError: If a server key has no fetcher. Raised
                before any fetch starts.
            ResourceFetchError: If a fetcher fails. Other in-flight fetches
                are cancelled.
        """
        missing: list[ResourceKey] = []
        for key in keys:
            if key in self._entries or key in missing:
                continue
            server_key, uri = key
            if server_key not in fetchers:
                raise ResourceResolutionError(
                    f"No fetcher available for resource with serverKey: {server_key}",
                    server_key=server_key,
                    uri=uri,
                )
            missing.append(key)

        if not missing:
            return

        tasks = [asyncio.ensure_future(self._fetch_one(key, fetchers[key[0]])) for key in missing]
        try:
            results = await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            raise

        for key, result in zip(missing, results, strict=True):
            self._entries[key] = result

    @staticmethod
    async def _fetch_one(key: ResourceKey, fetcher: ResourceFetcher) -> ResourceFetchResult:
        server_key, uri = key
        logger.debug("Fetching resource %s from server %s", uri, server_key)
        try:
            raw = await fetcher(uri)
        except Exception as e:
            raise ResourceFetchError(
                f"Failed to fetch resource {uri} from server {server_key}: {e}",
                server_key=server_key,
                uri=uri,
            ) from e
        if isinstance(raw, ResourceFetchResult):
            return raw
        return ResourceFetchResult.model_validate(raw)


def _inline_part(part: ContentPart, cache: ResourceCache) -> list[ContentPart]:
    if not is_resource_part(part):
        return [part]

    resource = part.resource
    if resource.has_content:
        return [part]
    if not resource.uri:
        logger.warning("Resource has no URI")
        return [part]

    result = cache.get((extract_server_key(resource.uri), resource.uri))
    if result is None:
        # fill() covers every reference, so this only happens if the
        # caller passed a cache filled for other messages.
        raise ResourceResolutionError(
            f"Resource was not prefetched: {resource.uri}",
            uri=resource.uri,
        )

    base = resource.model_dump(exclude_none=True)
    return [
        part.model_copy(
            update={"resource": Resource.model_validate(base | fetched.model_dump(exclude_none=True))}
        )
        for fetched in result.contents
    ]


def inline_resources(messages: Iterable[Event], cache: ResourceCache) -> list[Event]:
    """Return new messages with every resource reference replaced by its body.

    A fetch result with several contents expands into several resource
    parts; an empty result removes the reference.
    """
    inlined: list[Event] = []
    for message in messages:
        if not isinstance(message.content, list):
            inlined.append(message)
            continue
        parts: list[ContentPart] = []
        for part in message.content:
            parts.extend(_inline_part(part, cache))
        inlined.append(message.model_copy(update={"content": parts}))
    return inlined


async def prefetch_resources(
    messages: Iterable[Event | Mapping[str, Any]],
    fetchers: ResourceFetcherMap,
    *,
    cache: ResourceCache | None = None,
) -> list[Event]:
    """Fetch and inline all resource references in a batch of messages.

    Args:
        messages: Input messages (Event instances or wire-shaped mappings).
        fetchers: Map of server key to async fetcher, called with the full URI.
        cache: Optional cache to fill; a fresh one is used by default.

    Returns:
        New list of messages with resource bodies inlined. The input
        messages are not modified.

    Raises:
        ResourceResolutionError: Unknown server key or URI without one.
        ResourceFetchError: A fetcher failed.
    """
    events = [m if isinstance(m, Event) else Event.model_validate(m) for m in messages]
    cache = cache if cache is not None else ResourceCache()

    keys = [
        (extract_server_key(part.resource.uri), part.resource.uri)
        for part in extract_resource_references(events)
    ]
    await cache.fill(keys, fetchers)
    if keys:
        logger.info(
            "Prefetched %d resource(s) for %d reference(s)",
            len(cache),
            len(keys),
        )
    return inline_resources(events, cache)
