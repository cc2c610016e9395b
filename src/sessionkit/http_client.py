from __future__ import annotations
import asyncio
import errno
import logging
import socket
import time
from typing import Any, Callable, Dict, Optional

import httpx

from .config import SessionConfiguration
from .delegates import event_hooks
from .protocols import ProtocolTransport

log = logging.getLogger("sessionkit.http")

NETWORK_ACCESS_EXTENSION = "sessionkit.network_access"


# Errors that mean "no route to the network right now"; refused connections
# and unknown hosts fail immediately.
NO_NETWORK_ERRNOS = frozenset(
    code
    for code in (
        getattr(errno, "ENETUNREACH", None),
        getattr(errno, "ENETDOWN", None),
        getattr(errno, "EHOSTUNREACH", None),
        getattr(socket, "EAI_AGAIN", None),
    )
    if code is not None
)
NO_NETWORK_MESSAGES = (
    "network is unreachable",
    "network is down",
    "no route to host",
    "temporary failure in name resolution",
)


def is_offline_error(error: BaseException) -> bool:
    """True when a connect failure looks like missing connectivity."""
    seen = set()
    current: Optional[BaseException] = error
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        if isinstance(current, OSError) and current.errno in NO_NETWORK_ERRNOS:
            return True
        message = str(current).lower()
        if any(m in message for m in NO_NETWORK_MESSAGES):
            return True
        current = current.__cause__ or current.__context__
    return False


class ConnectivityTransport(httpx.AsyncBaseTransport):
    """Retries offline connect failures until the wait budget is spent.

    The budget is the resource timeout capped by ``connectivity_wait_limit``.
    """

    def __init__(self, inner: httpx.AsyncBaseTransport, configuration: SessionConfiguration) -> None:
        self._inner = inner
        self._budget = min(configuration.timeout_interval_for_resource, configuration.connectivity_wait_limit)
        self._interval = configuration.connectivity_retry_interval

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        deadline = time.monotonic() + self._budget
        attempt = 0
        while True:
            attempt += 1
            try:
                return await self._inner.handle_async_request(request)
            except httpx.ConnectError as e:
                if not is_offline_error(e) or time.monotonic() + self._interval > deadline:
                    raise
                log.info("waiting for connectivity to %s (attempt %d): %s", request.url.host, attempt, e)
                await asyncio.sleep(self._interval)

    async def aclose(self) -> None:
        await self._inner.aclose()


def build_transport(
    configuration: SessionConfiguration,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> httpx.AsyncBaseTransport:
    """Network transport, then connectivity waits, cache, and protocol classes on top."""
    base = transport or httpx.AsyncHTTPTransport(verify=configuration.verify_tls, http2=configuration.http2)
    if configuration.waits_for_connectivity:
        base = ConnectivityTransport(base, configuration)
    if configuration.url_cache is not None:
        base = configuration.url_cache.wrap(base)
    if configuration.protocol_classes:
        base = ProtocolTransport(configuration.protocol_classes, configuration, base)
    return base


def network_access(configuration: SessionConfiguration) -> Dict[str, bool]:
    return {
        "constrained": configuration.allows_constrained_network_access,
        "expensive": configuration.allows_expensive_network_access,
    }


class HttpClient:
    """Asynchronous HTTP client built from a resolved session configuration."""

    def __init__(
        self,
        configuration: SessionConfiguration,
        session_delegate: Callable[[], Optional[Any]] = lambda: None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._configuration = configuration
        access = network_access(configuration)

        async def tag_request(request: httpx.Request) -> None:
            request.extensions[NETWORK_ACCESS_EXTENSION] = dict(access)

        hooks = event_hooks(session_delegate)
        hooks["request"].insert(0, tag_request)
        self._client = httpx.AsyncClient(
            timeout=configuration.timeout_interval_for_request,
            follow_redirects=configuration.follow_redirects,
            headers=configuration.http_additional_headers or {},
            transport=build_transport(configuration, transport),
            event_hooks=hooks,
        )

    async def send(self, request: httpx.Request, stream: bool = False) -> httpx.Response:
        return await self._client.send(request, stream=stream)

    def prepare(self, request: httpx.Request) -> httpx.Request:
        """Copy of ``request`` with session headers and timeout applied; the original is left untouched."""
        headers = httpx.Headers(request.headers)
        for name, value in (self._configuration.http_additional_headers or {}).items():
            if name not in headers:
                headers[name] = value
        extensions = dict(request.extensions)
        extensions.setdefault("timeout", httpx.Timeout(self._configuration.timeout_interval_for_request).as_dict())
        prepared = httpx.Request(request.method, request.url, headers=headers, stream=request.stream, extensions=extensions)
        if isinstance(request.stream, httpx.ByteStream):
            prepared.read()
        return prepared

    async def aclose(self) -> None:
        await self._client.aclose()
