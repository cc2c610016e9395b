from __future__ import annotations
import logging
from typing import Sequence

import httpx

from .config import SessionConfiguration

log = logging.getLogger("sessionkit.protocols")


class URLProtocol:
    """Base class for request handlers installed through ``ProtocolClasses``.

    Subclasses decide per request whether they take over (``can_handle``) and
    produce the response themselves (``start_loading``). Requests no class
    claims go to the network.
    """

    def __init__(self, request: httpx.Request, configuration: SessionConfiguration) -> None:
        self.request = request
        self.configuration = configuration

    @classmethod
    def can_handle(cls, request: httpx.Request) -> bool:
        return False

    async def start_loading(self) -> httpx.Response:
        raise NotImplementedError


class ProtocolTransport(httpx.AsyncBaseTransport):
    """Dispatches to the first protocol class that accepts the request."""

    def __init__(
        self,
        classes: Sequence[type],
        configuration: SessionConfiguration,
        fallback: httpx.AsyncBaseTransport,
    ) -> None:
        self._classes = list(classes)
        self._configuration = configuration
        self._fallback = fallback

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        for cls in self._classes:
            can_handle = getattr(cls, "can_handle", None)
            if can_handle is not None and can_handle(request):
                log.debug("%s handles %s %s", cls.__name__, request.method, request.url)
                return await cls(request, self._configuration).start_loading()
        return await self._fallback.handle_async_request(request)

    async def aclose(self) -> None:
        await self._fallback.aclose()
