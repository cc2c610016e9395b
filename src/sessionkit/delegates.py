from __future__ import annotations
import logging
import weakref
from typing import Any, Callable, Optional

import httpx

log = logging.getLogger("sessionkit.delegates")


class SessionDelegate:
    """Observes every request/response passing through a session."""

    def session_will_send_request(self, request: httpx.Request) -> None:
        pass

    def session_did_receive_response(self, response: httpx.Response) -> None:
        """Called for every hop, redirects included."""

    def session_did_become_invalid(self, error: Optional[BaseException]) -> None:
        pass


class TaskDelegate:
    """Observes a single task: start, redirects, progress, completion."""

    def task_will_start(self, request: httpx.Request) -> None:
        pass

    def task_will_redirect(self, response: httpx.Response, new_request: httpx.Request) -> None:
        pass

    def task_did_receive_response(self, response: httpx.Response) -> None:
        pass

    def task_did_receive_data(self, received: int, expected: Optional[int]) -> None:
        """``expected`` is None when the server did not send Content-Length."""

    def task_did_complete(self, request: httpx.Request, error: Optional[BaseException]) -> None:
        pass


def weak_reference(delegate: Any) -> Callable[[], Optional[Any]]:
    """Non-owning handle; the caller keeps the delegate alive.

    Objects that cannot be weakly referenced (``__slots__`` without
    ``__weakref__``, most builtins) are held strongly instead.
    """
    if delegate is None:
        return lambda: None
    try:
        return weakref.ref(delegate)
    except TypeError:
        log.debug("%s does not support weak references; holding it strongly", type(delegate).__name__)
        return lambda: delegate


def notify(delegate: Optional[Any], hook: str, *args: Any) -> None:
    """Call ``hook`` on ``delegate`` if it has it; duck typing is enough."""
    if delegate is None:
        return
    fn = getattr(delegate, hook, None)
    if fn is None:
        return
    fn(*args)


def event_hooks(session_delegate: Callable[[], Optional[Any]]) -> dict:
    """httpx event hooks forwarding to a weakly held session delegate."""

    async def on_request(request: httpx.Request) -> None:
        notify(session_delegate(), "session_will_send_request", request)

    async def on_response(response: httpx.Response) -> None:
        notify(session_delegate(), "session_did_receive_response", response)

    return {"request": [on_request], "response": [on_response]}
