from __future__ import annotations
from typing import Any, Callable, List, Optional, Tuple

import httpx
import pytest

from sessionkit.protocols import URLProtocol

MOCK_URL = "https://example.com/resource"


class MockURLProtocol(URLProtocol):
    """Answers every request with whatever ``request_handler`` returns."""

    request_handler: Optional[Callable[[httpx.Request], httpx.Response]] = None

    @classmethod
    def can_handle(cls, request: httpx.Request) -> bool:
        return True

    async def start_loading(self) -> httpx.Response:
        handler = type(self).request_handler
        if handler is None:
            raise RuntimeError("Handler is unavailable.")
        return handler(self.request)


class RecordingTaskDelegate:
    def __init__(self) -> None:
        self.events: List[Tuple[str, Any]] = []

    def task_will_start(self, request: httpx.Request) -> None:
        self.events.append(("start", str(request.url)))

    def task_will_redirect(self, response: httpx.Response, new_request: httpx.Request) -> None:
        self.events.append(("redirect", str(new_request.url)))

    def task_did_receive_response(self, response: httpx.Response) -> None:
        self.events.append(("response", response.status_code))

    def task_did_receive_data(self, received: int, expected: Optional[int]) -> None:
        self.events.append(("data", (received, expected)))

    def task_did_complete(self, request: httpx.Request, error: Optional[BaseException]) -> None:
        self.events.append(("complete", error))

    def names(self) -> List[str]:
        return [name for name, _ in self.events]


class RecordingSessionDelegate:
    def __init__(self) -> None:
        self.requests: List[str] = []
        self.responses: List[int] = []
        self.invalidated = False

    def session_will_send_request(self, request: httpx.Request) -> None:
        self.requests.append(str(request.url))

    def session_did_receive_response(self, response: httpx.Response) -> None:
        self.responses.append(response.status_code)

    def session_did_become_invalid(self, error: Optional[BaseException]) -> None:
        self.invalidated = True


@pytest.fixture
def mock_protocol():
    MockURLProtocol.request_handler = lambda request: httpx.Response(200, content=b"Success")
    yield MockURLProtocol
    MockURLProtocol.request_handler = None


@pytest.fixture
def mock_request() -> httpx.Request:
    return httpx.Request("GET", MOCK_URL)


@pytest.fixture
def task_delegate() -> RecordingTaskDelegate:
    return RecordingTaskDelegate()


@pytest.fixture
def session_delegate() -> RecordingSessionDelegate:
    return RecordingSessionDelegate()
