from __future__ import annotations
from typing import Any, Dict, Optional, Protocol, Union, runtime_checkable

import httpx
from pydantic import BaseModel, Field, field_validator

from .errors import SessionError


@runtime_checkable
class Requestable(Protocol):
    """Something that can build a canonical request, or fail trying."""

    def build_request(self) -> httpx.Request:
        ...


class RequestDescriptor(BaseModel):
    """Declarative request description validated by pydantic."""

    method: str = "GET"
    url: str
    headers: Dict[str, str] = Field(default_factory=dict)
    params: Dict[str, str] = Field(default_factory=dict)
    json_body: Optional[Any] = None
    content: Optional[bytes] = None

    @field_validator("method")
    @classmethod
    def _upper(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("HTTP method must not be empty")
        return v.strip().upper()

    def build_request(self) -> httpx.Request:
        url = httpx.URL(self.url)
        if url.scheme not in ("http", "https") or not url.host:
            raise ValueError(f"Unsupported URL: {self.url!r}")
        if self.json_body is not None and self.content is not None:
            raise ValueError("Use either json_body or content, not both")
        return httpx.Request(
            self.method,
            url,
            headers=self.headers,
            params=self.params or None,
            json=self.json_body,
            content=self.content,
        )


RequestLike = Union[httpx.Request, Requestable]


def make_request(r: RequestLike) -> httpx.Request:
    """Run the build step of ``r``; any failure becomes ``SessionError.invalid_request``."""
    if isinstance(r, httpx.Request):
        return r
    try:
        request = r.build_request()
    except Exception as e:
        raise SessionError.invalid_request(e) from e
    if not isinstance(request, httpx.Request):
        raise SessionError.invalid_request(TypeError(f"build_request returned {type(request).__name__}"))
    return request
