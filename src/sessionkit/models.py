from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Mapping, NamedTuple, Optional, Protocol, Union, runtime_checkable

import httpx
from pydantic import BaseModel, Field

from .config import SessionConfiguration


# ---------- Configuration variants ----------


@runtime_checkable
class URLCache(Protocol):
    """Anything that can put a caching layer in front of a transport."""

    def wrap(self, transport: httpx.AsyncBaseTransport) -> httpx.AsyncBaseTransport:
        ...


@dataclass(frozen=True)
class Cache:
    """Replaces the cache of the base configuration."""

    url_cache: URLCache


class DelegateKind(str, Enum):
    SESSION = "session"
    TASK = "task"


@dataclass(frozen=True)
class Delegate:
    """Session-wide or per-task observer."""

    kind: DelegateKind
    delegate: Any

    @classmethod
    def session(cls, delegate: Any) -> Delegate:
        return cls(DelegateKind.SESSION, delegate)

    @classmethod
    def task(cls, delegate: Any) -> Delegate:
        return cls(DelegateKind.TASK, delegate)


class Disable(str, Enum):
    """Turns off a behavior that is on by default."""

    # Do not connect over an interface the user flagged as low-data.
    CONSTRAINED_NETWORK_ACCESS = "constrained_network_access"
    # Do not connect over an interface considered expensive (cellular, hotspot).
    EXPENSIVE_NETWORK_ACCESS = "expensive_network_access"
    # Fail immediately instead of waiting for connectivity up to the resource timeout.
    WAITING_FOR_CONNECTIVITY = "waiting_for_connectivity"


@dataclass(frozen=True)
class Headers:
    """Extra headers sent with every request of the session."""

    http_headers: Mapping[str, str]


class PresetKind(str, Enum):
    BACKGROUND = "background"
    CUSTOM = "custom"
    EPHEMERAL = "ephemeral"


@dataclass(frozen=True)
class Preset:
    """Base configuration the other variants are applied on top of."""

    kind: PresetKind
    identifier: Optional[str] = None
    shared_container_identifier: Optional[str] = None
    is_discretionary: bool = True
    base: Optional[SessionConfiguration] = field(default=None, compare=False)

    @classmethod
    def background(
        cls,
        identifier: str,
        shared_container_identifier: Optional[str] = None,
        is_discretionary: bool = True,
    ) -> Preset:
        return cls(
            PresetKind.BACKGROUND,
            identifier=identifier,
            shared_container_identifier=shared_container_identifier,
            is_discretionary=is_discretionary,
        )

    @classmethod
    def custom(cls, configuration: SessionConfiguration) -> Preset:
        return cls(PresetKind.CUSTOM, base=configuration)

    @classmethod
    def ephemeral(cls) -> Preset:
        return cls(PresetKind.EPHEMERAL)

    def configuration(self) -> SessionConfiguration:
        if self.kind is PresetKind.BACKGROUND:
            return SessionConfiguration.background(
                self.identifier or "",
                shared_container_identifier=self.shared_container_identifier,
                is_discretionary=self.is_discretionary,
            )
        if self.kind is PresetKind.CUSTOM:
            if self.base is None:
                return SessionConfiguration.default()
            return self.base.copy()
        return SessionConfiguration.ephemeral()


@dataclass(frozen=True)
class ProtocolClasses:
    """Extra request handlers, consulted in order before the network."""

    classes: List[type]


class TimeoutKind(str, Enum):
    REQUEST = "request"
    RESOURCE = "resource"


@dataclass(frozen=True)
class Timeout:
    """Per-session timeouts in seconds."""

    kind: TimeoutKind
    seconds: float

    @classmethod
    def request(cls, seconds: float) -> Timeout:
        """Time to wait for data; resets whenever data arrives."""
        return cls(TimeoutKind.REQUEST, seconds)

    @classmethod
    def resource(cls, seconds: float) -> Timeout:
        """Time allowed for the whole transfer, connectivity waits included."""
        return cls(TimeoutKind.RESOURCE, seconds)


Configuration = Union[Cache, Delegate, Disable, Headers, Preset, ProtocolClasses, Timeout]
CONFIGURATION_TYPES = (Cache, Delegate, Disable, Headers, Preset, ProtocolClasses, Timeout)


# ---------- Responses ----------


class DataResponse(NamedTuple):
    data: bytes
    response: httpx.Response


class DownloadResponse(NamedTuple):
    location: Path
    response: httpx.Response


UploadResponse = DataResponse


@dataclass
class LoadedResponse:
    """A data response together with the request that produced it."""

    request: httpx.Request
    result: DataResponse


class ResumeData(BaseModel):
    """Everything needed to continue an interrupted download."""

    url: str
    method: str = "GET"
    headers: Dict[str, str] = Field(default_factory=dict)
    partial_path: str
    received: int = 0
    validator: Optional[str] = None

    def to_bytes(self) -> bytes:
        return self.model_dump_json().encode("utf-8")

    @classmethod
    def from_bytes(cls, raw: bytes) -> ResumeData:
        return cls.model_validate_json(raw)
