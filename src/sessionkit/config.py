from __future__ import annotations
import copy as _copy
from dataclasses import dataclass, fields
from typing import Any, Dict, List, Optional


class ConfigDefaults:
    """Values used when no variant overrides them."""

    timeout_interval_for_request: float = 60.0
    timeout_interval_for_resource: float = 604_800.0  # 7 days


@dataclass
class SessionConfiguration:
    """Mutable session configuration; the merge step writes into a fresh one."""

    disposition: str = "default"
    identifier: Optional[str] = None
    shared_container_identifier: Optional[str] = None
    is_discretionary: bool = False
    url_cache: Optional[Any] = None
    allows_constrained_network_access: bool = True
    allows_expensive_network_access: bool = True
    waits_for_connectivity: bool = True
    http_additional_headers: Optional[Dict[str, str]] = None
    protocol_classes: Optional[List[type]] = None
    timeout_interval_for_request: float = ConfigDefaults.timeout_interval_for_request
    timeout_interval_for_resource: float = ConfigDefaults.timeout_interval_for_resource
    verify_tls: bool = True
    follow_redirects: bool = True
    http2: bool = False
    connectivity_retry_interval: float = 1.0
    connectivity_wait_limit: float = 300.0

    @classmethod
    def default(cls) -> SessionConfiguration:
        return cls()

    @classmethod
    def ephemeral(cls) -> SessionConfiguration:
        """In-memory only: nothing the session keeps is written to disk."""
        return cls(disposition="ephemeral")

    @classmethod
    def background(
        cls,
        identifier: str,
        shared_container_identifier: Optional[str] = None,
        is_discretionary: bool = True,
    ) -> SessionConfiguration:
        return cls(
            disposition="background",
            identifier=identifier,
            shared_container_identifier=shared_container_identifier,
            is_discretionary=is_discretionary,
        )

    def copy(self) -> SessionConfiguration:
        # url_cache stays shared; only the containers are duplicated.
        clone = _copy.copy(self)
        if self.http_additional_headers is not None:
            clone.http_additional_headers = dict(self.http_additional_headers)
        if self.protocol_classes is not None:
            clone.protocol_classes = list(self.protocol_classes)
        return clone

    def as_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if f.name == "protocol_classes" and value is not None:
                value = [c.__name__ for c in value]
            elif f.name == "url_cache" and value is not None:
                value = type(value).__name__
            out[f.name] = value
        return out
