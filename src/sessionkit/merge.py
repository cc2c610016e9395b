from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Sequence, Type, TypeVar

from .config import SessionConfiguration
from .models import (
    CONFIGURATION_TYPES,
    Cache,
    Configuration,
    Delegate,
    DelegateKind,
    Disable,
    Headers,
    Preset,
    ProtocolClasses,
    Timeout,
    TimeoutKind,
)

log = logging.getLogger("sessionkit.merge")

T = TypeVar("T")


@dataclass
class MergedConfiguration:
    """Result of folding a list of variants."""

    configuration: SessionConfiguration
    session_delegate: Optional[Any] = None
    task_delegate: Optional[Any] = None


def _of_type(configs: Sequence[Configuration], kind: Type[T]) -> List[T]:
    return [c for c in configs if isinstance(c, kind)]


def first_preset(configs: Sequence[Configuration]) -> Optional[Preset]:
    found = _of_type(configs, Preset)
    return found[0] if found else None


def first_cache(configs: Sequence[Configuration]) -> Optional[Any]:
    found = _of_type(configs, Cache)
    return found[0].url_cache if found else None


def first_headers(configs: Sequence[Configuration]) -> Optional[Dict[str, str]]:
    found = _of_type(configs, Headers)
    return dict(found[0].http_headers) if found else None


def first_protocol_classes(configs: Sequence[Configuration]) -> Optional[List[type]]:
    found = _of_type(configs, ProtocolClasses)
    return list(found[0].classes) if found else None


def first_timeout(configs: Sequence[Configuration], kind: TimeoutKind) -> Optional[float]:
    for t in _of_type(configs, Timeout):
        if t.kind is kind:
            return float(t.seconds)
    return None


def first_delegate(configs: Sequence[Configuration], kind: DelegateKind) -> Optional[Any]:
    for d in _of_type(configs, Delegate):
        if d.kind is kind:
            return d.delegate
    return None


def is_disabled(configs: Sequence[Configuration], flag: Disable) -> bool:
    return any(c is flag for c in _of_type(configs, Disable))


def merge_configurations(configs: Iterable[Configuration]) -> MergedConfiguration:
    """Fold variants into one configuration; the first variant of each category wins."""
    items = list(configs)
    for c in items:
        if not isinstance(c, CONFIGURATION_TYPES):
            raise TypeError(f"Not a session configuration variant: {c!r}")

    preset = first_preset(items)
    configuration = preset.configuration() if preset else SessionConfiguration.default()

    url_cache = first_cache(items)
    if url_cache is not None:
        configuration.url_cache = url_cache
    headers = first_headers(items)
    if headers is not None:
        configuration.http_additional_headers = headers
    classes = first_protocol_classes(items)
    if classes is not None:
        configuration.protocol_classes = classes

    request_timeout = first_timeout(items, TimeoutKind.REQUEST)
    if request_timeout is not None:
        configuration.timeout_interval_for_request = request_timeout
    resource_timeout = first_timeout(items, TimeoutKind.RESOURCE)
    if resource_timeout is not None:
        configuration.timeout_interval_for_resource = resource_timeout

    if is_disabled(items, Disable.CONSTRAINED_NETWORK_ACCESS):
        configuration.allows_constrained_network_access = False
    if is_disabled(items, Disable.EXPENSIVE_NETWORK_ACCESS):
        configuration.allows_expensive_network_access = False
    if is_disabled(items, Disable.WAITING_FOR_CONNECTIVITY):
        configuration.waits_for_connectivity = False

    merged = MergedConfiguration(
        configuration=configuration,
        session_delegate=first_delegate(items, DelegateKind.SESSION),
        task_delegate=first_delegate(items, DelegateKind.TASK),
    )
    log.debug("merged %d configuration variants: %s", len(items), configuration.as_dict())
    return merged
