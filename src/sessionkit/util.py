from __future__ import annotations
from typing import Dict, Iterable
from urllib.parse import urlparse


def ensure_scheme(u: str) -> str:
    """Ensure an explicit scheme is present."""
    return u if "://" in u else f"https://{u}"


def filename_from_url(u: str, fallback: str = "download") -> str:
    """Last path segment of a URL, usable as a local file name."""
    name = urlparse(ensure_scheme(u)).path.rstrip("/").rsplit("/", 1)[-1]
    return name or fallback


def parse_header_options(values: Iterable[str]) -> Dict[str, str]:
    """Turn ``Name: value`` strings into a header map."""
    headers: Dict[str, str] = {}
    for raw in values:
        name, sep, value = raw.partition(":")
        if not sep or not name.strip():
            raise ValueError(f"Header must look like 'Name: value', got {raw!r}")
        headers[name.strip()] = value.strip()
    return headers
