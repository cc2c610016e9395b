from __future__ import annotations
from typing import Any, Iterable, List

from .models import CONFIGURATION_TYPES, Configuration


def configurations(*fragments: Any) -> List[Configuration]:
    """Flatten variants, lists of variants and ``None`` into one ordered list.

    Lets callers write conditional or optional fragments inline:

        configurations(
            Timeout.request(30),
            Disable.EXPENSIVE_NETWORK_ACCESS if on_cellular else None,
            [Headers(h) for h in extra],
        )
    """
    out: List[Configuration] = []
    _collect(fragments, out)
    return out


def _collect(fragments: Iterable[Any], out: List[Configuration]) -> None:
    for f in fragments:
        if f is None:
            continue
        if isinstance(f, CONFIGURATION_TYPES):
            out.append(f)
        elif isinstance(f, (str, bytes)) or not hasattr(f, "__iter__"):
            raise TypeError(f"Not a session configuration variant: {f!r}")
        else:
            _collect(f, out)
