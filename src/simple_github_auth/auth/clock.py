"""Time source for client config expiration.

Registry and service code take a ``Clock`` argument rather than reading the
system time, so one-time clients can be expired in tests by handing in a
fixed or advancing value.
"""

from __future__ import annotations

import time
from typing import Protocol, runtime_checkable


@runtime_checkable
class Clock(Protocol):
    """Anything callable that returns the current UNIX time in seconds."""

    def __call__(self) -> float: ...


def default_clock() -> float:
    return time.time()
