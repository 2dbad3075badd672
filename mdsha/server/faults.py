"""
Translation of admin tool error text into fault kinds.
"""

from enum import Enum
from typing import List, Tuple


class FaultKind(Enum):
    """Classified admin query faults."""
    TIMEOUT = "TIMEOUT"                     # Transient, retried once
    CONNECTION_RESET = "CONNECTION_RESET"   # Transient, retried once
    NOT_CONNECTED = "NOT_CONNECTED"         # Ambiguous, resolved from the process table
    UNKNOWN = "UNKNOWN"                     # Surfaced verbatim

    @property
    def transient(self) -> bool:
        return self in (FaultKind.TIMEOUT, FaultKind.CONNECTION_RESET)


# Known substrings of the admin tool's error output, checked in order.
# Matching is case-insensitive.
FAULT_PATTERNS: List[Tuple[str, FaultKind]] = [
    ("timed out", FaultKind.TIMEOUT),
    ("timeout", FaultKind.TIMEOUT),
    ("reset by peer", FaultKind.CONNECTION_RESET),
    ("broken pipe", FaultKind.CONNECTION_RESET),
    ("not connected", FaultKind.NOT_CONNECTED),
    ("connection refused", FaultKind.NOT_CONNECTED),
]


def classify_fault(text: str) -> FaultKind:
    """Map raw error text to a FaultKind, UNKNOWN when nothing matches."""
    lowered = (text or "").lower()
    for pattern, kind in FAULT_PATTERNS:
        if pattern in lowered:
            return kind
    return FaultKind.UNKNOWN
