"""
Base Contracts and Shared Types

These are the foundational types used across the layout engine.
All types here are IMMUTABLE and represent pure data.

BOUNDARY ENFORCEMENT:
=====================
- This module is READ-ONLY from all other modules
- Types here carry no layout behaviour
- All types are frozen dataclasses for immutability guarantee
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Hashable, Optional, Tuple
from enum import Enum, auto


# Opaque event identifier: integers, strings, UUIDs, anything hashable.
EventId = Hashable


# =============================================================================
# ERROR STATES (Explicit, never silent)
# =============================================================================

class ErrorCode(Enum):
    """
    Explicit diagnostic codes.

    The layout engine never fails on bad input; it degrades to a safe
    default and reports what it degraded with one of these codes.
    """
    # Analysis diagnostics
    UNRESOLVED_PARENT_REFERENCE = auto()
    PARTIAL_PARENT_REFERENCE = auto()

    # Mapping errors
    MALFORMED_RECORD = auto()
    INVALID_TIMESTAMP = auto()
    DUPLICATE_EVENT_ID = auto()


@dataclass(frozen=True)
class Error:
    """
    Immutable error representation with full context.
    Errors are data, not exceptions - they can be stored and compared.

    `timestamp` is the time of the offending event, never the wall clock,
    so two analyses of the same input produce equal diagnostics.
    """
    code: ErrorCode
    message: str
    timestamp: Optional[datetime] = None
    context: Tuple[Tuple[str, str], ...] = field(default_factory=tuple)

    def with_context(self, key: str, value: str) -> Error:
        """Return new Error with additional context (immutable)."""
        return Error(
            code=self.code,
            message=self.message,
            timestamp=self.timestamp,
            context=self.context + ((key, value),)
        )

    def context_value(self, key: str) -> Optional[str]:
        for k, v in self.context:
            if k == key:
                return v
        return None


@dataclass(frozen=True)
class Result:
    """
    Generic result type for operations that can fail.
    Either contains a value OR an error, never both.
    """
    value: Optional[object] = None
    error: Optional[Error] = None

    @property
    def is_success(self) -> bool:
        return self.error is None

    @property
    def is_failure(self) -> bool:
        return self.error is not None

    @staticmethod
    def success(value: object) -> Result:
        return Result(value=value, error=None)

    @staticmethod
    def failure(error: Error) -> Result:
        return Result(value=None, error=error)


# =============================================================================
# TEMPORAL HELPERS
# =============================================================================

def ensure_utc(value: datetime) -> datetime:
    """Naive datetimes are taken to be UTC; aware ones are left alone."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def parse_timestamp(raw: object) -> datetime:
    """
    Parse a datetime, ISO-8601 string or epoch seconds into an aware datetime.

    Raises ValueError for anything else.
    """
    if isinstance(raw, datetime):
        return ensure_utc(raw)
    if isinstance(raw, bool):
        raise ValueError(f"not a timestamp: {raw!r}")
    if isinstance(raw, (int, float)):
        return datetime.fromtimestamp(raw, tz=timezone.utc)
    if isinstance(raw, str) and raw.strip():
        dt = datetime.fromisoformat(raw.strip().replace('Z', '+00:00'))
        return ensure_utc(dt)
    raise ValueError(f"not a timestamp: {raw!r}")
