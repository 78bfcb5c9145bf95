"""
ttlmemo Validation

Error types and argument coercion shared by the cache engine.

    InvalidArgument     bad TTL, operation key, or digest algorithm
    InvariantViolation  internal bookkeeping broken (programming error)

Everything raised from here is raised before the store mutates anything.

Copyright (c) 2026 Momentum. All rights reserved.
"""

from __future__ import annotations

import math
from datetime import timedelta
from numbers import Real
from typing import Any, Union


# =============================================================================
# ERROR TYPES
# =============================================================================

class ValidationError(Exception):
    """Base exception for validation failures."""

    def __init__(self, field: str, message: str, value: Any = None):
        self.field = field
        self.message = message
        self.value = value
        super().__init__(f"{field}: {message}")


class InvalidArgument(ValidationError, ValueError):
    """An argument passed to the cache is not acceptable."""
    pass


class InvariantViolation(Exception):
    """Cache bookkeeping invariant violated."""
    pass


Duration = Union[timedelta, int, float]


# =============================================================================
# COERCION
# =============================================================================

def coerce_ttl(ttl: Any) -> float:
    """
    Convert a TTL to a number of seconds.

    Accepts a ``datetime.timedelta`` or a finite real number of seconds.
    Booleans are rejected even though they are ints.

    Raises:
        InvalidArgument: If ttl is negative, non-finite, or of another type.
    """
    if isinstance(ttl, timedelta):
        seconds = ttl.total_seconds()
    elif isinstance(ttl, Real) and not isinstance(ttl, bool):
        seconds = float(ttl)
    else:
        raise InvalidArgument(
            "ttl",
            f"must be a duration (timedelta or seconds), got {type(ttl).__name__}",
            ttl,
        )

    if math.isnan(seconds) or math.isinf(seconds):
        raise InvalidArgument("ttl", "must be finite", ttl)
    if seconds < 0:
        raise InvalidArgument("ttl", f"cannot be negative: {ttl}", ttl)
    return seconds


def validate_operation(operation: Any) -> str:
    """Check that an operation key is a non-empty string."""
    if not isinstance(operation, str):
        raise InvalidArgument(
            "operation",
            f"Expected string, got {type(operation).__name__}",
            operation,
        )
    if not operation:
        raise InvalidArgument("operation", "cannot be empty", operation)
    return operation


__all__ = [
    "ValidationError",
    "InvalidArgument",
    "InvariantViolation",
    "Duration",
    "coerce_ttl",
    "validate_operation",
]
