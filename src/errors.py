"""
Error taxonomy for SEALANE.

InputError is raised synchronously before any I/O. UpstreamRoutingError and
PersistenceError cross the I/O boundary and are mapped to user-facing messages
by the API layer. CacheError never escapes the cache module.
"""

from typing import Optional


class SealaneError(Exception):
    """Base class for all SEALANE domain errors."""


class InputError(SealaneError, ValueError):
    """Malformed coordinates, identical origin/destination, too few vertices."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.field = field

    def to_dict(self) -> dict:
        body = {"error": self.message}
        if self.field:
            body["field"] = self.field
        return body


class NeedMorePointsError(InputError):
    """Smoothing was requested on fewer than three vertices (user-facing no-op)."""

    def __init__(self, count: int):
        super().__init__(
            f"Need at least 3 points to smooth the curve (got {count}).",
            field="vertices",
        )
        self.count = count


class UpstreamRoutingError(SealaneError):
    """Routing backend unreachable or returned no path."""


class PersistenceError(SealaneError):
    """Segment version store write failed; the prior active version stays authoritative."""


class CacheError(SealaneError):
    """Cache layer failure. Always logged and swallowed by the caller."""
