"""
Fetch errors and results.

Service calls never surface upstream failures to the dashboard; they return a
FetchResult whose `source` says where the data came from, so callers (and
tests) can tell live numbers from default numbers.
"""

from dataclasses import dataclass
from typing import Any, Optional

LIVE      = "live"
CACHE     = "cache"
AGGREGATE = "aggregate"
FALLBACK  = "fallback"


class FetchError(Exception):
    """Raised when an upstream request fails or returns unusable data."""

    def __init__(self, path: str, message: str, status_code: Optional[int] = None):
        super().__init__(f"{path}: {message}")
        self.path = path
        self.message = message
        self.status_code = status_code


@dataclass
class FetchResult:
    data:   Any
    source: str = LIVE
    error:  Optional[Exception] = None

    @property
    def is_fallback(self) -> bool:
        return self.source == FALLBACK

    @property
    def ok(self) -> bool:
        return self.error is None
