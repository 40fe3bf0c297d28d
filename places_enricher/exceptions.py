"""
Exception types raised across the enrichment pipeline.

Quota exhaustion and "not found" are normal outcomes and are reported through
RunStatus / LookupStatus instead of exceptions.
"""
from typing import Optional


class PlacesEnricherError(Exception):
    """Base class for all pipeline errors."""


class TransportError(PlacesEnricherError):
    """Network failure, timeout, non-200 status or undecodable body."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class ProviderRateLimitedError(PlacesEnricherError):
    """The Places service reported its own per-minute throttle (OVER_QUERY_LIMIT / 429)."""


class PersistenceError(PlacesEnricherError):
    """A state or output file could not be read or written. Always fatal to a run."""

    def __init__(self, path: str, message: str):
        super().__init__(f"{path}: {message}")
        self.path = path
