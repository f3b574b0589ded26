"""Exception taxonomy for the insight layer.

- CollaboratorError: relay call failed (network, non-2xx, unparseable body).
  Fatal for clustering, swallowed by duplicate detection.
- CacheWriteError / CacheReadError: durable store trouble, never fatal.
- ValidationError: programming errors (bad batch size, malformed card).
"""

from typing import Optional


class InsightError(Exception):
    """Base class for insight layer errors."""


class CollaboratorError(InsightError):
    """The relay collaborator could not produce a usable response."""

    def __init__(
        self,
        message: str,
        endpoint: Optional[str] = None,
        status: Optional[int] = None,
    ):
        super().__init__(message)
        self.endpoint = endpoint
        self.status = status

    def __str__(self) -> str:
        base = super().__str__()
        if self.status is not None:
            return f"{base} (endpoint={self.endpoint}, status={self.status})"
        if self.endpoint is not None:
            return f"{base} (endpoint={self.endpoint})"
        return base


class ClusteringCancelledError(InsightError):
    """Clustering was cancelled between two batches."""

    def __init__(self, completed_batches: int, total_batches: int):
        super().__init__(
            f"Clustering cancelled after {completed_batches}/{total_batches} batches"
        )
        self.completed_batches = completed_batches
        self.total_batches = total_batches


class CacheWriteError(InsightError):
    """A durable cache entry could not be written."""


class StoreQuotaExceededError(CacheWriteError):
    """The durable store is full."""


class CacheReadError(InsightError):
    """A durable cache entry exists but cannot be decoded."""


class ValidationError(InsightError, ValueError):
    """Invalid input handed to the insight layer by its caller."""
