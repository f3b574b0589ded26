"""Configuration for the clustering and duplicate-detection client layer.

Every knob has a default; ``InsightConfig.from_env()`` lets deployments
override them without code changes:

    KANBAN_AI_BACKEND_URL (or REACT_APP_BACKEND_URL)
    KANBAN_AI_MAX_BATCH_SIZE
    KANBAN_AI_DUPLICATE_TTL_SECONDS
    KANBAN_AI_CLUSTER_TTL_SECONDS
    KANBAN_AI_DURABLE_EXPIRY_SECONDS
    KANBAN_AI_STALE_CHANGE_RATIO
    KANBAN_AI_CACHE_NAMESPACE
    KANBAN_AI_BOARD_ID
    KANBAN_AI_REQUEST_TIMEOUT_SECONDS
    KANBAN_AI_MAX_RETRIES
"""

import os
from dataclasses import dataclass

from insight_layer.errors import ValidationError

MAX_BATCH_SIZE = 50
DUPLICATE_TTL_SECONDS = 5 * 60
CLUSTER_TTL_SECONDS = 14 * 24 * 60 * 60
DURABLE_EXPIRY_SECONDS = 24 * 60 * 60
STALE_CHANGE_RATIO = 0.2
CACHE_NAMESPACE = "kanban-ai-cache"
DEFAULT_BACKEND_URL = "http://localhost:3100"


@dataclass
class InsightConfig:
    max_batch_size: int = MAX_BATCH_SIZE
    duplicate_ttl_seconds: float = DUPLICATE_TTL_SECONDS
    cluster_ttl_seconds: float = CLUSTER_TTL_SECONDS
    durable_expiry_seconds: float = DURABLE_EXPIRY_SECONDS
    stale_change_ratio: float = STALE_CHANGE_RATIO
    cache_namespace: str = CACHE_NAMESPACE
    board_id: str = "default"
    relay_base_url: str = DEFAULT_BACKEND_URL
    request_timeout_seconds: float = 600
    max_retries: int = 1

    def __post_init__(self):
        if not isinstance(self.max_batch_size, int) or self.max_batch_size <= 0:
            raise ValidationError(
                f"max_batch_size must be a positive int, got {self.max_batch_size!r}"
            )
        for name in (
            "duplicate_ttl_seconds",
            "cluster_ttl_seconds",
            "durable_expiry_seconds",
            "request_timeout_seconds",
        ):
            if getattr(self, name) <= 0:
                raise ValidationError(f"{name} must be positive")
        if not 0 < self.stale_change_ratio <= 1:
            raise ValidationError(
                f"stale_change_ratio must be in (0, 1], got {self.stale_change_ratio}"
            )
        if not self.cache_namespace:
            raise ValidationError("cache_namespace must not be empty")
        if self.max_retries < 1:
            raise ValidationError("max_retries must be >= 1")
        self.relay_base_url = self.relay_base_url.rstrip("/")

    @property
    def cluster_slot(self) -> str:
        """Durable slot (inside the cache namespace) holding this board's clusters."""
        return f"clusters:{self.board_id}"

    @classmethod
    def from_env(cls) -> "InsightConfig":
        return cls(
            max_batch_size=_env_int("KANBAN_AI_MAX_BATCH_SIZE", MAX_BATCH_SIZE),
            duplicate_ttl_seconds=_env_float(
                "KANBAN_AI_DUPLICATE_TTL_SECONDS", DUPLICATE_TTL_SECONDS
            ),
            cluster_ttl_seconds=_env_float(
                "KANBAN_AI_CLUSTER_TTL_SECONDS", CLUSTER_TTL_SECONDS
            ),
            durable_expiry_seconds=_env_float(
                "KANBAN_AI_DURABLE_EXPIRY_SECONDS", DURABLE_EXPIRY_SECONDS
            ),
            stale_change_ratio=_env_float(
                "KANBAN_AI_STALE_CHANGE_RATIO", STALE_CHANGE_RATIO
            ),
            cache_namespace=os.getenv("KANBAN_AI_CACHE_NAMESPACE", CACHE_NAMESPACE),
            board_id=os.getenv("KANBAN_AI_BOARD_ID", "default"),
            relay_base_url=os.getenv(
                "KANBAN_AI_BACKEND_URL",
                os.getenv("REACT_APP_BACKEND_URL", DEFAULT_BACKEND_URL),
            ),
            request_timeout_seconds=_env_float("KANBAN_AI_REQUEST_TIMEOUT_SECONDS", 600),
            max_retries=_env_int("KANBAN_AI_MAX_RETRIES", 1),
        )


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ValidationError(f"{name} must be an integer, got {raw!r}") from e


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ValidationError(f"{name} must be a number, got {raw!r}") from e
