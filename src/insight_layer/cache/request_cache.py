"""RequestCache - two-tier cache shared by the clustering and duplicate services.

Tier 1 is an in-process mapping from request signature to CacheEntry with
lazy expiry: entries older than the TTL are ignored, never evicted on read.
Tier 2 is an optional durable KeyValueStore. Durable keys are scoped by a
fixed namespace ("<namespace>:<slot>"), not by request signature; the
clustering service keeps a single slot per board.

Durable failures never reach the caller: write errors are logged and skipped,
unreadable entries count as misses.
"""

import json
import math
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from core.observation.logger import get_logger
from insight_layer.cache.protocol import KeyValueStore
from insight_layer.config import CACHE_NAMESPACE, DUPLICATE_TTL_SECONDS
from insight_layer.errors import CacheReadError, CacheWriteError

logger = get_logger(__name__)


@dataclass
class CacheEntry:
    key: str
    payload: Any
    stored_at: float  # epoch seconds

    def age(self, now: float) -> float:
        return now - self.stored_at

    def is_fresh(self, now: float, ttl: float) -> bool:
        return self.age(now) < ttl


class RequestCache:
    """Explicit cache object owned by (and injected into) the services."""

    def __init__(
        self,
        store: Optional[KeyValueStore] = None,
        namespace: str = CACHE_NAMESPACE,
        default_ttl: float = DUPLICATE_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        self.store = store
        self.namespace = namespace
        self.default_ttl = default_ttl
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}

    def now(self) -> float:
        return self._clock()

    # ------------------------------------------------------------------
    # Tier 1: in-process
    # ------------------------------------------------------------------

    def get(self, key: str, ttl: Optional[float] = None) -> Optional[CacheEntry]:
        """Return the entry for ``key`` if it is younger than ``ttl``."""
        entry = self._entries.get(key)
        if entry is None:
            logger.debug("Memory cache miss: %s", _short(key))
            return None
        ttl = self.default_ttl if ttl is None else ttl
        if not entry.is_fresh(self.now(), ttl):
            logger.debug("Memory cache entry expired: %s", _short(key))
            return None
        logger.debug("Memory cache hit: %s", _short(key))
        return entry

    def set(
        self, key: str, payload: Any, stored_at: Optional[float] = None
    ) -> CacheEntry:
        """Store (or overwrite) ``payload`` under ``key``.

        ``stored_at`` keeps the original age when promoting a durable entry.
        """
        if stored_at is None:
            stored_at = self.now()
        entry = CacheEntry(key=key, payload=payload, stored_at=stored_at)
        self._entries[key] = entry
        return entry

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __bool__(self) -> bool:
        # An empty cache is still a cache
        return True

    # ------------------------------------------------------------------
    # Tier 2: durable
    # ------------------------------------------------------------------

    def durable_key(self, slot: str) -> str:
        return f"{self.namespace}:{slot}"

    def read_durable(self, slot: str) -> Optional[CacheEntry]:
        """Read a durable slot; missing or undecodable entries yield None."""
        if self.store is None:
            return None
        key = self.durable_key(slot)
        try:
            raw = self.store.get(key)
            if raw is None:
                logger.debug("Durable cache miss: %s", key)
                return None
            return self._decode(key, raw)
        except CacheReadError as e:
            logger.warning("Ignoring unreadable durable cache entry %s: %s", key, e)
            return None

    def write_durable(self, slot: str, payload: Any) -> bool:
        """Overwrite a durable slot; returns False if the write was skipped."""
        if self.store is None:
            return False
        key = self.durable_key(slot)
        try:
            try:
                raw = json.dumps(
                    {"storedAt": int(self.now() * 1000), "data": payload}
                )
            except (TypeError, ValueError) as e:
                raise CacheWriteError(f"payload is not JSON serializable: {e}") from e
            self.store.set(key, raw)
            logger.debug("Durable cache written: %s (%d bytes)", key, len(raw))
            return True
        except CacheWriteError as e:
            logger.warning("Skipping durable cache write for %s: %s", key, e)
            return False

    @staticmethod
    def _decode(key: str, raw: str) -> CacheEntry:
        try:
            envelope = json.loads(raw)
        except (TypeError, ValueError) as e:
            raise CacheReadError(f"invalid JSON: {e}") from e
        if not isinstance(envelope, dict) or "data" not in envelope:
            raise CacheReadError("missing 'data' field")
        stored_at_ms = envelope.get("storedAt")
        if (
            not isinstance(stored_at_ms, (int, float))
            or isinstance(stored_at_ms, bool)
            or not math.isfinite(stored_at_ms)
        ):
            raise CacheReadError("missing or invalid 'storedAt' field")
        return CacheEntry(key=key, payload=envelope["data"], stored_at=stored_at_ms / 1000.0)

    # ------------------------------------------------------------------
    # Invalidation
    # ------------------------------------------------------------------

    def clear(self) -> None:
        """Wipe tier 1 and every durable key in this namespace. Never raises."""
        self._entries.clear()
        if self.store is None:
            return
        prefix = f"{self.namespace}:"
        try:
            keys = [key for key in self.store.keys() if key.startswith(prefix)]
        except CacheReadError as e:
            logger.warning("Could not list durable cache keys: %s", e)
            return
        for key in keys:
            try:
                self.store.remove(key)
            except CacheWriteError as e:
                logger.warning("Could not remove durable cache key %s: %s", key, e)
        logger.info("Cache cleared (%d durable key(s) removed)", len(keys))


def _short(key: str, limit: int = 80) -> str:
    return key if len(key) <= limit else key[:limit] + "..."
