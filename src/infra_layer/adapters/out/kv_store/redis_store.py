"""
Redis KeyValueStore

Shares the durable cache between processes (several board tabs or workers).
Writes are plain SET: last writer wins.
"""

from typing import List, Optional

import redis

from core.observation.logger import get_logger
from insight_layer.cache.protocol import KeyValueStore
from insight_layer.errors import CacheReadError, CacheWriteError

logger = get_logger(__name__)


class RedisKeyValueStore(KeyValueStore):
    def __init__(
        self,
        client: Optional[redis.Redis] = None,
        url: str = "redis://localhost:6379/0",
        expire_seconds: Optional[int] = None,
        scan_count: int = 500,
    ):
        """
        Args:
            client: Existing synchronous Redis client; created from url if None
            url: Redis URL used when no client is given
            expire_seconds: Optional Redis TTL applied on every set
            scan_count: SCAN batch hint used by keys()
        """
        self.client = client or redis.Redis.from_url(url, decode_responses=True)
        self.expire_seconds = expire_seconds
        self.scan_count = scan_count

    def get(self, key: str) -> Optional[str]:
        try:
            value = self.client.get(key)
        except redis.RedisError as e:
            raise CacheReadError(f"redis GET {key} failed: {e}") from e
        return _decode(value) if value is not None else None

    def set(self, key: str, value: str) -> None:
        try:
            self.client.set(key, value, ex=self.expire_seconds)
        except (redis.RedisError, UnicodeEncodeError) as e:
            raise CacheWriteError(f"redis SET {key} failed: {e}") from e

    def remove(self, key: str) -> None:
        try:
            self.client.delete(key)
        except redis.RedisError as e:
            raise CacheWriteError(f"redis DEL {key} failed: {e}") from e

    def keys(self) -> List[str]:
        try:
            return [_decode(k) for k in self.client.scan_iter(count=self.scan_count)]
        except redis.RedisError as e:
            raise CacheReadError(f"redis SCAN failed: {e}") from e


def _decode(value) -> str:
    if isinstance(value, bytes):
        return value.decode("utf-8")
    return value
