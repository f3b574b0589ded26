"""
In-memory KeyValueStore

Process-local store with an optional byte quota, handy for tests and for
running the insight layer without persistence.
"""

from typing import Dict, List, Optional

from core.observation.logger import get_logger
from insight_layer.cache.protocol import KeyValueStore
from insight_layer.errors import CacheWriteError, StoreQuotaExceededError

logger = get_logger(__name__)


class InMemoryKeyValueStore(KeyValueStore):
    """
    Dict-backed store.

    quota_bytes bounds the total size of keys plus values (UTF-8), like a
    browser's local storage quota; exceeding it raises
    StoreQuotaExceededError and leaves the store unchanged.
    """

    def __init__(self, quota_bytes: Optional[int] = None):
        self.quota_bytes = quota_bytes
        self._data: Dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        if self.quota_bytes is not None:
            try:
                current = self.used_bytes() - self._entry_size(key, self._data.get(key))
                needed = current + self._entry_size(key, value)
            except UnicodeEncodeError as e:
                raise CacheWriteError(f"cannot size {key}: {e}") from e
            if needed > self.quota_bytes:
                raise StoreQuotaExceededError(
                    f"storing {key} needs {needed} bytes, quota is {self.quota_bytes}"
                )
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> List[str]:
        return list(self._data.keys())

    def used_bytes(self) -> int:
        return sum(self._entry_size(k, v) for k, v in self._data.items())

    @staticmethod
    def _entry_size(key: str, value: Optional[str]) -> int:
        if value is None:
            return 0
        return len(key.encode("utf-8")) + len(value.encode("utf-8"))
