"""Durable key/value store contract.

Mirrors browser local-storage semantics: synchronous, string values,
capacity-bounded. Implementations live in
``infra_layer.adapters.out.kv_store``.
"""

from abc import ABC, abstractmethod
from typing import List, Optional


class KeyValueStore(ABC):
    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Return the stored value or None when absent."""

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store ``value``; may raise CacheWriteError when full."""

    @abstractmethod
    def remove(self, key: str) -> None:
        """Delete ``key``; a missing key is not an error."""

    @abstractmethod
    def keys(self) -> List[str]:
        """List every stored key."""
