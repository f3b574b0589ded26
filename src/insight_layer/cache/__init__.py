"""Request cache - in-process memo plus durable key/value tier.

Usage:
    from insight_layer.cache import RequestCache, generate_cache_key
    from infra_layer.adapters.out.kv_store.json_file_store import JsonFileKeyValueStore

    cache = RequestCache(store=JsonFileKeyValueStore(path))
    key = generate_cache_key("check-duplicates", payload)
    entry = cache.get(key, ttl=300)
"""

from insight_layer.cache.protocol import KeyValueStore
from insight_layer.cache.request_cache import CacheEntry, RequestCache
from insight_layer.cache.signature import (
    CHECK_DUPLICATES_ENDPOINT,
    GENERATE_CLUSTERS_ENDPOINT,
    cards_signature,
    generate_cache_key,
    stable_serialize,
)
from insight_layer.cache.staleness import Staleness, assess_staleness, compute_change_ratio

__all__ = [
    "KeyValueStore",
    "CacheEntry",
    "RequestCache",
    "CHECK_DUPLICATES_ENDPOINT",
    "GENERATE_CLUSTERS_ENDPOINT",
    "cards_signature",
    "generate_cache_key",
    "stable_serialize",
    "Staleness",
    "assess_staleness",
    "compute_change_ratio",
]
