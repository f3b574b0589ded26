from infra_layer.adapters.out.kv_store.memory_store import InMemoryKeyValueStore
from infra_layer.adapters.out.kv_store.json_file_store import JsonFileKeyValueStore
from infra_layer.adapters.out.kv_store.redis_store import RedisKeyValueStore

__all__ = ["InMemoryKeyValueStore", "JsonFileKeyValueStore", "RedisKeyValueStore"]
