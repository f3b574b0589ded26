"""Cluster Manager - batched, cached clustering of board cards.

The relay clusters one batch at a time; ClusterManager plans the batches,
merges the results by cluster name and caches the merged set in memory and
in the board's durable slot.

Usage:
    from insight_layer.cache import RequestCache
    from insight_layer.cluster_manager import ClusterManager, ClusterQuery
    from insight_layer.config import InsightConfig
    from insight_layer.relay import HttpRelayClient

    config = InsightConfig.from_env()
    cache = RequestCache(store=store, namespace=config.cache_namespace)
    manager = ClusterManager(HttpRelayClient.from_config(config), cache, config)

    # Raises CollaboratorError when a batch fails
    analysis = await manager.generate_clusters(cards)

    # Board view state; failures become an error message
    view = ClusterQuery(manager)
    await view.refresh(cards)
"""

from insight_layer.cluster_manager.manager import ClusterManager
from insight_layer.cluster_manager.merger import ClusterMerger
from insight_layer.cluster_manager.query import ClusterQuery

__all__ = [
    "ClusterManager",
    "ClusterMerger",
    "ClusterQuery",
]
