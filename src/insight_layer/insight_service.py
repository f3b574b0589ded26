"""InsightService - wires the clustering and duplicate services together.

Both services share one RequestCache, so ``clear_cache`` resets everything
the board has memoized.
"""

from typing import Any, Iterable, Optional

import aiohttp

from core.observation.logger import get_logger
from insight_layer.cache.protocol import KeyValueStore
from insight_layer.cache.request_cache import RequestCache
from insight_layer.cluster_manager import ClusterManager, ClusterQuery
from insight_layer.config import InsightConfig
from insight_layer.duplicate_checker import DuplicateChecker
from insight_layer.relay.http_relay_client import HttpRelayClient
from insight_layer.relay.protocol import ClusterRelay
from insight_layer.types import ClusterAnalysis, DuplicateResult

logger = get_logger(__name__)


class InsightService:
    def __init__(
        self,
        relay: ClusterRelay,
        store: Optional[KeyValueStore] = None,
        config: Optional[InsightConfig] = None,
        cache: Optional[RequestCache] = None,
    ):
        self.config = config or InsightConfig()
        self.relay = relay
        self.cache = cache if cache is not None else RequestCache(
            store=store,
            namespace=self.config.cache_namespace,
            default_ttl=self.config.duplicate_ttl_seconds,
        )
        self.clusters = ClusterManager(relay, self.cache, self.config)
        self.duplicates = DuplicateChecker(relay, self.cache, self.config)

    @classmethod
    def from_env(
        cls,
        store: Optional[KeyValueStore] = None,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> "InsightService":
        config = InsightConfig.from_env()
        logger.info(
            "Insight service using relay %s (batch size %d)",
            config.relay_base_url,
            config.max_batch_size,
        )
        return cls(HttpRelayClient.from_config(config, session=session), store, config)

    async def generate_clusters(
        self, cards: Iterable[Any], force_refresh: bool = False
    ) -> ClusterAnalysis:
        return await self.clusters.generate_clusters(cards, force_refresh=force_refresh)

    async def check_for_duplicates(
        self, new_card: Any, existing_cards: Iterable[Any]
    ) -> DuplicateResult:
        return await self.duplicates.check_for_duplicates(new_card, existing_cards)

    def cluster_query(self) -> ClusterQuery:
        return ClusterQuery(self.clusters)

    def clear_cache(self) -> None:
        self.cache.clear()
