"""ClusterQuery - the state a board's cluster view reads.

Wraps ClusterManager through its Result path: a failed refresh leaves an
empty cluster list plus an error message, never an exception.
"""

from typing import Any, Iterable, List, Optional

from api_specs.dtos.board import Card
from core.observation.logger import get_logger
from insight_layer.cluster_manager.manager import ClusterManager
from insight_layer.result import Err
from insight_layer.types import ClusterAnalysis, DisplayCluster, coerce_cards

logger = get_logger(__name__)


class ClusterQuery:
    def __init__(self, manager: ClusterManager):
        self.manager = manager
        self.analysis: Optional[ClusterAnalysis] = None
        self.error: Optional[str] = None
        self.loading = False
        self.selected_cluster_id: Optional[str] = None

    @property
    def clusters(self) -> List[DisplayCluster]:
        return list(self.analysis.clusters) if self.analysis else []

    @property
    def stale(self) -> bool:
        return bool(self.analysis and self.analysis.stale)

    @property
    def refresh_recommended(self) -> bool:
        return self.stale

    async def refresh(self, cards: Iterable[Any], force: bool = False) -> List[DisplayCluster]:
        self.loading = True
        self.error = None
        try:
            result = await self.manager.try_generate_clusters(cards, force_refresh=force)
        finally:
            self.loading = False

        if isinstance(result, Err):
            logger.error("Failed to generate clusters: %s", result.message)
            self.analysis = None
            self.error = "Failed to generate clusters."
            self.selected_cluster_id = None
            return []

        self.analysis = result.value
        clusters = self.clusters
        self.selected_cluster_id = clusters[0].id if clusters else None
        return clusters

    async def maybe_auto_refresh(self, cards: Iterable[Any]) -> bool:
        """Force a refresh when the last result was stale; returns whether it ran."""
        if not self.stale:
            return False
        logger.info("Auto-refreshing stale clusters")
        await self.refresh(cards, force=True)
        return True

    def select(self, cluster_id: str) -> Optional[DisplayCluster]:
        cluster = self._find(cluster_id)
        if cluster is not None:
            self.selected_cluster_id = cluster.id
        return cluster

    def selected_cluster(self) -> Optional[DisplayCluster]:
        if self.selected_cluster_id is None:
            return None
        return self._find(self.selected_cluster_id)

    def cards_for_cluster(self, cluster_id: str, board_cards: Iterable[Any]) -> List[Card]:
        """Board cards belonging to ``cluster_id``, in board order."""
        cluster = self._find(cluster_id)
        if cluster is None:
            return []
        member_ids = set(cluster.card_ids)
        return [card for card in coerce_cards(board_cards) if card.id in member_ids]

    def _find(self, cluster_id: str) -> Optional[DisplayCluster]:
        for cluster in self.clusters:
            if cluster.id == cluster_id:
                return cluster
        return None
