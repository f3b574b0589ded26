"""ClusterMerger - folds per-batch cluster results into one cluster set.

The relay names clusters; the merger never invents names. A cluster whose
name matches an earlier one (case-insensitively) is unioned into it, card ids
deduplicated with the first occurrence kept. Clusters with different names
are kept apart even when they share cards.
"""

from typing import Iterable, List, Optional

from common_utils.datetime_utils import to_timestamp_ms
from core.observation.logger import get_logger
from insight_layer.types import Cluster, ClusterSet, DisplayCluster

logger = get_logger(__name__)


class ClusterMerger:
    """Running accumulator for one clustering run."""

    def __init__(self, initial: Optional[Iterable[Cluster]] = None):
        self._accumulator = ClusterSet(initial)
        self._batches_merged = 0

    @property
    def clusters(self) -> ClusterSet:
        return self._accumulator

    @property
    def batches_merged(self) -> int:
        return self._batches_merged

    def existing_names(self) -> List[str]:
        """Cluster names forwarded to the relay as context for the next batch."""
        return self._accumulator.names

    def merge(self, batch_clusters: Iterable[Cluster]) -> ClusterSet:
        """Fold one batch result into the accumulator and return it.

        Merging the same batch twice leaves the accumulator unchanged.
        """
        reused = 0
        created = 0
        for cluster in batch_clusters:
            if self._accumulator.find(cluster.name) is not None:
                reused += 1
            else:
                created += 1
            self._accumulator.add(cluster)

        self._batches_merged += 1
        logger.debug(
            "Merged batch %d: %d reused cluster(s), %d new, %d total",
            self._batches_merged,
            reused,
            created,
            len(self._accumulator),
        )
        return self._accumulator

    def finalize(self, now: float) -> List[DisplayCluster]:
        """Emit display clusters stamped with one completion timestamp.

        Args:
            now: wall-clock epoch seconds at merge completion
        """
        created_at = to_timestamp_ms(now)
        return [
            DisplayCluster.from_cluster(cluster, created_at)
            for cluster in self._accumulator
        ]
