"""Collaborator contract for the AI relay.

The insight layer only calls these two coroutines; how the relay reaches a
model is not its concern.
"""

from abc import ABC, abstractmethod
from typing import List, Sequence

from api_specs.dtos.board import Card
from insight_layer.types import BatchInfo, Cluster, DuplicateResult


class ClusterRelay(ABC):
    @abstractmethod
    async def request_clusters(
        self,
        batch: Sequence[Card],
        existing_cluster_names: Sequence[str],
        batch_info: BatchInfo,
    ) -> List[Cluster]:
        """
        Ask the relay to cluster one batch of cards.

        Raises:
            CollaboratorError: non-2xx status, transport failure or a body
                that is not the expected JSON
        """

    @abstractmethod
    async def request_duplicates(
        self, new_card: Card, existing_cards: Sequence[Card]
    ) -> DuplicateResult:
        """
        Ask the relay which existing cards duplicate ``new_card``.

        Raises:
            CollaboratorError: same conditions as request_clusters
        """
