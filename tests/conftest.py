"""Shared fixtures: fake relay, fake clock, card factories."""

from typing import Callable, List, Optional, Sequence

import pytest

from api_specs.dtos.board import Card
from infra_layer.adapters.out.kv_store.memory_store import InMemoryKeyValueStore
from insight_layer.cache.request_cache import RequestCache
from insight_layer.errors import CollaboratorError
from insight_layer.relay.protocol import ClusterRelay
from insight_layer.types import (
    BatchInfo,
    Cluster,
    ClusterCard,
    DuplicateMatch,
    DuplicateResult,
)

START_TIME = 1_760_000_000.0


class FakeClock:
    def __init__(self, now: float = START_TIME):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_cards(count: int, prefix: str = "c") -> List[Card]:
    return [Card(id=f"{prefix}{i}", title=f"Card {prefix}{i}") for i in range(1, count + 1)]


def one_cluster_per_batch(batch, existing_names, batch_info) -> List[Cluster]:
    """Puts each batch into its own cluster named after the batch number."""
    return [
        Cluster(
            name=f"Batch {batch_info.current}",
            cards=[ClusterCard(id=c.id, title=c.title) for c in batch],
        )
    ]


class FakeRelay(ClusterRelay):
    def __init__(
        self,
        cluster_fn: Optional[Callable] = None,
        duplicates: Optional[Sequence[DuplicateMatch]] = None,
        fail_on_batch: Optional[int] = None,
        duplicate_error: Optional[Exception] = None,
    ):
        self.cluster_fn = cluster_fn or one_cluster_per_batch
        self.duplicates = list(duplicates or [])
        self.fail_on_batch = fail_on_batch
        self.duplicate_error = duplicate_error
        self.cluster_calls = []
        self.duplicate_calls = []

    async def request_clusters(self, batch, existing_cluster_names, batch_info: BatchInfo):
        self.cluster_calls.append(
            {
                "ids": [card.id for card in batch],
                "existing": list(existing_cluster_names),
                "batch_info": batch_info,
            }
        )
        if self.fail_on_batch is not None and batch_info.current == self.fail_on_batch:
            raise CollaboratorError("Failed to generate clusters for batch", status=500)
        return self.cluster_fn(batch, existing_cluster_names, batch_info)

    async def request_duplicates(self, new_card, existing_cards):
        self.duplicate_calls.append(
            {"new": new_card.id, "ids": [card.id for card in existing_cards]}
        )
        if self.duplicate_error is not None:
            raise self.duplicate_error
        return DuplicateResult(duplicates=tuple(self.duplicates))


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def cache(store, clock) -> RequestCache:
    return RequestCache(store=store, clock=clock)
