"""ClusterManager - batched, cached clustering of board cards.

Design:
- Cards are split into fixed-size batches and sent to the relay one at a
  time; each request carries the cluster names merged so far, so batches
  cannot run in parallel.
- Results are merged by cluster name (see ClusterMerger).
- The merged set is memoized in-process (keyed by the sorted card ids) and
  written to the board's durable slot, which is checked for staleness
  against the current cards on read.
- Relay failures are fatal for the run: the partial accumulator is
  discarded and CollaboratorError propagates.
"""

import asyncio
from typing import Any, Dict, Iterable, List, Optional

from api_specs.dtos.board import Card
from common_utils.datetime_utils import from_timestamp
from core.observation.logger import get_logger
from insight_layer.batch_planner import plan_batches
from insight_layer.cache.request_cache import RequestCache
from insight_layer.cache.signature import (
    GENERATE_CLUSTERS_ENDPOINT,
    cards_signature,
    generate_cache_key,
)
from insight_layer.cache.staleness import assess_staleness
from insight_layer.cluster_manager.merger import ClusterMerger
from insight_layer.config import InsightConfig
from insight_layer.errors import (
    CacheReadError,
    ClusteringCancelledError,
    CollaboratorError,
    ValidationError,
)
from insight_layer.relay.protocol import ClusterRelay
from insight_layer.result import Err, ErrorKind, Ok, Result
from insight_layer.types import CacheSource, ClusterAnalysis, coerce_cards

logger = get_logger(__name__)


class ClusterManager:
    """Clustering entry point used by the board.

    Usage:
        ```python
        manager = ClusterManager(relay, RequestCache(store=store), config)

        analysis = await manager.generate_clusters(cards)
        if analysis.stale:
            ...  # show "refresh recommended"

        analysis = await manager.generate_clusters(cards, force_refresh=True)
        ```
    """

    def __init__(
        self,
        relay: ClusterRelay,
        cache: RequestCache,
        config: Optional[InsightConfig] = None,
    ):
        """Initialize ClusterManager.

        Args:
            relay: Collaborator that clusters one batch
            cache: Request cache shared with other services (owned by caller)
            config: Tuning knobs (uses defaults if None)
        """
        self.relay = relay
        self.cache = cache
        self.config = config or InsightConfig()

        # Statistics
        self._stats = {
            "runs": 0,
            "batch_requests": 0,
            "memory_hits": 0,
            "durable_hits": 0,
            "stale_hits": 0,
            "failures": 0,
        }

    def cache_key(self, cards: List[Card]) -> str:
        signature = cards_signature(card.id for card in cards)
        return generate_cache_key(GENERATE_CLUSTERS_ENDPOINT, {"cardsSignature": signature})

    async def generate_clusters(
        self,
        cards: Iterable[Any],
        force_refresh: bool = False,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> ClusterAnalysis:
        """Return the cluster set for ``cards``, from cache when possible.

        Args:
            cards: Current board cards (Card instances or card dicts)
            force_refresh: Skip both cache tiers for reading; results are
                still written back to both
            cancel_event: Checked between batches; when set the run stops

        Returns:
            ClusterAnalysis annotated with where it came from and whether
            the durable copy looks stale

        Raises:
            CollaboratorError: a batch request failed
            ClusteringCancelledError: ``cancel_event`` was set mid-run
            ValidationError: malformed card
        """
        card_list = coerce_cards(cards)
        key = self.cache_key(card_list)

        if not force_refresh:
            entry = self.cache.get(key, ttl=self.config.cluster_ttl_seconds)
            if entry is not None:
                self._stats["memory_hits"] += 1
                return entry.payload.with_source(CacheSource.MEMORY)

            durable = self._read_durable(card_list, key)
            if durable is not None:
                return durable
        else:
            logger.info("Forced cluster refresh for %d cards", len(card_list))

        if not card_list:
            logger.info("No cards to cluster")
            return ClusterAnalysis(
                clusters=[], generated_at=from_timestamp(self.cache.now())
            )

        analysis = await self._cluster(card_list, cancel_event)

        self.cache.set(key, analysis)
        self.cache.write_durable(self.config.cluster_slot, analysis.to_dict())
        return analysis

    async def try_generate_clusters(
        self,
        cards: Iterable[Any],
        force_refresh: bool = False,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> Result:
        """Same as generate_clusters, with failures returned as Err."""
        try:
            return Ok(await self.generate_clusters(cards, force_refresh, cancel_event))
        except CollaboratorError as e:
            return Err(ErrorKind.COLLABORATOR, e)
        except ClusteringCancelledError as e:
            return Err(ErrorKind.CANCELLED, e)
        except ValidationError as e:
            return Err(ErrorKind.VALIDATION, e)

    def clear_cache(self) -> None:
        self.cache.clear()

    async def _cluster(
        self, cards: List[Card], cancel_event: Optional[asyncio.Event]
    ) -> ClusterAnalysis:
        plan = plan_batches(cards, self.config.max_batch_size)
        merger = ClusterMerger()
        self._stats["runs"] += 1

        for batch_info, batch in plan:
            if cancel_event is not None and cancel_event.is_set():
                logger.info(
                    "Clustering cancelled before batch %d/%d",
                    batch_info.current,
                    batch_info.total,
                )
                raise ClusteringCancelledError(merger.batches_merged, plan.total)

            logger.info(
                "Clustering batch %d/%d (%d cards, %d known clusters)",
                batch_info.current,
                batch_info.total,
                len(batch),
                len(merger.clusters),
            )
            self._stats["batch_requests"] += 1
            try:
                batch_clusters = await self.relay.request_clusters(
                    batch, merger.existing_names(), batch_info
                )
            except CollaboratorError as e:
                self._stats["failures"] += 1
                logger.error(
                    "Clustering batch %d/%d failed, discarding %d partial cluster(s): %s",
                    batch_info.current,
                    batch_info.total,
                    len(merger.clusters),
                    e,
                )
                raise
            merger.merge(batch_clusters)

        now = self.cache.now()
        clusters = merger.finalize(now)
        logger.info(
            "Clustered %d cards into %d clusters over %d batch(es)",
            len(cards),
            len(clusters),
            plan.total,
        )
        return ClusterAnalysis(
            clusters=clusters,
            source=CacheSource.NETWORK,
            generated_at=from_timestamp(now),
        )

    def _read_durable(self, cards: List[Card], key: str) -> Optional[ClusterAnalysis]:
        entry = self.cache.read_durable(self.config.cluster_slot)
        if entry is None:
            return None
        try:
            cached = _decode_analysis(entry.payload)
        except CacheReadError as e:
            logger.warning("Ignoring malformed durable cluster cache: %s", e)
            return None

        staleness = assess_staleness(
            current_ids=(card.id for card in cards),
            cached_ids=cached.card_ids(),
            age_seconds=entry.age(self.cache.now()),
            threshold=self.config.stale_change_ratio,
            max_age_seconds=self.config.durable_expiry_seconds,
        )
        self._stats["durable_hits"] += 1
        if staleness.stale:
            self._stats["stale_hits"] += 1
            logger.info(
                "Serving stale durable clusters (%s, +%d/-%d cards, ratio %.2f)",
                staleness.reason,
                staleness.added,
                staleness.removed,
                staleness.change_ratio,
            )
        else:
            self.cache.set(key, cached, stored_at=entry.stored_at)
            logger.debug("Durable clusters promoted to memory cache")

        return cached.with_source(
            CacheSource.DURABLE,
            stale=staleness.stale,
            change_ratio=staleness.change_ratio,
        )

    def get_stats(self) -> Dict[str, int]:
        """Get clustering statistics."""
        return dict(self._stats)


def _decode_analysis(payload: Any) -> ClusterAnalysis:
    if not isinstance(payload, dict):
        raise CacheReadError(f"expected an object, got {type(payload).__name__}")
    try:
        return ClusterAnalysis.from_dict(payload)
    except (
        KeyError,
        TypeError,
        ValueError,
        AttributeError,
        OverflowError,
        OSError,
    ) as e:
        raise CacheReadError(str(e)) from e
