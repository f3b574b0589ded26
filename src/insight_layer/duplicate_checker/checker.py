"""DuplicateChecker - advisory duplicate detection for a card being edited.

Only the most recent ``max_batch_size`` existing cards are sent; older ones are
dropped silently. Results are memoized in the in-process cache tier only.
Duplicate detection must never block card creation, so
``check_for_duplicates`` swallows relay failures; ``check`` exposes the failure as an
``Err`` for callers that want to tell "no duplicates" from "check failed".
"""

from typing import Any, Dict, Iterable, List, Optional

from api_specs.dtos.board import Card
from core.observation.logger import get_logger
from insight_layer.cache.request_cache import RequestCache
from insight_layer.cache.signature import CHECK_DUPLICATES_ENDPOINT, generate_cache_key
from insight_layer.config import InsightConfig
from insight_layer.errors import CollaboratorError, ValidationError
from insight_layer.relay.protocol import ClusterRelay
from insight_layer.result import Err, ErrorKind, Ok, Result
from insight_layer.types import DuplicateMatch, DuplicateResult, coerce_card, coerce_cards

logger = get_logger(__name__)


class DuplicateChecker:
    def __init__(
        self,
        relay: ClusterRelay,
        cache: RequestCache,
        config: Optional[InsightConfig] = None,
    ):
        self.relay = relay
        self.cache = cache
        self.config = config or InsightConfig()
        self._stats = {
            "requests": 0,
            "cache_hits": 0,
            "failures": 0,
        }

    def recent_window(self, existing_cards: List[Card]) -> List[Card]:
        """The most recent ``max_batch_size`` cards, in their original order."""
        limit = self.config.max_batch_size
        if len(existing_cards) > limit:
            logger.debug(
                "Checking duplicates against the %d most recent of %d cards",
                limit,
                len(existing_cards),
            )
            return existing_cards[-limit:]
        return list(existing_cards)

    def cache_key(self, new_card: Card, window: List[Card]) -> str:
        payload: Dict[str, Any] = {
            "newCard": new_card.to_payload(),
            "existingCards": [card.to_payload() for card in window],
            "cardIds": [card.id for card in window],
        }
        return generate_cache_key(CHECK_DUPLICATES_ENDPOINT, payload)

    async def check(self, new_card: Any, existing_cards: Iterable[Any]) -> Result:
        """
        Check ``new_card`` against the recent existing cards.

        Returns:
            Ok(DuplicateResult) on success, Err(collaborator) when the relay
            failed, Err(validation) for malformed cards
        """
        try:
            candidate = coerce_card(new_card)
            window = self.recent_window(coerce_cards(existing_cards))
        except ValidationError as e:
            logger.error("Rejected duplicate check input: %s", e)
            return Err(ErrorKind.VALIDATION, e)

        key = self.cache_key(candidate, window)
        cached = self.cache.get(key, ttl=self.config.duplicate_ttl_seconds)
        if cached is not None:
            self._stats["cache_hits"] += 1
            return Ok(cached.payload)

        self._stats["requests"] += 1
        try:
            raw = await self.relay.request_duplicates(candidate, window)
        except CollaboratorError as e:
            self._stats["failures"] += 1
            logger.warning("Duplicate check failed for card %s: %s", candidate.id, e)
            return Err(ErrorKind.COLLABORATOR, e)
        except Exception as e:
            # Advisory check: unexpected relay errors are logged, not raised
            self._stats["failures"] += 1
            logger.error(
                "Unexpected duplicate check error for card %s: %s",
                candidate.id,
                e,
                exc_info=True,
            )
            return Err(ErrorKind.COLLABORATOR, e)

        result = self._restrict_to_window(raw, window, candidate)
        self.cache.set(key, result)
        if result.has_duplicates:
            logger.info(
                "Card %s has %d possible duplicate(s)", candidate.id, len(result.duplicates)
            )
        return Ok(result)

    async def check_for_duplicates(
        self, new_card: Any, existing_cards: Iterable[Any]
    ) -> DuplicateResult:
        """Fail-open wrapper: any collaborator failure yields no duplicates."""
        result = await self.check(new_card, existing_cards)
        if isinstance(result, Err) and result.kind is ErrorKind.VALIDATION:
            raise result.error
        return result.unwrap_or(DuplicateResult.empty())

    @staticmethod
    def _restrict_to_window(
        raw: DuplicateResult, window: List[Card], candidate: Card
    ) -> DuplicateResult:
        by_id = {card.id: card for card in window}
        matches: List[DuplicateMatch] = []
        seen = set()
        for match in raw.duplicates:
            card = by_id.get(match.id)
            if card is None or match.id == candidate.id or match.id in seen:
                logger.debug("Dropping duplicate flag for unknown card %s", match.id)
                continue
            seen.add(match.id)
            matches.append(DuplicateMatch(id=card.id, title=card.title, reason=match.reason))
        return DuplicateResult(duplicates=tuple(matches))

    def get_stats(self) -> Dict[str, int]:
        return dict(self._stats)
