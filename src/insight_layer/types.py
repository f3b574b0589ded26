from enum import Enum
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence
from dataclasses import dataclass, field
import datetime

from pydantic import ValidationError as PydanticValidationError

from api_specs.dtos.board import Card, ClusterPayload, DuplicatePayload
from common_utils.datetime_utils import from_timestamp, to_iso_format, to_timestamp_ms
from insight_layer.errors import ValidationError


def coerce_card(value: Any) -> Card:
    """Accept a Card or a card-shaped mapping; reject anything malformed."""
    if isinstance(value, Card):
        return value
    try:
        return Card.model_validate(value)
    except PydanticValidationError as e:
        raise ValidationError(f"Malformed card {value!r}: {e}") from e


def coerce_cards(values: Iterable[Any]) -> List[Card]:
    return [coerce_card(value) for value in values]


@dataclass(frozen=True)
class BatchInfo:
    """1-based position of a batch within a clustering run."""

    current: int
    total: int

    def to_dict(self) -> Dict[str, int]:
        return {"current": self.current, "total": self.total}


@dataclass(frozen=True)
class ClusterCard:
    id: str
    title: str = ""

    def to_dict(self) -> Dict[str, str]:
        return {"id": self.id, "title": self.title}


@dataclass
class Cluster:
    """A named group of cards; card ids are unique within the cluster."""

    name: str
    cards: List[ClusterCard] = field(default_factory=list)

    @property
    def key(self) -> str:
        return self.name.casefold()

    @property
    def card_ids(self) -> List[str]:
        return [card.id for card in self.cards]

    def union(self, cards: Iterable[ClusterCard]) -> int:
        """Add cards not already present; returns how many were added."""
        seen = set(self.card_ids)
        added = 0
        for card in cards:
            if card.id in seen:
                continue
            seen.add(card.id)
            self.cards.append(card)
            added += 1
        return added

    def copy(self) -> "Cluster":
        clone = Cluster(name=self.name)
        clone.union(self.cards)
        return clone

    @classmethod
    def from_payload(cls, payload: ClusterPayload) -> "Cluster":
        return cls(
            name=payload.cluster_name,
            cards=[ClusterCard(id=c.id, title=c.title) for c in payload.cards],
        )


class ClusterSet:
    """Ordered clusters with unique case-insensitive names."""

    def __init__(self, clusters: Optional[Iterable[Cluster]] = None):
        self._clusters: List[Cluster] = []
        self._by_key: Dict[str, Cluster] = {}
        for cluster in clusters or []:
            self.add(cluster)

    def find(self, name: str) -> Optional[Cluster]:
        return self._by_key.get(name.casefold())

    def add(self, cluster: Cluster) -> Cluster:
        """Insert a copy of ``cluster`` or fold it into the same-named one."""
        existing = self.find(cluster.name)
        if existing is not None:
            existing.union(cluster.cards)
            return existing
        clone = cluster.copy()
        self._clusters.append(clone)
        self._by_key[clone.key] = clone
        return clone

    @property
    def names(self) -> List[str]:
        return [cluster.name for cluster in self._clusters]

    def card_ids(self) -> set:
        return {card_id for cluster in self._clusters for card_id in cluster.card_ids}

    def __iter__(self) -> Iterator[Cluster]:
        return iter(self._clusters)

    def __len__(self) -> int:
        return len(self._clusters)

    def __repr__(self) -> str:
        return f"ClusterSet({self.names!r})"


@dataclass
class DisplayCluster:
    """Cluster as handed to the board UI."""

    id: str
    title: str
    description: str
    card_ids: List[str]
    cards: List[ClusterCard]
    created_at: int  # epoch ms

    @classmethod
    def from_cluster(cls, cluster: Cluster, created_at: int) -> "DisplayCluster":
        return cls(
            id=cluster.name,
            title=cluster.name,
            description=f"Cluster of cards related to {cluster.name}",
            card_ids=cluster.card_ids,
            cards=list(cluster.cards),
            created_at=created_at,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "cardIds": list(self.card_ids),
            "cards": [card.to_dict() for card in self.cards],
            "createdAt": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DisplayCluster":
        cards = [
            ClusterCard(id=str(c["id"]), title=str(c.get("title", "")))
            for c in data.get("cards", [])
        ]
        return cls(
            id=str(data["id"]),
            title=str(data.get("title", data["id"])),
            description=str(data.get("description", "")),
            card_ids=[str(i) for i in data.get("cardIds", [c.id for c in cards])],
            cards=cards,
            created_at=int(data.get("createdAt", 0)),
        )


class CacheSource(str, Enum):
    NETWORK = "network"
    MEMORY = "memory"
    DURABLE = "durable"


@dataclass
class ClusterAnalysis:
    clusters: List[DisplayCluster]
    source: CacheSource = CacheSource.NETWORK
    stale: bool = False
    change_ratio: float = 0.0
    generated_at: Optional[datetime.datetime] = None

    def card_ids(self) -> set:
        return {card_id for cluster in self.clusters for card_id in cluster.card_ids}

    def with_source(
        self, source: CacheSource, stale: bool = False, change_ratio: float = 0.0
    ) -> "ClusterAnalysis":
        return ClusterAnalysis(
            clusters=self.clusters,
            source=source,
            stale=stale,
            change_ratio=change_ratio,
            generated_at=self.generated_at,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "clusters": [cluster.to_dict() for cluster in self.clusters],
            "generatedAt": (
                to_timestamp_ms(self.generated_at) if self.generated_at else None
            ),
            "generatedAtIso": (
                to_iso_format(self.generated_at) if self.generated_at else None
            ),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ClusterAnalysis":
        generated_at = data.get("generatedAt")
        return cls(
            clusters=[DisplayCluster.from_dict(c) for c in data.get("clusters", [])],
            generated_at=from_timestamp(generated_at) if generated_at else None,
        )


@dataclass(frozen=True)
class DuplicateMatch:
    id: str
    title: str
    reason: str = ""

    def to_dict(self) -> Dict[str, str]:
        return {"id": self.id, "title": self.title, "reason": self.reason}

    @classmethod
    def from_payload(cls, payload: DuplicatePayload) -> "DuplicateMatch":
        return cls(id=payload.id, title=payload.title, reason=payload.reason)


@dataclass(frozen=True)
class DuplicateResult:
    duplicates: Sequence[DuplicateMatch] = ()

    @classmethod
    def empty(cls) -> "DuplicateResult":
        return cls(duplicates=())

    @property
    def has_duplicates(self) -> bool:
        return len(self.duplicates) > 0

    def to_dict(self) -> Dict[str, Any]:
        return {"duplicates": [match.to_dict() for match in self.duplicates]}
