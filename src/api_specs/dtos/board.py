"""Board and relay DTOs.

Wire shapes exchanged with the AI relay:
- Generate clusters (POST /api/openai/generate-clusters)
- Check duplicates (POST /api/openai/check-duplicates)

Field names follow the relay's camelCase JSON; Python code uses the
snake_case attribute names.
"""

from __future__ import annotations

from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _coerce_id(value: Any) -> Any:
    # Models occasionally echo numeric ids back
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(int(value))
    return value


# =============================================================================
# Board
# =============================================================================


class Card(BaseModel):
    """A board card as seen by the insight layer.

    Other board fields (column, labels, assignees, ...) are ignored.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str = Field(min_length=1, description="Card id, unique on the board")
    title: str = Field(description="Card title")
    description: Optional[str] = Field(default=None, description="Card body")

    @field_validator("id", mode="before")
    @classmethod
    def normalize_id(cls, value: Any) -> Any:
        return _coerce_id(value)

    def to_payload(self) -> dict:
        return self.model_dump(exclude_none=True)


# =============================================================================
# Generate clusters
# =============================================================================


class BatchInfoPayload(BaseModel):
    current: int = Field(ge=1)
    total: int = Field(ge=1)


class GenerateClustersRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    cards: List[Card]
    existing_clusters: List[str] = Field(default_factory=list, alias="existingClusters")
    batch_info: Optional[BatchInfoPayload] = Field(default=None, alias="batchInfo")


class ClusterCardPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str = Field(min_length=1)
    title: str = ""

    @field_validator("id", mode="before")
    @classmethod
    def normalize_id(cls, value: Any) -> Any:
        return _coerce_id(value)


class ClusterPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    cluster_name: str = Field(min_length=1, alias="clusterName")
    cards: List[ClusterCardPayload] = Field(default_factory=list)


class GenerateClustersResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    clusters: List[ClusterPayload] = Field(default_factory=list)


# =============================================================================
# Check duplicates
# =============================================================================


class CheckDuplicatesRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    new_card: Card = Field(alias="newCard")
    existing_cards: List[Card] = Field(alias="existingCards")


class DuplicatePayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str = Field(min_length=1)
    title: str = ""
    reason: str = ""

    @field_validator("id", mode="before")
    @classmethod
    def normalize_id(cls, value: Any) -> Any:
        return _coerce_id(value)


class CheckDuplicatesResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    duplicates: List[DuplicatePayload] = Field(default_factory=list)
