"""Canonical request signatures.

``generate_cache_key("x", {"a": 1, "b": 2})`` equals
``generate_cache_key("x", {"b": 2, "a": 1})``: object keys are sorted at every
depth. Array order is kept, so callers that want order-independence over a
list (clustering card ids) sort it before signing.
"""

import dataclasses
import json
from enum import Enum
from typing import Any, Iterable

from pydantic import BaseModel

CHECK_DUPLICATES_ENDPOINT = "check-duplicates"
GENERATE_CLUSTERS_ENDPOINT = "generate-clusters"


def _to_jsonable(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(exclude_none=True)
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (set, frozenset)):
        return sorted(value)
    raise TypeError(f"Cannot sign value of type {type(value).__name__}")


def stable_serialize(payload: Any) -> str:
    return json.dumps(
        payload,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        default=_to_jsonable,
    )


def generate_cache_key(endpoint: str, payload: Any) -> str:
    return f"{endpoint}:{stable_serialize(payload)}"


def cards_signature(card_ids: Iterable[str]) -> str:
    """Order-independent signature of a card id set."""
    return stable_serialize(sorted(card_ids))
