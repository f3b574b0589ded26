"""Staleness heuristic for the durable cluster cache.

A cached cluster set is stale when card membership drifted by at least
``threshold`` or when it is older than ``max_age_seconds``. Stale data is
still served; the flag only drives the "refresh recommended" affordance and
auto-refresh.
"""

from dataclasses import dataclass
from typing import Iterable, Optional, Tuple


@dataclass(frozen=True)
class Staleness:
    added: int
    removed: int
    change_ratio: float
    age_seconds: float
    stale: bool
    reason: Optional[str] = None


def compute_change_ratio(
    current_ids: Iterable[str], cached_ids: Iterable[str]
) -> Tuple[int, int, float]:
    """Return ``(added, removed, change_ratio)``."""
    current = set(current_ids)
    cached = set(cached_ids)
    added = len(current - cached)
    removed = len(cached - current)
    denominator = max(len(current), len(cached))
    if denominator == 0:
        return added, removed, 0.0
    return added, removed, (added + removed) / denominator


def assess_staleness(
    current_ids: Iterable[str],
    cached_ids: Iterable[str],
    age_seconds: float,
    threshold: float,
    max_age_seconds: float,
) -> Staleness:
    added, removed, ratio = compute_change_ratio(current_ids, cached_ids)
    reason = None
    if ratio >= threshold:
        reason = "cards-changed"
    elif age_seconds > max_age_seconds:
        reason = "expired"
    return Staleness(
        added=added,
        removed=removed,
        change_ratio=ratio,
        age_seconds=age_seconds,
        stale=reason is not None,
        reason=reason,
    )
