"""Split an ordered card list into bounded, contiguous batches.

Batches are plain slices of the input: concatenating them in order gives the
original list back, and the same input always yields the same batches.
"""

from dataclasses import dataclass
from typing import Generic, Iterator, List, Sequence, Tuple, TypeVar

from insight_layer.config import MAX_BATCH_SIZE
from insight_layer.errors import ValidationError
from insight_layer.types import BatchInfo

T = TypeVar("T")


def chunk(items: Sequence[T], batch_size: int = MAX_BATCH_SIZE) -> List[List[T]]:
    """Return ``ceil(len(items) / batch_size)`` ordered slices of ``items``."""
    if isinstance(batch_size, bool) or not isinstance(batch_size, int) or batch_size <= 0:
        raise ValidationError(f"batch_size must be a positive int, got {batch_size!r}")
    return [list(items[i : i + batch_size]) for i in range(0, len(items), batch_size)]


@dataclass(frozen=True)
class BatchPlan(Generic[T]):
    batches: Tuple[Tuple[T, ...], ...]
    batch_size: int

    @property
    def total(self) -> int:
        return len(self.batches)

    def __len__(self) -> int:
        return len(self.batches)

    def __iter__(self) -> Iterator[Tuple[BatchInfo, List[T]]]:
        """Yield ``(BatchInfo, batch)`` pairs in order."""
        for index, batch in enumerate(self.batches, start=1):
            yield BatchInfo(current=index, total=self.total), list(batch)


def plan_batches(items: Sequence[T], batch_size: int = MAX_BATCH_SIZE) -> BatchPlan[T]:
    batches = chunk(items, batch_size)
    return BatchPlan(batches=tuple(tuple(b) for b in batches), batch_size=batch_size)
