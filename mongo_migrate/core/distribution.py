"""Round-robin distribution of collections across workers."""

from collections.abc import Sequence
from dataclasses import dataclass


@dataclass(frozen=True)
class WorkerAssignment:
    """Collections one worker processes, in order."""

    worker_id: int
    items: tuple[str, ...]


def distribute(items: Sequence[str], worker_count: int) -> list[WorkerAssignment]:
    """Assign item ``i`` to worker ``(i mod worker_count) + 1``.

    Workers left without items are dropped, so 10 workers over 3 items yield 3
    assignments. The result depends only on the inputs; the restore phase
    relies on getting the same assignments the dump phase used.

    Raises:
        ValueError: If worker_count is less than 1
    """
    if worker_count < 1:
        raise ValueError(f"worker_count must be at least 1, got {worker_count}")

    buckets: list[list[str]] = [[] for _ in range(worker_count)]
    for index, item in enumerate(items):
        buckets[index % worker_count].append(item)

    return [
        WorkerAssignment(worker_id=index + 1, items=tuple(bucket))
        for index, bucket in enumerate(buckets)
        if bucket
    ]
