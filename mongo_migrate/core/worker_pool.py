"""Concurrent execution of a phase over worker assignments."""

import asyncio
from collections.abc import Awaitable, Callable, Sequence

import structlog

from ..models.enums import Phase
from ..models.results import ItemFailure, PhaseResult
from .distribution import WorkerAssignment

logger = structlog.get_logger()

ItemAction = Callable[[str], Awaitable[None]]


class WorkerPool:
    """Runs one task per assignment; each task walks its items sequentially.

    A failing item is recorded and the worker moves on to its next item. Each
    worker returns its own partial result and the pool merges them after all
    workers have finished, so no state is shared between tasks.
    """

    def __init__(self):
        self.logger = logger.bind(component="worker_pool")

    async def run_phase(
        self,
        phase: Phase,
        assignments: Sequence[WorkerAssignment],
        action: ItemAction,
    ) -> PhaseResult:
        """Run ``action`` once for every item in ``assignments``.

        Args:
            phase: Phase being executed (used for logging and the result)
            assignments: Output of ``distribute``
            action: Coroutine function that raises on failure

        Returns:
            PhaseResult partitioning the items into successful and failed
        """
        self.logger.info(
            f"Starting {len(assignments)} workers",
            phase=phase.value,
            items=sum(len(a.items) for a in assignments),
        )
        for assignment in assignments:
            self.logger.info(
                f"Worker {assignment.worker_id}: {len(assignment.items)} collections",
                phase=phase.value,
                collections=list(assignment.items),
            )

        parts = await asyncio.gather(
            *(self._run_worker(phase, assignment, action) for assignment in assignments)
        )
        return PhaseResult.merge(phase, parts)

    async def _run_worker(
        self, phase: Phase, assignment: WorkerAssignment, action: ItemAction
    ) -> PhaseResult:
        # Each gathered coroutine runs in its own task with a copied context,
        # so these bindings only reach logs emitted by this worker.
        structlog.contextvars.bind_contextvars(worker_id=assignment.worker_id, phase=phase.value)

        successful: set[str] = set()
        failed: list[ItemFailure] = []

        self.logger.info("Worker started", collections=len(assignment.items))
        for item in assignment.items:
            self.logger.info(f"Starting {phase.value} of collection", collection=item)
            try:
                await action(item)
            except Exception as e:
                failed.append(ItemFailure(item=item, error=str(e), worker_id=assignment.worker_id))
                self.logger.error(
                    f"Failed to {phase.value} collection", collection=item, error=str(e)
                )
            else:
                successful.add(item)
                self.logger.info(f"Finished {phase.value} of collection", collection=item)
        self.logger.info(
            "Worker completed",
            succeeded=len(successful),
            failed=len(failed),
        )

        return PhaseResult(phase=phase, successful=frozenset(successful), failed=tuple(failed))

    def log_summary(self, result: PhaseResult) -> None:
        """Log the post-phase summary, listing every failed item."""
        self.logger.info(
            f"{result.phase.value.capitalize()} summary",
            successful=len(result.successful),
            failed=len(result.failed),
        )
        for failure in result.failed:
            self.logger.warning(
                f"Failed collection: {failure.item}",
                worker_id=failure.worker_id,
                error=failure.error,
            )
