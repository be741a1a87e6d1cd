"""Tests for concurrent phase execution."""

import asyncio

import pytest
import structlog

from mongo_migrate.core.distribution import WorkerAssignment, distribute
from mongo_migrate.core.worker_pool import WorkerPool
from mongo_migrate.models.enums import Phase
from mongo_migrate.models.results import ItemFailure, PhaseResult


@pytest.mark.asyncio
class TestWorkerPool:
    async def test_all_items_succeed(self):
        seen: list[str] = []

        async def action(item: str) -> None:
            seen.append(item)

        result = await WorkerPool().run_phase(Phase.DUMP, distribute(["a", "b", "c"], 2), action)

        assert result.ok
        assert result.successful == {"a", "b", "c"}
        assert sorted(seen) == ["a", "b", "c"]

    async def test_failure_does_not_stop_worker(self):
        """A failing item is recorded and the rest of its worker's items still run."""

        async def action(item: str) -> None:
            if item == "b":
                raise RuntimeError("boom")

        # Single worker: b fails, c must still run
        result = await WorkerPool().run_phase(
            Phase.RESTORE, [WorkerAssignment(1, ("a", "b", "c"))], action
        )

        assert result.successful == {"a", "c"}
        assert result.failed == (ItemFailure(item="b", error="boom", worker_id=1),)
        assert not result.ok

    async def test_partition_is_exact(self):
        items = [f"c{i}" for i in range(9)]

        async def action(item: str) -> None:
            if int(item[1:]) % 3 == 0:
                raise ValueError(item)

        result = await WorkerPool().run_phase(Phase.DUMP, distribute(items, 4), action)

        assert result.successful | result.failed_items == set(items)
        assert not result.successful & result.failed_items
        assert result.failed_items == {"c0", "c3", "c6"}
        assert result.total == len(items)

    async def test_items_within_worker_are_sequential(self):
        active: dict[int, int] = {}
        overlap = False

        async def action(item: str) -> None:
            nonlocal overlap
            worker_id = structlog.contextvars.get_contextvars()["worker_id"]
            active[worker_id] = active.get(worker_id, 0) + 1
            if active[worker_id] > 1:
                overlap = True
            await asyncio.sleep(0.01)
            active[worker_id] -= 1

        await WorkerPool().run_phase(Phase.DUMP, distribute(list("abcdef"), 2), action)

        assert not overlap

    async def test_workers_run_concurrently(self):
        both = asyncio.Event()
        count = 0

        async def action(item: str) -> None:
            nonlocal count
            count += 1
            if count == 2:
                both.set()
            await asyncio.wait_for(both.wait(), timeout=1)

        result = await WorkerPool().run_phase(Phase.DUMP, distribute(["a", "b"], 2), action)

        assert result.ok

    async def test_worker_context_is_bound(self):
        bound: dict[str, tuple[int, str]] = {}

        async def action(item: str) -> None:
            context = structlog.contextvars.get_contextvars()
            bound[item] = (context["worker_id"], context["phase"])

        await WorkerPool().run_phase(Phase.RESTORE, distribute(["a", "b"], 2), action)

        assert bound == {"a": (1, "restore"), "b": (2, "restore")}
        assert "worker_id" not in structlog.contextvars.get_contextvars()

    async def test_no_assignments(self):
        async def action(item: str) -> None:
            raise AssertionError("not called")

        result = await WorkerPool().run_phase(Phase.DUMP, [], action)

        assert result == PhaseResult(phase=Phase.DUMP)
        assert result.ok


def test_merge_keeps_worker_order():
    first = PhaseResult(Phase.DUMP, frozenset({"a"}), (ItemFailure("b", "x", 1),))
    second = PhaseResult(Phase.DUMP, frozenset({"c"}), (ItemFailure("d", "y", 2),))

    merged = PhaseResult.merge(Phase.DUMP, [first, second])

    assert merged.successful == {"a", "c"}
    assert [f.item for f in merged.failed] == ["b", "d"]
