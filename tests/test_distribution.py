"""Tests for round-robin work distribution."""

import pytest

from mongo_migrate.core.distribution import WorkerAssignment, distribute


class TestDistribute:
    def test_round_robin(self):
        assignments = distribute(["a", "b", "c", "d", "e"], 2)

        assert assignments == [
            WorkerAssignment(worker_id=1, items=("a", "c", "e")),
            WorkerAssignment(worker_id=2, items=("b", "d")),
        ]

    def test_empty_workers_dropped(self):
        assignments = distribute(["x", "y", "z"], 10)

        assert [a.worker_id for a in assignments] == [1, 2, 3]
        assert all(len(a.items) == 1 for a in assignments)

    def test_every_item_assigned_exactly_once(self):
        items = [f"c{i}" for i in range(23)]
        assignments = distribute(items, 4)

        flattened = [item for a in assignments for item in a.items]
        assert sorted(flattened) == sorted(items)
        assert len(flattened) == len(set(flattened))

    def test_deterministic(self):
        items = ["users", "orders", "events", "logs"]
        assert distribute(items, 3) == distribute(items, 3)

    def test_single_worker_keeps_order(self):
        assert distribute(["b", "a", "c"], 1) == [WorkerAssignment(1, ("b", "a", "c"))]

    def test_no_items(self):
        assert distribute([], 3) == []

    @pytest.mark.parametrize("workers", [0, -1])
    def test_invalid_worker_count(self, workers):
        with pytest.raises(ValueError):
            distribute(["a"], workers)
