"""Result models for migration phases and runs."""

from collections.abc import Iterable
from dataclasses import dataclass, field

from .enums import MigrationState, Phase


@dataclass(frozen=True)
class ItemFailure:
    """A collection that failed during a phase."""

    item: str
    error: str
    worker_id: int


@dataclass(frozen=True)
class PhaseResult:
    """Outcome of one dump or restore phase."""

    phase: Phase
    successful: frozenset[str] = frozenset()
    failed: tuple[ItemFailure, ...] = ()

    @property
    def ok(self) -> bool:
        return not self.failed

    @property
    def failed_items(self) -> frozenset[str]:
        return frozenset(failure.item for failure in self.failed)

    @property
    def total(self) -> int:
        return len(self.successful) + len(self.failed)

    @classmethod
    def merge(cls, phase: Phase, parts: Iterable["PhaseResult"]) -> "PhaseResult":
        """Fold per-worker contributions into one result, keeping worker order."""
        successful: set[str] = set()
        failed: list[ItemFailure] = []
        for part in parts:
            successful.update(part.successful)
            failed.extend(part.failed)
        return cls(phase=phase, successful=frozenset(successful), failed=tuple(failed))


@dataclass
class MigrationReport:
    """Run-level outcome returned by the orchestrator."""

    state: MigrationState
    exit_code: int
    phases: dict[Phase, PhaseResult] = field(default_factory=dict)
    error: str | None = None
    items: tuple[str, ...] = ()
