"""Data models for mongo-migrate."""

from .enums import MigrationState, Phase, ProgressKind  # noqa: F401
from .results import ItemFailure, MigrationReport, PhaseResult  # noqa: F401

__all__ = [
    "MigrationState",
    "Phase",
    "ProgressKind",
    "ItemFailure",
    "MigrationReport",
    "PhaseResult",
]
