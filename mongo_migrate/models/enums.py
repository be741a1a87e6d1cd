"""Enum definitions for mongo-migrate."""

from enum import Enum


class MigrationState(Enum):
    """States of a migration run."""

    CONFIGURING = "configuring"
    VALIDATING = "validating"
    SELECTING_ITEMS = "selecting_items"
    CONFIRMING = "confirming"
    DUMPING = "dumping"
    DROPPING_DESTINATION = "dropping_destination"
    RESTORING = "restoring"
    DONE = "done"
    FAILED = "failed"
    CANCELLED = "cancelled"


class Phase(Enum):
    """Bulk operations run by the worker pool."""

    DUMP = "dump"
    RESTORE = "restore"


class ProgressKind(Enum):
    """Classification of a tool output line."""

    DOCUMENT_COUNT = "document_count"
    PERCENT = "percent"
    COMPLETED = "completed"
    OTHER = "other"
