"""
Migration services:
- dump_restore: per-collection mongodump/mongorestore execution
- orchestrator: the run-level state machine
"""

from .dump_restore import MongoToolRunner  # noqa: F401
from .orchestrator import MigrationOrchestrator  # noqa: F401

__all__ = ["MongoToolRunner", "MigrationOrchestrator"]
