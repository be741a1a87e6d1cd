"""Tests for result models and error messages."""

from mongo_migrate.core.exceptions import (
    DatabaseConnectionError,
    PhaseFailedError,
    ProcessError,
    ProcessTimeoutError,
)
from mongo_migrate.models.enums import Phase
from mongo_migrate.models.results import ItemFailure, PhaseResult


class TestPhaseResult:
    def test_properties(self):
        result = PhaseResult(
            Phase.RESTORE, frozenset({"a", "b"}), (ItemFailure("c", "exit 1", 2),)
        )

        assert not result.ok
        assert result.failed_items == {"c"}
        assert result.total == 3

    def test_empty_is_ok(self):
        assert PhaseResult(Phase.DUMP).ok


class TestErrorMessages:
    def test_process_error(self):
        error = ProcessError("mongodump", 1, "  Failed: auth error\n")
        assert str(error) == "mongodump exited with code 1: Failed: auth error"

    def test_process_error_without_stderr(self):
        assert str(ProcessError("mongodump", 2)) == "mongodump exited with code 2"

    def test_start_failure(self):
        error = ProcessError("mongodump", None, "No such file or directory")
        assert str(error) == "Failed to start mongodump: No such file or directory"

    def test_timeout(self):
        error = ProcessTimeoutError("mongorestore", 30, "partial")
        assert str(error) == "mongorestore timed out after 30 seconds"
        assert error.stderr == "partial"
        assert error.returncode is None
        assert error.timeout == 30
        assert error.executable == "mongorestore"
        assert isinstance(error, ProcessError)

    def test_connection_error_names_side(self):
        error = DatabaseConnectionError("destination", "timed out")
        assert error.side == "destination"
        assert str(error) == "Connection error (destination): timed out"

    def test_phase_failed(self):
        result = PhaseResult(
            Phase.DUMP, failed=(ItemFailure("a", "x", 1), ItemFailure("b", "y", 2))
        )
        error = PhaseFailedError(result)
        assert str(error) == "Failed to dump 2 collections"
        assert error.result is result
