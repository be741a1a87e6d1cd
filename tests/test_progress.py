"""Tests for tool output parsing and progress de-duplication."""

from unittest.mock import MagicMock

import pytest

from mongo_migrate.core.progress import ProgressTracker, parse_line
from mongo_migrate.models.enums import ProgressKind


class TestParseLine:
    @pytest.mark.parametrize(
        "line,value",
        [
            ("[####....]  shop.orders  1200/5000  (24.0%)", 24.0),
            ("progress 100%", 100.0),
            ("7 %", 7.0),
        ],
    )
    def test_percent(self, line, value):
        event = parse_line(line)
        assert event.kind is ProgressKind.PERCENT
        assert event.value == value
        assert event.raw_line == line

    def test_percent_wins_over_completion(self):
        assert parse_line("done 100.0%").kind is ProgressKind.PERCENT

    def test_completion_with_count(self):
        event = parse_line("done dumping shop.orders (5000 documents)")
        assert event.kind is ProgressKind.COMPLETED
        assert event.value == 5000

    def test_completion_without_count(self):
        event = parse_line("restore finished")
        assert event.kind is ProgressKind.COMPLETED
        assert event.value is None

    def test_document_count(self):
        event = parse_line("1,250 document(s) restored successfully.")
        assert event.kind is ProgressKind.DOCUMENT_COUNT
        assert event.value == 1250

    def test_other(self):
        event = parse_line("writing shop.orders to dump/shop/orders.bson")
        assert event.kind is ProgressKind.OTHER
        assert event.value is None

    def test_completion_matches_whole_words(self):
        assert parse_line("abandoned cursor").kind is ProgressKind.OTHER

    @pytest.mark.parametrize(
        "line",
        [
            "writing shop.done to dump/shop/done.bson",
            "reading metadata for done.orders from dump/done/orders.metadata.json",
            "restoring shop.finished from dump/shop/finished.bson",
        ],
    )
    def test_collection_named_like_marker_is_not_completion(self, line):
        assert parse_line(line).kind is ProgressKind.OTHER

    def test_completion_before_namespace(self):
        event = parse_line("done dumping shop.done (12 documents)")
        assert event.kind is ProgressKind.COMPLETED
        assert event.value == 12

    def test_completion_at_sentence_end(self):
        assert parse_line("restore finished.").kind is ProgressKind.COMPLETED


class TestProgressTracker:
    def test_milestones_deduplicated(self):
        tracker = ProgressTracker("orders", "Dump", log=MagicMock())

        reached = [tracker.milestone(p) for p in (3.0, 10.0, 12.5, 19.9, 20.0, 55.0, 55.0, 100.0)]

        assert reached == [0, 10, None, None, 20, 50, None, 100]

    def test_observe_logs_once_per_bucket(self):
        log = MagicMock()
        tracker = ProgressTracker("orders", "Dump", log=log)

        for line in ("(11.0%)", "(12.0%)", "(18.0%)", "(21.0%)"):
            tracker.observe(line)

        percents = [call.kwargs["percent"] for call in log.info.call_args_list]
        assert percents == [10, 20]

    def test_observe_completion_records_documents(self):
        log = MagicMock()
        tracker = ProgressTracker("orders", "Restore", log=log)

        tracker.observe("done (42 documents)")

        assert tracker.completed
        assert tracker.documents == 42
        log.info.assert_called_once()

    def test_other_lines_logged_at_debug(self):
        log = MagicMock()
        tracker = ProgressTracker("orders", "Dump", log=log)

        tracker.observe("checking options")

        log.debug.assert_called_once()
        log.info.assert_not_called()
