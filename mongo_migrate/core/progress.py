"""Progress extraction from mongodump/mongorestore output.

The tools report progress on stderr as free-form lines such as::

    2024-05-01T10:00:00.000+0000    [####....................]  shop.orders  1200/5000  (24.0%)
    2024-05-01T10:00:02.000+0000    done dumping shop.orders (5000 documents)
    2024-05-01T10:00:05.000+0000    5000 document(s) restored successfully.

``parse_line`` classifies a single line; ``ProgressTracker`` holds the per-item
state needed to log one line per 10-point percentage crossing.
"""

import re
from dataclasses import dataclass
from typing import Any

import structlog

from ..constants import PERCENT_MILESTONE_STEP
from ..models.enums import ProgressKind

logger = structlog.get_logger()

_PERCENT_PATTERN = re.compile(r"(\d{1,3}(?:\.\d+)?)\s*%")
# Markers inside a namespace or path (shop.done, dump/shop/done.bson) are names, not status
_COMPLETED_PATTERN = re.compile(
    r"(?<![\w./])(?:done|finished|completed?)(?![\w/]|\.\w)", re.IGNORECASE
)
_COUNT_PATTERN = re.compile(r"(\d[\d,]*)\s+(?:documents?|document\(s\)|records?)\b", re.IGNORECASE)


@dataclass(frozen=True)
class ProgressEvent:
    """Structured view of one output line."""

    kind: ProgressKind
    raw_line: str
    value: float | int | None = None


def _parse_count(text: str) -> int | None:
    match = _COUNT_PATTERN.search(text)
    if match:
        return int(match.group(1).replace(",", ""))
    return None


def parse_line(line: str) -> ProgressEvent:
    """Classify a tool output line.

    Percentages win over completion markers, which win over bare document
    counts. Completion events carry the document count when the line has one.
    """
    percent = _PERCENT_PATTERN.search(line)
    if percent:
        return ProgressEvent(ProgressKind.PERCENT, line, float(percent.group(1)))

    if _COMPLETED_PATTERN.search(line):
        return ProgressEvent(ProgressKind.COMPLETED, line, _parse_count(line))

    count = _parse_count(line)
    if count is not None:
        return ProgressEvent(ProgressKind.DOCUMENT_COUNT, line, count)

    return ProgressEvent(ProgressKind.OTHER, line)


class ProgressTracker:
    """Per-item progress logging with percentage de-duplication."""

    def __init__(self, item: str, operation: str, log: Any | None = None):
        self.item = item
        self.operation = operation
        self.logger = log or logger
        self.last_milestone = -1
        self.documents: int | None = None
        self.completed = False

    def milestone(self, percent: float) -> int | None:
        """Return the 10-point bucket reached if it is new, else None."""
        bucket = int(percent // PERCENT_MILESTONE_STEP) * PERCENT_MILESTONE_STEP
        if bucket > self.last_milestone:
            self.last_milestone = bucket
            return bucket
        return None

    def observe(self, line: str) -> ProgressEvent:
        """Parse a line and log it at the level its kind deserves."""
        event = parse_line(line)

        if event.kind is ProgressKind.PERCENT:
            reached = self.milestone(float(event.value or 0))
            if reached is not None:
                self.logger.info(
                    f"{self.operation} progress", collection=self.item, percent=reached
                )
        elif event.kind is ProgressKind.COMPLETED:
            self.completed = True
            if event.value is not None:
                self.documents = int(event.value)
            self.logger.info(
                f"{self.operation} finished", collection=self.item, documents=self.documents
            )
        elif event.kind is ProgressKind.DOCUMENT_COUNT:
            self.documents = int(event.value or 0)
            self.logger.info(
                f"{self.operation} document count", collection=self.item, documents=self.documents
            )
        else:
            self.logger.debug(f"{self.operation} output", collection=self.item, line=line)

        return event
