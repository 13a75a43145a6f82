"""Domain models for collection tasks and their outcomes."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from pg_radar.config import RunConfig


class ByteSink(Protocol):
    """Byte-accepting target a producer writes to."""

    def write(self, data: bytes) -> int:
        """Accept bytes and return how many were taken."""


Producer = Callable[["RunConfig", ByteSink], None]


class TaskCategory(str, Enum):
    """Grouping labels for collection tasks."""

    SYSTEM = "system"
    POSTGRESQL = "postgresql"
    DATABASE = "database"


class TaskOutcome(str, Enum):
    """Result of executing one collection task."""

    PRODUCED = "produced"
    EMPTY = "empty"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class CollectionTask:
    """One unit of diagnostic work written to a fixed archive path."""

    category: str
    name: str
    archive_path: str
    producer: Producer


@dataclass(slots=True)
class TaskResult:
    """Per-task execution record."""

    name: str
    outcome: TaskOutcome
    reason: str | None = None


@dataclass(slots=True)
class RunCounters:
    """Outcome tallies for one runner invocation."""

    produced: int = 0
    empty: int = 0
    skipped: int = 0
    failed: int = 0

    def record(self, outcome: TaskOutcome) -> None:
        if outcome is TaskOutcome.PRODUCED:
            self.produced += 1
        elif outcome is TaskOutcome.EMPTY:
            self.empty += 1
        elif outcome is TaskOutcome.SKIPPED:
            self.skipped += 1
        else:
            self.failed += 1
