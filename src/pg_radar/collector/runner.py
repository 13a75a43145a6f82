"""Sequential execution of collection tasks against one archive."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from pg_radar.collector.archive import ArchiveWriter
from pg_radar.collector.errors import SkipCollection
from pg_radar.collector.models import CollectionTask, RunCounters, TaskOutcome, TaskResult
from pg_radar.collector.sink import LazyEntryWriter
from pg_radar.config import RunConfig

logger = logging.getLogger(__name__)


class TaskRunner:
    """Run tasks one at a time and count those that archived data.

    A task's skip or failure never stops the run: both are absorbed here and
    only told apart in debug logging. The runner keeps no state between
    ``run`` calls.
    """

    def __init__(
        self,
        *,
        config: RunConfig,
        archive: ArchiveWriter,
        log: logging.Logger | None = None,
    ) -> None:
        self.config = config
        self.archive = archive
        self.log = log or logger

    def run(self, tasks: Iterable[CollectionTask]) -> int:
        """Execute ``tasks`` in order; return how many produced archived data."""

        counters = RunCounters()
        for task in tasks:
            result = self.execute(task)
            counters.record(result.outcome)
        self.log.debug(
            "Task group finished: produced=%d empty=%d skipped=%d failed=%d",
            counters.produced,
            counters.empty,
            counters.skipped,
            counters.failed,
        )
        return counters.produced

    def execute(self, task: CollectionTask) -> TaskResult:
        sink = LazyEntryWriter(self.archive, task.archive_path)
        try:
            task.producer(self.config, sink)
        except SkipCollection as skip:
            self.log.debug("⊘ %s (unavailable: %s)", task.name, skip.reason)
            return TaskResult(name=task.name, outcome=TaskOutcome.SKIPPED, reason=skip.reason)
        except Exception as error:  # noqa: BLE001
            self.log.debug("✗ %s (failed: %s)", task.name, error)
            return TaskResult(name=task.name, outcome=TaskOutcome.FAILED, reason=str(error))

        if not sink.wrote_any:
            self.log.debug("⊘ %s (empty)", task.name)
            return TaskResult(name=task.name, outcome=TaskOutcome.EMPTY)

        self.log.debug("✓ %s", task.name)
        return TaskResult(name=task.name, outcome=TaskOutcome.PRODUCED)


def run_tasks(
    *,
    config: RunConfig,
    archive: ArchiveWriter,
    tasks: Iterable[CollectionTask],
    log: logging.Logger | None = None,
) -> int:
    """Run one task group and return its collected count."""

    return TaskRunner(config=config, archive=archive, log=log).run(tasks)
