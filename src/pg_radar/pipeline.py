"""Two-phase collection: system tasks, then PostgreSQL tasks."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError

from pg_radar.catalog.postgres import database_tasks, postgres_tasks
from pg_radar.catalog.system import system_tasks
from pg_radar.collector.archive import ArchiveWriter
from pg_radar.collector.models import CollectionTask
from pg_radar.collector.producers import DataDirectoryResolver
from pg_radar.collector.runner import TaskRunner
from pg_radar.config import RunConfig

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class CollectionSummary:
    """Collected counts of one run, per phase."""

    system_collected: int = 0
    postgres_collected: int = 0

    @property
    def collected(self) -> int:
        return self.system_collected + self.postgres_collected


class CollectionOrchestrator:
    """Builds the task groups of one run and drives them through the runner."""

    def __init__(
        self,
        *,
        config: RunConfig,
        archive: ArchiveWriter,
        platform: str | None = None,
        log: logging.Logger | None = None,
    ) -> None:
        self.config = config
        self.platform = platform
        self.runner = TaskRunner(config=config, archive=archive, log=log)

    def run(self) -> CollectionSummary:
        system = self.system_tasks()
        postgres = self.postgres_tasks()

        summary = CollectionSummary()
        if system:
            summary.system_collected = self.runner.run(system)
        if postgres:
            summary.postgres_collected = self.runner.run(postgres)
        return summary

    def system_tasks(self) -> list[CollectionTask]:
        if self.config.collection.skip_system:
            return []
        return system_tasks(self.platform)

    def postgres_tasks(self) -> list[CollectionTask]:
        if self.config.collection.skip_postgres:
            return []

        tasks = postgres_tasks(DataDirectoryResolver())
        if self.config.db is None:
            logger.error("Failed to generate database tasks: PostgreSQL not initialized")
            return tasks
        try:
            tasks.extend(database_tasks(self.config.db))
        except SQLAlchemyError as error:
            logger.error("Failed to generate database tasks: %s", error)
        return tasks


def run_collection(
    *,
    config: RunConfig,
    archive: ArchiveWriter,
    platform: str | None = None,
) -> CollectionSummary:
    """Run a full collection with provided dependencies."""

    return CollectionOrchestrator(config=config, archive=archive, platform=platform).run()
