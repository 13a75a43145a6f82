"""Controller for the collect CLI command."""

from __future__ import annotations

import logging
import socket
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import IntEnum
from pathlib import Path

from sqlalchemy.exc import SQLAlchemyError

from pg_radar.collector.archive import ZipArchiveWriter
from pg_radar.config import RunConfig
from pg_radar.database import close_connection, connect
from pg_radar.pipeline import run_collection

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y%m%d-%H%M%S"


class ExitCode(IntEnum):
    """Process exit statuses of the collect command."""

    OK = 0
    USAGE_ERROR = 1
    COLLECT_ERROR = 3
    NO_DATA = 4


@dataclass(slots=True)
class CollectCommand:
    """CLI inputs for the collect command."""

    host: str | None = None
    port: int | None = None
    database: str | None = None
    username: str | None = None
    data_dir: str | None = None
    output_dir: Path | None = None
    skip_system: bool = False
    skip_postgres: bool = False
    verbose: bool = False
    very_verbose: bool = False
    platform: str | None = None


@dataclass(slots=True)
class CollectResult:
    """Lines to print and the process exit status."""

    exit_code: ExitCode
    lines: list[str] = field(default_factory=list)
    archive_path: Path | None = None
    collected: int = 0


class RadarCliController:
    """Coordinates one collection session: connect, archive, run, summarize."""

    def build_config(self, command: CollectCommand) -> RunConfig:
        config = RunConfig.from_env(
            host=command.host,
            port=command.port,
            database=command.database,
            username=command.username,
            data_dir=command.data_dir,
            output_dir=command.output_dir,
            skip_system=command.skip_system,
            skip_postgres=command.skip_postgres,
            verbose=command.verbose,
            very_verbose=command.very_verbose,
        )
        config.validate()
        return config

    def collect(self, config: RunConfig, *, platform: str | None = None) -> CollectResult:
        """Run one session with a configuration already checked by ``build_config``."""

        output_path = config.collection.output_dir / archive_file_name(_hostname(), datetime.now())

        config = _connect_postgres(config)
        try:
            logger.info("Creating archive: %s", output_path)
            try:
                archive = ZipArchiveWriter(output_path)
            except OSError as error:
                logger.error("Failed to create output file: %s", error)
                return CollectResult(exit_code=ExitCode.COLLECT_ERROR)

            logger.info("Starting data collection...")
            try:
                summary = run_collection(config=config, archive=archive, platform=platform)
            except BaseException:
                _close_after_error(archive)
                raise
            try:
                archive.close()
            except OSError as error:
                logger.error("Failed to close archive: %s", error)
                return CollectResult(exit_code=ExitCode.COLLECT_ERROR)
        finally:
            if config.db is not None:
                close_connection(config.db)

        lines = summary_lines(output_path, summary.collected, verbose=config.collection.verbose)
        if summary.collected == 0:
            logger.error("No data collected - this may indicate a problem")
            exit_code = ExitCode.NO_DATA
        else:
            exit_code = ExitCode.OK
        return CollectResult(
            exit_code=exit_code,
            lines=lines,
            archive_path=output_path,
            collected=summary.collected,
        )


def archive_file_name(hostname: str, now: datetime) -> str:
    return f"radar-{hostname or 'unknown'}-{now.strftime(TIMESTAMP_FORMAT)}.zip"


def summary_lines(archive_path: Path, collected: int, *, verbose: bool) -> list[str]:
    """Human-readable run summary."""

    try:
        size_kb = archive_path.stat().st_size // 1024
    except OSError as error:
        logger.error("Failed to stat archive: %s", error)
        return []

    headline = f"✓ Archive created: {archive_path} ({size_kb} KB)"
    if not verbose:
        return [headline]
    return ["", headline, f"  Total collectors: {collected}"]


def _connect_postgres(config: RunConfig) -> RunConfig:
    if config.collection.skip_postgres:
        return config

    settings = config.connection
    logger.info(
        "Connecting to PostgreSQL at %s:%d/%s",
        settings.host,
        settings.port,
        settings.database_name,
    )
    try:
        connection = connect(settings)
    except SQLAlchemyError as error:
        logger.error("Could not connect to PostgreSQL: %s", error)
        logger.error("Continuing with system data collection only...")
        return replace(config, collection=replace(config.collection, skip_postgres=True))

    logger.info("PostgreSQL connected")
    return replace(config, db=connection)


def _close_after_error(archive: ZipArchiveWriter) -> None:
    # the collection error is the one to report
    try:
        archive.close()
    except Exception as error:  # noqa: BLE001
        logger.error("Failed to close archive: %s", error)


def _hostname() -> str:
    try:
        return socket.gethostname() or "unknown"
    except OSError:
        return "unknown"
