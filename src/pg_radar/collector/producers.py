"""Producer factories backed by subprocesses, files and SQL queries."""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path

from sqlalchemy.engine import Connection
from sqlalchemy.exc import SQLAlchemyError

from pg_radar.collector.errors import CollectionFailure, SkipCollection
from pg_radar.collector.failure_classifier import (
    classify_command_failure,
    normalize_special_case,
)
from pg_radar.collector.models import ByteSink, Producer
from pg_radar.collector.serializer import write_tsv
from pg_radar.config import RunConfig
from pg_radar.database import database_connection, show_data_directory, stream_query

logger = logging.getLogger(__name__)

FILE_CHUNK_SIZE = 64 * 1024


def command_producer(command: str, *args: str) -> Producer:
    """Run ``command`` and write its combined stdout/stderr."""

    def produce(_config: RunConfig, sink: ByteSink) -> None:
        sink.write(run_command(command, *args))

    return produce


def file_producer(path: str | Path) -> Producer:
    """Copy the file at ``path`` into the sink."""

    def produce(_config: RunConfig, sink: ByteSink) -> None:
        copy_file(Path(path), sink)

    return produce


def query_producer(sql: str) -> Producer:
    """Run ``sql`` on the run connection and write the result as TSV."""

    def produce(config: RunConfig, sink: ByteSink) -> None:
        if config.db is None:
            raise CollectionFailure("PostgreSQL not initialized")
        write_query_result(config.db, sql, sink)

    return produce


def database_query_producer(database: str, sql: str) -> Producer:
    """Run ``sql`` on a fresh connection to ``database`` and write TSV."""

    def produce(config: RunConfig, sink: ByteSink) -> None:
        try:
            with database_connection(config.connection, database) as connection:
                write_query_result(connection, sql, sink)
        except SQLAlchemyError as error:
            raise CollectionFailure(f"connecting to {database}: {error}") from error

    return produce


def config_file_producer(filename: str, data_directory: DataDirectoryResolver) -> Producer:
    """Copy ``filename`` from the server data directory."""

    def produce(config: RunConfig, sink: ByteSink) -> None:
        copy_file(Path(data_directory.resolve(config)) / filename, sink)

    return produce


class DataDirectoryResolver:
    """Locate the server data directory, querying the server at most once."""

    def __init__(self) -> None:
        self._detected: str | None = None

    def resolve(self, config: RunConfig) -> str:
        if config.connection.data_dir:
            return config.connection.data_dir
        if self._detected is None:
            if config.db is None:
                raise CollectionFailure("PostgreSQL not initialized")
            try:
                self._detected = show_data_directory(config.db)
            except SQLAlchemyError as error:
                raise CollectionFailure(f"detecting data directory: {error}") from error
            logger.debug("Detected data directory %s", self._detected)
        return self._detected


def run_command(command: str, *args: str) -> bytes:
    """Run a command and return its combined output, classifying failures."""

    try:
        completed = subprocess.run(  # noqa: S603
            [command, *args],
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            check=False,
        )
    except FileNotFoundError as error:
        raise SkipCollection(f"command not found: {command}") from error
    except OSError as error:
        classification = classify_command_failure(
            exit_code=None,
            output="",
            error_message=str(error),
        )
        if classification.skip:
            raise SkipCollection(classification.describe(command)) from error
        raise CollectionFailure(f"command '{command}' failed to start: {error}") from error

    output = completed.stdout
    if completed.returncode == 0:
        return output

    special = normalize_special_case(command, output)
    if special is not None:
        return special

    output_text = output.decode("utf-8", errors="replace")
    classification = classify_command_failure(
        exit_code=completed.returncode,
        output=output_text,
    )
    if classification.skip:
        raise SkipCollection(classification.describe(command))
    raise CollectionFailure(
        f"command '{' '.join([command, *args])}' failed: "
        f"exit status {completed.returncode} (output: {output_text.strip()})",
    )


def copy_file(path: Path, sink: ByteSink) -> None:
    """Stream a file into the sink in fixed-size chunks."""

    try:
        handle = path.open("rb")
    except FileNotFoundError as error:
        raise SkipCollection(f"file not found: {path}") from error
    except OSError as error:
        raise CollectionFailure(f"read failed: {error}") from error

    with handle:
        while chunk := handle.read(FILE_CHUNK_SIZE):
            sink.write(chunk)


def write_query_result(connection: Connection, sql: str, sink: ByteSink) -> int:
    """Execute ``sql`` and stream the rows as TSV; the cursor is always released."""

    try:
        with stream_query(connection, sql) as result:
            return write_tsv(result, sink)
    except SQLAlchemyError as error:
        raise CollectionFailure(f"query failed: {error}") from error
