"""Catalog entry types and their conversion into collection tasks."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from pg_radar.collector.models import CollectionTask
from pg_radar.collector.producers import (
    DataDirectoryResolver,
    command_producer,
    config_file_producer,
    file_producer,
    query_producer,
)


@dataclass(frozen=True, slots=True)
class CommandSpec:
    """Collect the output of one external command."""

    name: str
    archive_path: str
    command: str
    args: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class FileSpec:
    """Collect one file from the local filesystem."""

    name: str
    archive_path: str
    path: str


@dataclass(frozen=True, slots=True)
class QuerySpec:
    """Collect one SQL query result as TSV.

    Per-database specs carry a ``{database}`` placeholder in ``archive_path``.
    """

    name: str
    archive_path: str
    query: str


@dataclass(frozen=True, slots=True)
class ConfigFileSpec:
    """Collect one file from the PostgreSQL data directory."""

    name: str
    archive_path: str
    filename: str


def build_command_tasks(category: str, specs: Iterable[CommandSpec]) -> list[CollectionTask]:
    return [
        CollectionTask(
            category=category,
            name=spec.name,
            archive_path=spec.archive_path,
            producer=command_producer(spec.command, *spec.args),
        )
        for spec in specs
    ]


def build_file_tasks(category: str, specs: Iterable[FileSpec]) -> list[CollectionTask]:
    return [
        CollectionTask(
            category=category,
            name=spec.name,
            archive_path=spec.archive_path,
            producer=file_producer(spec.path),
        )
        for spec in specs
    ]


def build_query_tasks(category: str, specs: Iterable[QuerySpec]) -> list[CollectionTask]:
    return [
        CollectionTask(
            category=category,
            name=spec.name,
            archive_path=spec.archive_path,
            producer=query_producer(spec.query),
        )
        for spec in specs
    ]


def build_config_file_tasks(
    category: str,
    specs: Iterable[ConfigFileSpec],
    data_directory: DataDirectoryResolver,
) -> list[CollectionTask]:
    return [
        CollectionTask(
            category=category,
            name=spec.name,
            archive_path=spec.archive_path,
            producer=config_file_producer(spec.filename, data_directory),
        )
        for spec in specs
    ]
