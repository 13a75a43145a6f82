from __future__ import annotations

import logging

import allure
import pytest
from sqlalchemy.exc import SQLAlchemyError

from pg_radar.collector.models import ByteSink, CollectionTask, TaskCategory
from pg_radar.config import CollectionSettings, ConnectionSettings, RunConfig
from pg_radar.pipeline import CollectionOrchestrator, run_collection

pytestmark = [
    allure.epic("Collection Engine"),
    allure.feature("Collection Phases"),
]


def _task(category: TaskCategory, name: str, payload: bytes = b"data") -> CollectionTask:
    def produce(_config: RunConfig, sink: ByteSink) -> None:
        sink.write(payload)

    return CollectionTask(
        category=category.value,
        name=name,
        archive_path=f"{category.value}/{name}",
        producer=produce,
    )


@pytest.fixture()
def fake_catalog(monkeypatch: pytest.MonkeyPatch) -> dict[str, list]:
    calls: dict[str, list] = {"system": [], "postgres": [], "database": []}

    def fake_system(platform):
        calls["system"].append(platform)
        return [_task(TaskCategory.SYSTEM, "uname"), _task(TaskCategory.SYSTEM, "empty", b"")]

    def fake_postgres(resolver):
        calls["postgres"].append(resolver)
        return [_task(TaskCategory.POSTGRESQL, "version")]

    def fake_database(connection):
        calls["database"].append(connection)
        return [_task(TaskCategory.DATABASE, "app-extensions")]

    monkeypatch.setattr("pg_radar.pipeline.system_tasks", fake_system)
    monkeypatch.setattr("pg_radar.pipeline.postgres_tasks", fake_postgres)
    monkeypatch.setattr("pg_radar.pipeline.database_tasks", fake_database)
    return calls


def test_system_phase_runs_before_postgres(fake_catalog, recording_archive) -> None:
    connection = object()
    config = RunConfig(db=connection)

    summary = run_collection(config=config, archive=recording_archive, platform="linux")

    assert recording_archive.created == [
        "system/uname",
        "postgresql/version",
        "database/app-extensions",
    ]
    assert summary.system_collected == 1
    assert summary.postgres_collected == 2
    assert summary.collected == 3
    assert fake_catalog["system"] == ["linux"]
    assert fake_catalog["database"] == [connection]


def test_skip_system_runs_only_postgres(fake_catalog, recording_archive) -> None:
    config = RunConfig(
        connection=ConnectionSettings(database="app"),
        collection=CollectionSettings(skip_system=True),
        db=object(),
    )

    summary = run_collection(config=config, archive=recording_archive)

    assert fake_catalog["system"] == []
    assert summary.system_collected == 0
    assert summary.postgres_collected == 2


def test_skip_postgres_runs_only_system(fake_catalog, recording_archive) -> None:
    config = RunConfig(collection=CollectionSettings(skip_postgres=True))

    summary = run_collection(config=config, archive=recording_archive)

    assert fake_catalog["postgres"] == []
    assert fake_catalog["database"] == []
    assert summary.collected == 1


def test_missing_connection_keeps_instance_tasks_and_logs_error(
    fake_catalog,
    recording_archive,
    caplog: pytest.LogCaptureFixture,
) -> None:
    caplog.set_level(logging.ERROR, logger="pg_radar")
    orchestrator = CollectionOrchestrator(config=RunConfig(), archive=recording_archive)

    tasks = orchestrator.postgres_tasks()

    assert [task.name for task in tasks] == ["version"]
    assert fake_catalog["database"] == []
    assert "Failed to generate database tasks: PostgreSQL not initialized" in caplog.text


def test_database_listing_error_is_logged_and_collection_continues(
    monkeypatch: pytest.MonkeyPatch,
    fake_catalog,
    recording_archive,
    caplog: pytest.LogCaptureFixture,
) -> None:
    def broken_database(_connection):
        raise SQLAlchemyError("permission denied for pg_database")

    monkeypatch.setattr("pg_radar.pipeline.database_tasks", broken_database)
    caplog.set_level(logging.ERROR, logger="pg_radar")

    summary = run_collection(config=RunConfig(db=object()), archive=recording_archive)

    assert summary.collected == 2
    assert "Failed to generate database tasks: permission denied" in caplog.text
