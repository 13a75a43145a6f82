from __future__ import annotations

import allure
import pytest
from sqlalchemy import text

from pg_radar.catalog.postgres import (
    CONFIG_FILES,
    INSTANCE_QUERIES,
    PER_DATABASE_QUERIES,
    PG_STATVIZ_QUERIES,
    database_tasks,
    postgres_tasks,
)
from pg_radar.catalog.system import (
    SHARED_COMMANDS,
    SHARED_FILES,
    normalize_platform,
    system_catalog,
    system_tasks,
)
from pg_radar.collector.models import TaskCategory
from pg_radar.database import list_databases

pytestmark = [
    allure.epic("Collection Catalog"),
    allure.feature("Task Definitions"),
]


@pytest.fixture()
def pg_database_table(sqlite_connection):
    with sqlite_connection.begin():
        sqlite_connection.execute(
            text("CREATE TABLE pg_database (datname TEXT, datallowconn BOOLEAN)"),
        )
        sqlite_connection.execute(
            text(
                "INSERT INTO pg_database VALUES "
                "('postgres', 1), ('template0', 0), ('template1', 1), "
                "('app', 1), ('frozen', 0)",
            ),
        )
    return sqlite_connection


@pytest.mark.parametrize("platform", ["linux", "darwin", "freebsd"])
def test_system_archive_paths_are_unique(platform: str) -> None:
    paths = [task.archive_path for task in system_tasks(platform)]
    assert len(paths) == len(set(paths))


@pytest.mark.parametrize("platform", ["linux", "darwin"])
def test_system_tasks_are_named_uniquely_and_categorized(platform: str) -> None:
    tasks = system_tasks(platform)

    assert len({task.name for task in tasks}) == len(tasks)
    assert {task.category for task in tasks} == {TaskCategory.SYSTEM.value}
    assert all(task.archive_path.startswith("system/") for task in tasks)


def test_linux_and_darwin_catalogs_differ_but_share_common_entries() -> None:
    linux = {task.name for task in system_tasks("linux")}
    darwin = {task.name for task in system_tasks("darwin")}

    assert "meminfo" in linux
    assert "meminfo" not in darwin
    assert "system-version" in darwin
    assert {"uname", "df", "hosts"} <= linux & darwin


def test_unknown_platform_gets_only_shared_entries() -> None:
    catalog = system_catalog("plan9")

    assert catalog.commands == SHARED_COMMANDS
    assert catalog.files == SHARED_FILES


def test_commands_come_before_files() -> None:
    tasks = system_tasks("linux")
    catalog = system_catalog("linux")

    assert [task.name for task in tasks[: len(catalog.commands)]] == [
        spec.name for spec in catalog.commands
    ]
    assert tasks[-1].name == "hosts"


@pytest.mark.parametrize(
    ("platform", "expected"),
    [("linux", "linux"), ("linux2", "linux"), ("darwin", "darwin"), ("win32", "win32")],
)
def test_normalize_platform(platform: str, expected: str) -> None:
    assert normalize_platform(platform) == expected


def test_postgres_tasks_are_queries_then_config_files() -> None:
    tasks = postgres_tasks()

    assert len(tasks) == len(INSTANCE_QUERIES) + len(CONFIG_FILES) == 39
    assert [task.name for task in tasks[-len(CONFIG_FILES) :]] == [
        spec.name for spec in CONFIG_FILES
    ]
    assert all(task.archive_path.startswith("postgresql/") for task in tasks)
    assert len({task.archive_path for task in tasks}) == len(tasks)


def test_list_databases_skips_templates_and_disallowed(pg_database_table) -> None:
    assert list_databases(pg_database_table) == ["app", "postgres"]


def test_database_tasks_cover_every_database(pg_database_table) -> None:
    tasks = database_tasks(pg_database_table)
    per_database = len(PER_DATABASE_QUERIES) + len(PG_STATVIZ_QUERIES)

    assert len(tasks) == 2 * per_database == 56
    assert tasks[0].name == "app/extensions"
    assert tasks[0].archive_path == "databases/app/extensions.tsv"
    assert tasks[per_database].name == "postgres/extensions"
    assert {task.category for task in tasks} == {TaskCategory.DATABASE.value}


def test_database_tasks_place_statviz_under_own_directory(pg_database_table) -> None:
    paths = {task.archive_path for task in database_tasks(pg_database_table)}

    assert "pg_statviz/app/buf.tsv" in paths
    assert "pg_statviz/postgres/wal.tsv" in paths
    assert len(paths) == 56
