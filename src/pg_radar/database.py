"""PostgreSQL connection helpers built on SQLAlchemy Core."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import text
from sqlalchemy.engine import URL, Connection, CursorResult, Engine
from sqlalchemy.pool import NullPool
from sqlmodel import create_engine

from pg_radar.config import ConnectionSettings

TEMPLATE_DATABASES = frozenset({"template0", "template1"})

_LIST_DATABASES_SQL = "SELECT datname FROM pg_database WHERE datallowconn ORDER BY datname"


def build_url(settings: ConnectionSettings, *, database: str | None = None) -> URL:
    """Build a psycopg URL; ``database`` overrides the configured one."""

    return URL.create(
        "postgresql+psycopg",
        username=settings.username or None,
        password=settings.password or None,
        host=settings.host,
        port=settings.port,
        database=database or settings.database_name,
        query={"sslmode": "disable"},
    )


def build_postgres_engine(settings: ConnectionSettings, *, database: str | None = None) -> Engine:
    """Build an engine without pooling.

    Server-side cursors only live inside a transaction block, so the driver
    keeps its default transactional mode and every helper below scopes its
    statements to a short transaction of its own.
    """

    return create_engine(build_url(settings, database=database), poolclass=NullPool)


def connect(settings: ConnectionSettings, *, database: str | None = None) -> Connection:
    """Open and ping a connection; the caller closes it."""

    engine = build_postgres_engine(settings, database=database)
    connection = engine.connect()
    try:
        with connection.begin():
            connection.execute(text("SELECT 1")).close()
    except Exception:
        connection.close()
        engine.dispose()
        raise
    return connection


@contextmanager
def database_connection(settings: ConnectionSettings, database: str) -> Iterator[Connection]:
    """Task-scoped connection to ``database``, disposed on exit."""

    engine = build_postgres_engine(settings, database=database)
    try:
        with engine.connect() as connection:
            yield connection
    finally:
        engine.dispose()


def close_connection(connection: Connection) -> None:
    """Close a connection opened by ``connect`` and dispose its engine."""

    engine = connection.engine
    try:
        connection.close()
    finally:
        engine.dispose()


@contextmanager
def stream_query(connection: Connection, sql: str) -> Iterator[CursorResult]:
    """Execute ``sql`` with a server-side cursor so rows arrive on demand.

    The query runs in its own transaction, committed once the caller is done
    with the rows and rolled back on error, so a failed query leaves the
    connection usable for the next one. The result is released on exit.
    """

    with connection.begin():
        result = connection.execute(text(sql), execution_options={"stream_results": True})
        with result:
            yield result


def list_databases(connection: Connection) -> list[str]:
    """Names of connectable databases, template databases excluded."""

    with connection.begin(), connection.execute(text(_LIST_DATABASES_SQL)) as result:
        return [name for (name,) in result if name not in TEMPLATE_DATABASES]


def show_data_directory(connection: Connection) -> str:
    with connection.begin():
        return str(connection.execute(text("SHOW data_directory")).scalar_one())
