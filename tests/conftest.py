"""Shared test fixtures."""

from __future__ import annotations

import io
import logging
from collections.abc import Iterator
from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Connection

from pg_radar.collector.archive import ZipArchiveWriter


class RecordingArchive:
    """In-memory archive writer that records entry creation order."""

    def __init__(self) -> None:
        self.created: list[str] = []
        self.entries: dict[str, io.BytesIO] = {}

    def create_entry(self, name: str) -> io.BytesIO:
        self.created.append(name)
        buffer = io.BytesIO()
        self.entries[name] = buffer
        return buffer

    def content(self, name: str) -> bytes:
        return self.entries[name].getvalue()


@pytest.fixture()
def recording_archive() -> RecordingArchive:
    return RecordingArchive()


@pytest.fixture()
def zip_path(tmp_path: Path) -> Path:
    return tmp_path / "radar-test.zip"


@pytest.fixture()
def zip_archive(zip_path: Path) -> Iterator[ZipArchiveWriter]:
    archive = ZipArchiveWriter(zip_path)
    yield archive
    archive.close()


@pytest.fixture()
def sqlite_connection() -> Iterator[Connection]:
    """SQLAlchemy connection to a throwaway in-memory SQLite database."""

    engine = create_engine("sqlite://")
    try:
        with engine.connect() as connection:
            yield connection
    finally:
        engine.dispose()


@pytest.fixture(autouse=True)
def _restore_logging() -> Iterator[None]:
    """The CLI reconfigures root logging; undo it after each test."""

    root = logging.getLogger()
    handlers = root.handlers[:]
    root_level = root.level
    package_level = logging.getLogger("pg_radar").level
    yield
    root.handlers[:] = handlers
    root.setLevel(root_level)
    logging.getLogger("pg_radar").setLevel(package_level)
