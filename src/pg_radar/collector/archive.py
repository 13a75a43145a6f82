"""Zip archive writer that keeps at most one entry open at a time."""

from __future__ import annotations

import time
import zipfile
from pathlib import Path
from typing import IO, Protocol

DEFAULT_COMPRESSION = zipfile.ZIP_DEFLATED


class ArchiveWriter(Protocol):
    """Archive container that hands out one writable entry at a time."""

    def create_entry(self, name: str) -> IO[bytes]:
        """Finalize any open entry and open a new one named ``name``."""


class ZipArchiveWriter:
    """Write-once zip archive with streamed entries.

    Opening a new entry finalizes the previous one, so producers never need to
    close what they wrote. ``close`` finalizes the last entry and the central
    directory.
    """

    def __init__(self, path: Path, *, compression: int = DEFAULT_COMPRESSION) -> None:
        self.path = path
        self.compression = compression
        self._zip = zipfile.ZipFile(path, mode="w", compression=compression)
        self._entry: IO[bytes] | None = None

    def create_entry(self, name: str) -> IO[bytes]:
        self._finish_entry()
        info = zipfile.ZipInfo(filename=name, date_time=time.localtime()[:6])
        info.compress_type = self.compression
        self._entry = self._zip.open(info, mode="w", force_zip64=True)
        return self._entry

    def close(self) -> None:
        try:
            self._finish_entry()
        finally:
            self._zip.close()

    def __enter__(self) -> ZipArchiveWriter:
        return self

    def __exit__(self, *_exc: object) -> None:
        self.close()

    def _finish_entry(self) -> None:
        if self._entry is None:
            return
        entry, self._entry = self._entry, None
        entry.close()
