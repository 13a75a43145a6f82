"""Output sink that materializes an archive entry only on first data."""

from __future__ import annotations

from typing import IO

from pg_radar.collector.archive import ArchiveWriter


class LazyEntryWriter:
    """Defer archive entry creation until a producer emits its first byte.

    Tasks that write nothing leave no empty entry behind. The adapter lives for
    one task; the archive writer finalizes the entry when the next one is
    created or the archive is closed.
    """

    def __init__(self, archive: ArchiveWriter, name: str) -> None:
        self.archive = archive
        self.name = name
        self._entry: IO[bytes] | None = None

    def write(self, data: bytes) -> int:
        if not data:
            return 0
        if self._entry is None:
            self._entry = self.archive.create_entry(self.name)
        return self._entry.write(data)

    @property
    def wrote_any(self) -> bool:
        return self._entry is not None
