"""Exception taxonomy for collection producers."""

from __future__ import annotations


class CollectorError(RuntimeError):
    """Base error raised by a collection producer."""


class SkipCollection(CollectorError):
    """The requested datum is legitimately unavailable on this system."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class CollectionFailure(CollectorError):
    """A producer hit a genuine fault (bad exit status, I/O or query error)."""


class ConfigurationError(ValueError):
    """Invalid run configuration; prevents any collection from starting."""
