"""Stream tabular query results as tab-separated text."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from typing import Any, Protocol

from pg_radar.collector.errors import CollectionFailure
from pg_radar.collector.models import ByteSink

FIELD_SEPARATOR = b"\t"
ROW_TERMINATOR = b"\n"
_QUOTE = b'"'
_SPECIAL_BYTES = (b"\t", b"\n", b"\r", b'"')


class ResultCursor(Protocol):
    """Column names once, then rows on demand (SQLAlchemy ``CursorResult``)."""

    def keys(self) -> Iterable[str]:
        """Return ordered column names."""

    def __iter__(self) -> Iterator[Sequence[Any]]:
        """Yield result rows."""


def write_tsv(result: ResultCursor, sink: ByteSink) -> int:
    """Write a header line then one line per row; return the number of rows.

    Rows are pulled and written one at a time. Errors from the sink propagate
    unchanged; errors raised by the cursor become ``CollectionFailure`` and
    leave already written rows in place. Releasing ``result`` is up to the
    caller.
    """

    try:
        columns = [str(column) for column in result.keys()]
    except Exception as error:
        raise CollectionFailure(f"getting columns: {error}") from error

    sink.write(FIELD_SEPARATOR.join(column.encode("utf-8") for column in columns) + ROW_TERMINATOR)

    rows = iter(result)
    written = 0
    while True:
        try:
            row = next(rows)
        except StopIteration:
            return written
        except Exception as error:
            raise CollectionFailure(f"iterating rows: {error}") from error
        sink.write(format_row(row))
        written += 1


def format_row(values: Iterable[Any]) -> bytes:
    """Render one row as tab-separated fields with its line terminator."""

    return FIELD_SEPARATOR.join(format_field(value) for value in values) + ROW_TERMINATOR


def format_field(value: Any) -> bytes:
    """Render one value; quote it only when it holds a separator or quote."""

    if value is None:
        return b""
    if isinstance(value, bool):
        return b"true" if value else b"false"
    if isinstance(value, bytes | bytearray | memoryview):
        text = bytes(value)
    else:
        text = str(value).encode("utf-8")

    if any(special in text for special in _SPECIAL_BYTES):
        return _QUOTE + text.replace(_QUOTE, _QUOTE + _QUOTE) + _QUOTE
    return text
