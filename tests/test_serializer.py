from __future__ import annotations

import io
from collections.abc import Iterator, Sequence
from decimal import Decimal
from typing import Any

import allure
import pytest

from pg_radar.collector.errors import CollectionFailure
from pg_radar.collector.producers import write_query_result
from pg_radar.collector.serializer import format_field, write_tsv

pytestmark = [
    allure.epic("Collection Engine"),
    allure.feature("TSV Serialization"),
]


class FakeCursor:
    def __init__(
        self,
        columns: list[str],
        rows: list[Sequence[Any]],
        error: Exception | None = None,
    ) -> None:
        self.columns = columns
        self.rows = rows
        self.error = error

    def keys(self) -> list[str]:
        return self.columns

    def __iter__(self) -> Iterator[Sequence[Any]]:
        yield from self.rows
        if self.error is not None:
            raise self.error


def _serialize(columns: list[str], rows: list[Sequence[Any]]) -> str:
    sink = io.BytesIO()
    write_tsv(FakeCursor(columns, rows), sink)
    return sink.getvalue().decode("utf-8")


def test_simple_rows_render_header_and_tab_separated_lines() -> None:
    assert _serialize(["id", "name"], [(1, "Alice"), (2, "Bob")]) == "id\tname\n1\tAlice\n2\tBob\n"


def test_empty_result_writes_header_only() -> None:
    assert _serialize(["col"], []) == "col\n"


def test_null_renders_as_empty_field() -> None:
    assert _serialize(["a", "b", "c"], [("x", None, "z")]) == "a\tb\tc\nx\t\tz\n"


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ('foo"bar', b'"foo""bar"'),
        ("foo'bar", b"foo'bar"),
        ("a\tb", b'"a\tb"'),
        ("line1\nline2", b'"line1\nline2"'),
        ("cr\rhere", b'"cr\rhere"'),
        ("plain", b"plain"),
    ],
)
def test_fields_are_quoted_only_when_they_hold_special_characters(
    value: str,
    expected: bytes,
) -> None:
    assert format_field(value) == expected


def test_raw_bytes_render_as_literal_text() -> None:
    assert format_field(b"raw text") == b"raw text"
    assert format_field(bytearray(b'say "hi"')) == b'"say ""hi"""'


def test_other_scalars_use_default_string_conversion() -> None:
    assert format_field(42) == b"42"
    assert format_field(Decimal("1.50")) == b"1.50"


def test_booleans_render_as_lowercase_words() -> None:
    assert format_field(True) == b"true"
    assert format_field(False) == b"false"


def test_write_tsv_returns_row_count() -> None:
    sink = io.BytesIO()
    assert write_tsv(FakeCursor(["n"], [(1,), (2,), (3,)]), sink) == 3


def test_cursor_error_keeps_already_written_rows() -> None:
    sink = io.BytesIO()
    cursor = FakeCursor(["n"], [(1,), (2,)], error=RuntimeError("connection lost"))

    with pytest.raises(CollectionFailure, match="iterating rows: connection lost"):
        write_tsv(cursor, sink)

    assert sink.getvalue() == b"n\n1\n2\n"


def test_sink_error_aborts_serialization() -> None:
    class BrokenSink:
        def write(self, data: bytes) -> int:
            raise OSError("disk full")

    with pytest.raises(OSError, match="disk full"):
        write_tsv(FakeCursor(["n"], [(1,)]), BrokenSink())


def test_query_result_streams_from_sqlalchemy_connection(sqlite_connection) -> None:
    sink = io.BytesIO()

    written = write_query_result(
        sqlite_connection,
        "SELECT 1 AS id, 'Alice' AS name UNION ALL SELECT 2, 'Bob' ORDER BY id",
        sink,
    )

    assert written == 2
    assert sink.getvalue() == b"id\tname\n1\tAlice\n2\tBob\n"


def test_query_result_renders_null_and_blob(sqlite_connection) -> None:
    sink = io.BytesIO()

    write_query_result(sqlite_connection, "SELECT 'a' AS x, NULL AS y, X'666f6f' AS z", sink)

    assert sink.getvalue() == b"x\ty\tz\na\t\tfoo\n"


def test_query_error_is_a_collection_failure(sqlite_connection) -> None:
    sink = io.BytesIO()

    with pytest.raises(CollectionFailure, match="query failed"):
        write_query_result(sqlite_connection, "SELECT * FROM missing_table", sink)

    assert sink.getvalue() == b""
