from __future__ import annotations

from datetime import datetime
from datetime import timezone

import pytest

from recycle_dumper.dumpermodel import DataAttributes
from recycle_dumper.dumpermodel import DeletionRecord
from recycle_dumper.dumpermodel import DirectoryEntry
from recycle_dumper.dumpermodel import filetime_from_ns
from recycle_dumper.dumpermodel import filetime_to_datetime
from recycle_dumper.dumpermodel import format_filetime
from recycle_dumper.dumpermodel import OutputRow
from recycle_dumper.dumpermodel import Provenance

# 2023-01-01 00:00:00 UTC
NEW_YEAR_FILETIME = 133170048000000000
NEW_YEAR_UNIX = 1672531200


def test_filetime_from_ns() -> None:
    assert filetime_from_ns(NEW_YEAR_UNIX * 1_000_000_000) == NEW_YEAR_FILETIME
    assert filetime_from_ns(0) == 116444736000000000


def test_filetime_to_datetime() -> None:
    expected = datetime(2023, 1, 1, tzinfo=timezone.utc)

    assert filetime_to_datetime(NEW_YEAR_FILETIME) == expected


@pytest.mark.parametrize(
    "filetime, expected",
    [
        (NEW_YEAR_FILETIME, "2023-01-01 00:00:00"),
        (NEW_YEAR_FILETIME + 10_000_000 * 3661, "2023-01-01 01:01:01"),
        (0, "1601-01-01 00:00:00"),
        (2**64 - 1, str(2**64 - 1)),
    ],
)
def test_format_filetime(filetime: int, expected: str) -> None:
    assert format_filetime(filetime, "%Y-%m-%d %H:%M:%S") == expected


def test_display_path_stops_at_null() -> None:
    record = DeletionRecord(2, 10, NEW_YEAR_FILETIME, "C:\\a.txt\x00")

    assert record.display_path == "C:\\a.txt"


def test_provenance_from_record() -> None:
    record = DeletionRecord(2, 10, NEW_YEAR_FILETIME, "C:\\a.txt\x00")
    index = DirectoryEntry("$IABC123.txt", "bin/$IABC123.txt", False, 82, 1, 2, 3)

    provenance = Provenance.from_record(record, index)

    assert provenance == Provenance(
        original_path="C:\\a.txt",
        deleted_at=NEW_YEAR_FILETIME,
        deleted_size=10,
        index_file_name="$IABC123.txt",
        index_created=1,
        index_modified=2,
        index_accessed=3,
    )


def test_output_row_columns() -> None:
    provenance = Provenance("C:\\a.txt", NEW_YEAR_FILETIME, 10, "$IA", 1, 2, 3)
    entry = DirectoryEntry("$RA", "bin/$RA", False, 10, 4, 5, 6)

    row = OutputRow(provenance, DataAttributes.from_entry(entry, "$RA"))

    assert row.original_path == "C:\\a.txt"
    assert row.deleted_at == NEW_YEAR_FILETIME
    assert row.deleted_size == row.data_size == 10
    assert row.index_file_name == "$IA"
    assert row.data_file_name == "$RA"
    assert row.is_missing is False


def test_output_row_missing() -> None:
    provenance = Provenance("C:\\a.txt", NEW_YEAR_FILETIME, 10, "$IA", 1, 2, 3)

    row = OutputRow(provenance, None)

    assert row.is_missing is True
    assert row.data_file_name is None
    assert row.data_size is None
