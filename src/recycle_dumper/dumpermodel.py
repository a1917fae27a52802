from __future__ import annotations

import dataclasses
from datetime import datetime
from datetime import timedelta
from datetime import timezone

# 100-ns ticks between 1601-01-01 and 1970-01-01
EPOCH_AS_FILETIME = 116444736000000000
HUNDREDS_OF_NANOSECONDS = 10_000_000

FILETIME_EPOCH = datetime(1601, 1, 1, tzinfo=timezone.utc)


def filetime_from_ns(nanoseconds: int) -> int:
    """Convert nanoseconds since the unix epoch to FILETIME ticks."""
    return nanoseconds // 100 + EPOCH_AS_FILETIME


def filetime_to_datetime(filetime: int) -> datetime:
    """
    Convert FILETIME ticks to an aware UTC datetime.

    Raises:
        OverflowError: When the ticks are outside the datetime range.
    """
    return FILETIME_EPOCH + timedelta(microseconds=filetime // 10)


def format_filetime(filetime: int, time_format: str) -> str:
    """Render FILETIME ticks in UTC, or as the raw tick count when out of range."""
    try:
        return filetime_to_datetime(filetime).strftime(time_format)
    except (OverflowError, ValueError):
        return str(filetime)


@dataclasses.dataclass(frozen=True)
class DeletionRecord:
    """The contents of one index ($I) file."""

    format_version: int
    original_size: int
    deleted_at: int
    original_path: str

    @property
    def display_path(self) -> str:
        """The original path up to its first null character."""
        return self.original_path.split("\x00", 1)[0]


@dataclasses.dataclass(frozen=True)
class DirectoryEntry:
    """One entry of a directory listing. Timestamps are FILETIME ticks."""

    name: str
    path: str
    is_directory: bool
    size: int
    created_at: int
    modified_at: int
    accessed_at: int


@dataclasses.dataclass(frozen=True)
class Provenance:
    """The deletion columns shared by a deleted item and everything beneath it."""

    original_path: str
    deleted_at: int
    deleted_size: int
    index_file_name: str
    index_created: int
    index_modified: int
    index_accessed: int

    @classmethod
    def from_record(cls, record: DeletionRecord, index: DirectoryEntry) -> Provenance:
        return cls(
            original_path=record.display_path,
            deleted_at=record.deleted_at,
            deleted_size=record.original_size,
            index_file_name=index.name,
            index_created=index.created_at,
            index_modified=index.modified_at,
            index_accessed=index.accessed_at,
        )


@dataclasses.dataclass(frozen=True)
class DataAttributes:
    """Attributes of a data ($R) entry or one of its descendants."""

    name: str
    created: int
    modified: int
    accessed: int
    size: int
    is_directory: bool = False

    @classmethod
    def from_entry(cls, entry: DirectoryEntry, name: str) -> DataAttributes:
        return cls(
            name=name,
            created=entry.created_at,
            modified=entry.modified_at,
            accessed=entry.accessed_at,
            size=entry.size,
            is_directory=entry.is_directory,
        )


@dataclasses.dataclass(frozen=True)
class OutputRow:
    """
    One report row.

    A row with `data` set to None reports a data entry that no longer exists
    next to its index file.
    """

    provenance: Provenance
    data: DataAttributes | None

    @property
    def is_missing(self) -> bool:
        return self.data is None

    @property
    def original_path(self) -> str:
        return self.provenance.original_path

    @property
    def deleted_at(self) -> int:
        return self.provenance.deleted_at

    @property
    def deleted_size(self) -> int:
        return self.provenance.deleted_size

    @property
    def index_file_name(self) -> str:
        return self.provenance.index_file_name

    @property
    def data_file_name(self) -> str | None:
        return self.data.name if self.data else None

    @property
    def data_size(self) -> int | None:
        return self.data.size if self.data else None
