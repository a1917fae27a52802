"""
Decode the index ($I) files that sit next to every item in a recycle bin.

Two layouts exist, selected by the leading version field. All integers are
little-endian and every character is a UTF-16 code unit.

  Version 1 (before Windows 10)
    uint64  version         1
    uint64  original_size   size in bytes of the deleted item
    uint64  deleted_at      FILETIME of the deletion
    wchar   path[260]       null terminated, null padded

  Version 2 (Windows 10 and later)
    uint64  version         2
    uint64  original_size
    uint64  deleted_at
    uint32  path_length     number of characters that follow
    wchar   path[path_length]

Any version other than 1 is read with the version 2 layout.
"""
from __future__ import annotations

import io
import struct
from typing import BinaryIO

from .dumpermodel import DeletionRecord

CHAR_WIDTH = 2
CHAR_ENCODING = "utf-16-le"
V1_PATH_CHARS = 260

_UINT64 = struct.Struct("<Q")
_UINT32 = struct.Struct("<I")

HEADER_SIZE = 3 * _UINT64.size


class DecodeError(ValueError):
    """An index file could not be decoded."""


class TruncatedError(DecodeError):
    """The index file is shorter than its layout requires."""


class EmptyNameError(DecodeError):
    """A version 2 index file declares a zero length path."""


def _read_exact(stream: BinaryIO, size: int, field: str) -> bytes:
    """Read exactly `size` bytes or raise TruncatedError."""
    data = stream.read(size)
    if len(data) != size:
        raise TruncatedError(f"{field}: expected {size} bytes, got {len(data)}")
    return data


def _read_chars(stream: BinaryIO, count: int, field: str) -> str:
    raw = _read_exact(stream, count * CHAR_WIDTH, field)
    return raw.decode(CHAR_ENCODING, errors="replace")


def decode_stream(stream: BinaryIO) -> DeletionRecord:
    """
    Decode one index record from a binary stream.

    Raises:
        TruncatedError: The stream ends before the record does.
        EmptyNameError: A version 2 record has a zero length path.
    """
    (version,) = _UINT64.unpack(_read_exact(stream, _UINT64.size, "version"))
    (size,) = _UINT64.unpack(_read_exact(stream, _UINT64.size, "original_size"))
    (deleted_at,) = _UINT64.unpack(_read_exact(stream, _UINT64.size, "deleted_at"))

    if version == 1:
        path = _read_chars(stream, V1_PATH_CHARS, "path")
        path = path.split("\x00", 1)[0]

    else:
        raw_length = _read_exact(stream, _UINT32.size, "path_length")
        (path_length,) = _UINT32.unpack(raw_length)
        if path_length == 0:
            raise EmptyNameError("path_length is zero")
        path = _read_chars(stream, path_length, "path")

    return DeletionRecord(
        format_version=version,
        original_size=size,
        deleted_at=deleted_at,
        original_path=path,
    )


def decode(data: bytes) -> DeletionRecord:
    """Decode one index record from its raw bytes."""
    return decode_stream(io.BytesIO(data))


def read_record(filepath: str) -> DeletionRecord:
    """
    Open and decode the index file at `filepath`.

    Raises:
        OSError: The file cannot be opened or read.
        DecodeError: The contents are not a valid index record.
    """
    with open(filepath, "rb") as index_file:
        return decode_stream(index_file)


def encode_record(record: DeletionRecord) -> bytes:
    """
    Encode a record in the layout selected by its format_version.

    Raises:
        ValueError: A version 1 path does not fit its 260 character field.
    """
    header = (
        _UINT64.pack(record.format_version)
        + _UINT64.pack(record.original_size)
        + _UINT64.pack(record.deleted_at)
    )
    path = record.original_path.encode(CHAR_ENCODING)

    if record.format_version == 1:
        field_size = V1_PATH_CHARS * CHAR_WIDTH
        if len(path) > field_size:
            raise ValueError(f"Path exceeds {V1_PATH_CHARS} characters")
        return header + path.ljust(field_size, b"\x00")

    return header + _UINT32.pack(len(path) // CHAR_WIDTH) + path
