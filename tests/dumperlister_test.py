from __future__ import annotations

import os
import sys
import tempfile
from collections.abc import Generator

import pytest

from recycle_dumper.dumperlister import DirectoryLister
from recycle_dumper.dumperlister import entry_from_stat
from recycle_dumper.dumpermodel import filetime_from_ns


@pytest.fixture
def bin_dir() -> Generator[str, None, None]:
    with tempfile.TemporaryDirectory() as root:
        for name, content in (("$IAAAAAA.txt", b"i"), ("$RAAAAAA.txt", b"data!"), (".hidden", b"")):
            with open(os.path.join(root, name), "wb") as file_out:
                file_out.write(content)
        os.mkdir(os.path.join(root, "$RBBBBBB"))
        yield root


def test_list_matches_pattern(bin_dir: str) -> None:
    lister = DirectoryLister()

    with lister.list(bin_dir, "$I*") as entries:
        names = [entry.name for entry in entries]

    assert names == ["$IAAAAAA.txt"]


@pytest.mark.skipif(sys.platform == "win32", reason="dot files are not hidden on Windows")
def test_list_all_skips_hidden(bin_dir: str) -> None:
    lister = DirectoryLister()

    with lister.list(bin_dir) as entries:
        names = sorted(entry.name for entry in entries)

    assert names == ["$IAAAAAA.txt", "$RAAAAAA.txt", "$RBBBBBB"]


@pytest.mark.skipif(sys.platform == "win32", reason="dot files are not hidden on Windows")
def test_list_includes_hidden_when_asked(bin_dir: str) -> None:
    lister = DirectoryLister(include_hidden=True)

    with lister.list(bin_dir) as entries:
        names = sorted(entry.name for entry in entries)

    assert ".hidden" in names


def test_list_entry_attributes(bin_dir: str) -> None:
    lister = DirectoryLister()

    with lister.list(bin_dir, "$R*") as entries:
        by_name = {entry.name: entry for entry in entries}

    data_file = by_name["$RAAAAAA.txt"]
    folder = by_name["$RBBBBBB"]

    assert data_file.is_directory is False
    assert data_file.size == 5
    assert data_file.path == os.path.join(bin_dir, "$RAAAAAA.txt")
    assert data_file.modified_at == filetime_from_ns(os.stat(data_file.path).st_mtime_ns)
    assert folder.is_directory is True
    assert folder.size == 0


def test_list_missing_directory_raises() -> None:
    lister = DirectoryLister()

    with pytest.raises(OSError):
        with lister.list("does/not/exist"):
            pass


def test_stat_existing(bin_dir: str) -> None:
    entry = DirectoryLister().stat(os.path.join(bin_dir, "$RAAAAAA.txt"))

    assert entry is not None
    assert entry.name == "$RAAAAAA.txt"
    assert entry.size == 5


def test_stat_missing(bin_dir: str) -> None:
    assert DirectoryLister().stat(os.path.join(bin_dir, "$RZZZZZZ")) is None


def test_identity_is_stable(bin_dir: str) -> None:
    lister = DirectoryLister()
    folder = os.path.join(bin_dir, "$RBBBBBB")

    assert lister.identity(folder) == lister.identity(folder)
    assert lister.identity(folder) != lister.identity(bin_dir)


def test_entry_from_stat_uses_ctime_without_birthtime(bin_dir: str) -> None:
    path = os.path.join(bin_dir, "$RAAAAAA.txt")
    stat_result = os.stat(path)

    entry = entry_from_stat("$RAAAAAA.txt", path, stat_result)

    if not hasattr(stat_result, "st_birthtime_ns") and not hasattr(stat_result, "st_birthtime"):
        assert entry.created_at == filetime_from_ns(stat_result.st_ctime_ns)
    assert entry.accessed_at == filetime_from_ns(stat_result.st_atime_ns)
