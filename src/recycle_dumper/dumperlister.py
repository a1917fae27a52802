from __future__ import annotations

import fnmatch
import logging
import os
import stat
from collections.abc import Generator
from collections.abc import Iterator
from contextlib import contextmanager

from .dumpermodel import DirectoryEntry
from .dumpermodel import filetime_from_ns

_HIDDEN_ATTRIBUTE = getattr(stat, "FILE_ATTRIBUTE_HIDDEN", 0x2)


def _created_ns(stat_result: os.stat_result) -> int:
    """Birth time in nanoseconds where the platform records it, else st_ctime."""
    birthtime_ns = getattr(stat_result, "st_birthtime_ns", None)
    if birthtime_ns is not None:
        return birthtime_ns

    birthtime = getattr(stat_result, "st_birthtime", None)
    if birthtime is not None:
        return int(birthtime * 1_000_000_000)

    return stat_result.st_ctime_ns


def entry_from_stat(name: str, path: str, stat_result: os.stat_result) -> DirectoryEntry:
    """Build a DirectoryEntry from a stat result."""
    is_directory = stat.S_ISDIR(stat_result.st_mode)
    return DirectoryEntry(
        name=name,
        path=path,
        is_directory=is_directory,
        # Directories report no size of their own
        size=0 if is_directory else stat_result.st_size,
        created_at=filetime_from_ns(_created_ns(stat_result)),
        modified_at=filetime_from_ns(stat_result.st_mtime_ns),
        accessed_at=filetime_from_ns(stat_result.st_atime_ns),
    )


class DirectoryLister:
    """List and stat entries on the host filesystem."""

    logger = logging.getLogger(__name__)

    def __init__(self, *, include_hidden: bool = False) -> None:
        """
        Initialize a new DirectoryLister.

        Keyword Args:
            include_hidden: List hidden entries as well. Defaults to False.
        """
        self._include_hidden = include_hidden

    @contextmanager
    def list(self, directory: str, pattern: str = "*") -> Generator[Iterator[DirectoryEntry], None, None]:
        """
        List the entries of `directory` whose names match `pattern`.

        The listing handle stays open until the context exits. Usage:

            with lister.list(root, "$I*") as entries:
                for entry in entries:
                    ...

        Raises:
            OSError: The directory cannot be opened.
        """
        self.logger.debug("Listing %s matching %s", directory, pattern)
        with os.scandir(directory) as scanner:
            yield self._iter_entries(scanner, pattern)

    def _iter_entries(self, scanner: Iterator[os.DirEntry[str]], pattern: str) -> Iterator[DirectoryEntry]:
        for dir_entry in scanner:
            if not fnmatch.fnmatch(dir_entry.name, pattern):
                continue

            try:
                stat_result = dir_entry.stat()

            except FileNotFoundError:
                # Removed between the listing and the stat
                self.logger.debug("'%s' vanished during listing.", dir_entry.path)
                continue

            except OSError as error:
                self.logger.warning("Could not stat '%s': %s", dir_entry.path, error)
                continue

            if not self._include_hidden and self._is_hidden(dir_entry.name, stat_result):
                self.logger.debug("Skipping hidden entry '%s'", dir_entry.path)
                continue

            yield entry_from_stat(dir_entry.name, dir_entry.path, stat_result)

    def stat(self, path: str) -> DirectoryEntry | None:
        """Return the entry at `path`, or None if nothing exists there."""
        try:
            stat_result = os.stat(path)

        except FileNotFoundError:
            return None

        return entry_from_stat(os.path.basename(path), path, stat_result)

    def identity(self, path: str) -> tuple[int, int]:
        """Return the (device, inode) pair identifying the directory at `path`."""
        stat_result = os.stat(path)
        return stat_result.st_dev, stat_result.st_ino

    @staticmethod
    def _is_hidden(name: str, stat_result: os.stat_result) -> bool:
        attributes = getattr(stat_result, "st_file_attributes", None)
        if attributes is not None:
            return bool(attributes & _HIDDEN_ATTRIBUTE)

        return name.startswith(".")
