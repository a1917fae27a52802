from __future__ import annotations

import dataclasses
import logging
import os
import time
from collections.abc import Iterable
from collections.abc import Iterator
from contextlib import ExitStack
from typing import TYPE_CHECKING

from .dumperconfig import DumperConfig
from .dumperdecoder import DecodeError
from .dumperdecoder import read_record
from .dumperemitter import DumperEmitter
from .dumperlister import DirectoryLister
from .dumpermodel import DataAttributes
from .dumpermodel import DirectoryEntry
from .dumpermodel import OutputRow
from .dumpermodel import Provenance

if TYPE_CHECKING:
    from contextlib import AbstractContextManager
    from typing import Protocol

    class _Lister(Protocol):
        def list(
            self, directory: str, pattern: str = ...
        ) -> AbstractContextManager[Iterator[DirectoryEntry]]:
            ...

        def stat(self, path: str) -> DirectoryEntry | None:
            ...

        def identity(self, path: str) -> tuple[int, int]:
            ...


def data_name_for(index_name: str, data_marker: str = "R") -> str:
    """
    Return the name of the data entry paired with an index file.

    The second character of the index name is replaced by the data marker,
    so "$IAB12CD.txt" pairs with "$RAB12CD.txt".
    """
    if len(index_name) < 2:
        raise ValueError(f"Index name too short to pair: {index_name!r}")

    return index_name[0] + data_marker + index_name[2:]


@dataclasses.dataclass
class DumpSummary:
    """Counters for one processed root."""

    records: int = 0
    rows: int = 0
    skipped: int = 0
    missing: int = 0


@dataclasses.dataclass
class _Frame:
    """An open listing of a folder under a deleted folder."""

    resources: ExitStack
    entries: Iterator[DirectoryEntry]
    name: str


class Dumper:
    """Report every deleted item of a recycle bin, folders walked in full."""

    logger = logging.getLogger(__name__)

    def __init__(
        self,
        config: DumperConfig,
        *,
        lister: _Lister | None = None,
        emitter: DumperEmitter | None = None,
    ) -> None:
        """
        Initialize a new Dumper.

        Args:
            config: The configuration to use for this dumper.

        Keyword Args:
            lister: Lists and stats filesystem entries. Defaults to a
                DirectoryLister on the host filesystem.
            emitter: Receives the report rows. Defaults to a DumperEmitter
                built from the config.
        """
        self._config = config
        self._lister = lister or DirectoryLister(include_hidden=config.include_hidden)
        self._emitter = emitter or DumperEmitter(config)
        self._summary = DumpSummary()

    def run(self, roots: Iterable[str]) -> bool:
        """
        Dump each root in turn, then flush the report.

        Returns:
            False if any root could not be listed, True otherwise.

        Raises:
            RowOverflowError: A row did not fit the configured capacity.
        """
        success = True
        try:
            for root in roots:
                success = self.dump(root) and success

        finally:
            self._emitter.emit(batch_size=self._config.max_emit_line_count)

        return success

    def dump(self, root: str) -> bool:
        """Queue the header and every row of one root. False if it can't be listed."""
        self.logger.info("Dumping recycle bin at %s", root)
        tic = time.perf_counter()
        self._summary = DumpSummary()

        try:
            with self._lister.list(root, self._config.index_pattern) as entries:
                self._emitter.add_header()

                for row in self._iter_listing(root, entries):
                    self._emitter.add_row(row)
                    self._summary.rows += 1

        except OSError as error:
            self.logger.error("Failed to dump '%s': %s", root, error)
            return False

        toc = time.perf_counter()
        self.logger.info("Dumped %s in %s seconds", root, toc - tic)
        self.logger.info(
            "Found %s records, %s rows, %s skipped, %s missing",
            self._summary.records,
            self._summary.rows,
            self._summary.skipped,
            self._summary.missing,
        )
        return True

    def iter_rows(self, root: str) -> Iterator[OutputRow]:
        """
        Yield the report rows for the recycle bin folder `root`.

        Rows come in listing order, a deleted folder's row before the rows of
        everything inside it.

        Raises:
            OSError: `root` cannot be listed.
        """
        with self._lister.list(root, self._config.index_pattern) as entries:
            yield from self._iter_listing(root, entries)

    def _iter_listing(
        self, root: str, entries: Iterator[DirectoryEntry]
    ) -> Iterator[OutputRow]:
        for entry in entries:
            if entry.is_directory:
                continue

            yield from self._visit_index_entry(root, entry)

    def _visit_index_entry(self, root: str, entry: DirectoryEntry) -> Iterator[OutputRow]:
        """Yield the rows of one index file and its paired data entry."""
        provenance = self._read_provenance(entry)
        if provenance is None:
            return

        data_name = data_name_for(entry.name, self._config.data_marker)
        try:
            data_entry = self._lister.stat(os.path.join(root, data_name))

        except OSError as error:
            self.logger.warning("Could not stat '%s': %s", data_name, error)
            data_entry = None

        if data_entry is None:
            self.logger.info("'%s' has no data entry '%s'", entry.name, data_name)
            self._summary.missing += 1
            yield OutputRow(provenance, None)
            return

        yield OutputRow(provenance, DataAttributes.from_entry(data_entry, data_name))

        if data_entry.is_directory:
            yield from self._walk_folder(data_entry.path, data_name, provenance)

    def _read_provenance(self, entry: DirectoryEntry) -> Provenance | None:
        """Decode an index file. None when the entry is to be skipped."""
        try:
            record = read_record(entry.path)

        except DecodeError as error:
            self.logger.warning("Skipping '%s': %s", entry.path, error)
            self._summary.skipped += 1
            return None

        except OSError as error:
            self.logger.warning("Could not read '%s': %s", entry.path, error)
            self._summary.skipped += 1
            return None

        if not record.display_path:
            self.logger.warning("Skipping '%s': no original path", entry.path)
            self._summary.skipped += 1
            return None

        self._summary.records += 1
        return Provenance.from_record(record, entry)

    def _walk_folder(
        self,
        path: str,
        name: str,
        provenance: Provenance,
    ) -> Iterator[OutputRow]:
        """
        Yield a row for everything below a deleted folder.

        Open listings are kept on an explicit stack: the top one is read until
        a folder turns up, whose listing is then pushed, so every folder's row
        precedes its contents and siblings wait for the folder to finish.
        """
        frames: list[_Frame] = []
        visited: set[tuple[int, int]] = set()

        try:
            self._push_folder(frames, visited, path, name)

            while frames:
                frame = frames[-1]
                entry = next(frame.entries, None)

                if entry is None:
                    frames.pop().resources.close()
                    continue

                relative_name = os.path.join(frame.name, entry.name)
                yield OutputRow(provenance, DataAttributes.from_entry(entry, relative_name))

                if entry.is_directory:
                    self._push_folder(frames, visited, entry.path, relative_name)

        finally:
            while frames:
                frames.pop().resources.close()

    def _push_folder(
        self,
        frames: list[_Frame],
        visited: set[tuple[int, int]],
        path: str,
        name: str,
    ) -> None:
        """Open the listing of a folder and push it, unless it is to be skipped."""
        resources = ExitStack()
        try:
            if self._config.detect_cycles:
                identity = self._lister.identity(path)
                if identity in visited:
                    self.logger.warning("'%s' was already visited, not descending", path)
                    return
                visited.add(identity)

            entries = resources.enter_context(self._lister.list(path, "*"))

        except OSError as error:
            self.logger.warning("Could not list '%s': %s", path, error)
            return

        frames.append(_Frame(resources, entries, name))
