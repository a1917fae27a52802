from __future__ import annotations

import logging
import sys
from collections import deque

from .dumperconfig import DumperConfig
from .dumpermodel import OutputRow
from .dumpermodel import Provenance
from .dumpermodel import format_filetime
from .dumperrow import RowBuilder

HEADER = [
    "Original Full Path",
    "Deleted Date Time",
    "Deleted File Size",
    "Recycle Info File",
    "Recycle Info Created",
    "Recycle Info Last Modified",
    "Recycle Info Last Accessed",
    "Original File",
    "Original File Created",
    "Original File Last Modified",
    "Original File Last Accessed",
    "Original File Size",
]

MISSING = "Missing"

# Names may hold lone surrogates (undecodable bytes, unpaired UTF-16 units).
ENCODING_ERRORS = "backslashreplace"


class DumperEmitter:
    """Format report rows and write them to the configured targets."""

    logger = logging.getLogger(__name__)

    def __init__(self, config: DumperConfig) -> None:
        """Initialize the emitter."""
        self._config = config
        self._lines: deque[str] = deque()
        self._builder = RowBuilder(
            config.row_capacity,
            separator=config.separator,
            quote_fields=config.quote_fields,
        )
        self._provenance: Provenance | None = None
        self._data_mark = 0
        self._file_started = False
        self._emitted = 0

    @property
    def emitted_count(self) -> int:
        """Return the number of lines written so far."""
        return self._emitted

    def add_header(self) -> None:
        """Queue the header line."""
        self._builder.rewind()
        self._provenance = None

        for title in HEADER:
            self._builder.write_field(title)

        self._add_line(self._builder.flush())
        self._builder.rewind()

    def add_row(self, row: OutputRow) -> None:
        """
        Queue one report row.

        Consecutive rows sharing a provenance reuse the fields already written
        for it and only rewrite the data columns.

        Raises:
            RowOverflowError: The row does not fit the configured capacity.
        """
        if row.provenance is not self._provenance:
            self._builder.rewind()
            self._provenance = None
            self._write_provenance(row.provenance)
            self._data_mark = self._builder.mark()
            self._provenance = row.provenance

        else:
            self._builder.rewind(self._data_mark)

        self._write_data(row)
        self._add_line(self._builder.flush())

    def emit(self, *, batch_size: int = 500) -> None:
        """
        Write all queued lines to the configured targets. Empties the queue.

        Keyword Args:
            batch_size: The number of lines to write at a time. Defaults to 500.
        """
        count = 0
        while self._lines:
            lines = self._get_lines(batch_size)

            self.to_stdout(lines)
            self.to_file(lines)

            count += len(lines)

        self._emitted += count
        self.logger.debug("Emitted %d report lines.", count)

    def _add_line(self, line: str) -> None:
        self._lines.append(line)
        if len(self._lines) >= self._config.max_emit_line_count:
            self.emit(batch_size=self._config.max_emit_line_count)

    def _get_lines(self, max_lines: int) -> list[str]:
        """Build a list of lines to write, removing them from the emitter."""
        lines: list[str] = []
        while self._lines and len(lines) < max_lines:
            lines.append(self._lines.popleft())

        return lines

    def _write_provenance(self, provenance: Provenance) -> None:
        time_format = self._config.time_format
        self._builder.write_field(provenance.original_path)
        self._builder.write_field(format_filetime(provenance.deleted_at, time_format))
        self._builder.write_field(str(provenance.deleted_size))
        self._builder.write_field(provenance.index_file_name)
        self._builder.write_field(format_filetime(provenance.index_created, time_format))
        self._builder.write_field(format_filetime(provenance.index_modified, time_format))
        self._builder.write_field(format_filetime(provenance.index_accessed, time_format))

    def _write_data(self, row: OutputRow) -> None:
        if row.data is None:
            self._builder.write_field(MISSING)
            for _ in range(4):
                self._builder.write_field("")
            return

        time_format = self._config.time_format
        self._builder.write_field(row.data.name)
        self._builder.write_field(format_filetime(row.data.created, time_format))
        self._builder.write_field(format_filetime(row.data.modified, time_format))
        self._builder.write_field(format_filetime(row.data.accessed, time_format))
        self._builder.write_field(str(row.data.size))

    def to_file(self, lines: list[str]) -> None:
        """
        Write report lines to the configured report file.

        The file is truncated by the first write of this emitter and appended
        to afterwards.
        """
        filename = self._config.emit_file
        if not filename or not lines:
            return

        mode = "a" if self._file_started else "w"
        with open(
            filename,
            mode,
            encoding=self._config.encoding,
            errors=ENCODING_ERRORS,
            newline="",
        ) as file_out:
            file_out.write("\n".join(lines) + "\n")

        self._file_started = True
        self.logger.debug("Emitted %d lines to %s", len(lines), filename)

    def to_stdout(self, lines: list[str]) -> None:
        """Write report lines to stdout."""
        if not self._config.emit_stdout or not lines:
            return

        text = "\n".join(lines)
        encoding = getattr(sys.stdout, "encoding", None) or "utf-8"
        print(text.encode(encoding, ENCODING_ERRORS).decode(encoding))

        self.logger.debug("Emitted %d lines to stdout", len(lines))
