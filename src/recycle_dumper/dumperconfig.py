from __future__ import annotations

import logging
import os
from configparser import ConfigParser

NEW_CONFIG = """\
[recycle]
# Index files are matched with this pattern in each root.
index_pattern = $I*
# The data entry shares the index file name with this character replaced.
# The marker sits at the second position of the name.
data_marker = R
include_hidden = false
# Remember visited folders and never descend into the same one twice.
detect_cycles = false

[report]
# Maximum characters per report line. Longer rows abort the run.
row_capacity = 2048
# strftime format, timestamps are rendered in UTC.
time_format = %%Y-%%m-%%d %%H:%%M:%%S
# Quote fields containing the separator. Off keeps the historic layout.
quote_fields = false
separator = ,

[emit]
stdout = true
# Path of a report file. Empty disables file output.
file = {filename}
encoding = utf-16
max_emit_line_count = 500

    """


class DumperConfig:
    """Configuration for the Dumper."""

    logger = logging.getLogger("recycle_dumper.DumperConfig")

    def __init__(self, filepath: str | None = None) -> None:
        """Load the configuration from the given file. No file means defaults."""
        self._config = ConfigParser()

        if filepath is None:
            self.logger.debug("No config file given, using defaults")
            return

        success = self._config.read(filepath)

        if not success:
            raise ValueError(f"Could not read config file at {filepath}")

        self.logger.debug("Loaded config from %s", filepath)

    @property
    def index_pattern(self) -> str:
        """Return the name pattern of index files."""
        return self._config.get("recycle", "index_pattern", fallback="$I*")

    @property
    def data_marker(self) -> str:
        """Return the character marking a data entry name."""
        return self._config.get("recycle", "data_marker", fallback="R")

    @property
    def include_hidden(self) -> bool:
        """Return whether hidden entries are listed."""
        return self._config.getboolean("recycle", "include_hidden", fallback=False)

    @property
    def detect_cycles(self) -> bool:
        """Return whether folders already visited are skipped."""
        return self._config.getboolean("recycle", "detect_cycles", fallback=False)

    @property
    def row_capacity(self) -> int:
        """Return the maximum number of characters in a report line."""
        return self._config.getint("report", "row_capacity", fallback=2048)

    @property
    def time_format(self) -> str:
        """Return the strftime format for timestamps."""
        return self._config.get("report", "time_format", fallback="%Y-%m-%d %H:%M:%S")

    @property
    def quote_fields(self) -> bool:
        """Return whether fields holding the separator are quoted."""
        return self._config.getboolean("report", "quote_fields", fallback=False)

    @property
    def separator(self) -> str:
        """Return the field separator."""
        return self._config.get("report", "separator", fallback=",")

    @property
    def emit_stdout(self) -> bool:
        """Return whether to emit the report to stdout."""
        return self._config.getboolean("emit", "stdout", fallback=True)

    @property
    def emit_file(self) -> str | None:
        """Return the report file path, or None when file output is off."""
        return self._config.get("emit", "file", fallback="") or None

    @property
    def encoding(self) -> str:
        """Return the text encoding of the report file."""
        return self._config.get("emit", "encoding", fallback="utf-16")

    @property
    def max_emit_line_count(self) -> int:
        """Return the number of lines buffered before they are written."""
        count = self._config.getint("emit", "max_emit_line_count", fallback=500)
        if count < 1:
            raise ValueError(f"max_emit_line_count must be at least 1, got {count}")

        return count

    def override_output(self, filepath: str) -> None:
        """Send the report to `filepath` instead of stdout."""
        if not self._config.has_section("emit"):
            self._config.add_section("emit")
        self._config.set("emit", "file", filepath.replace("%", "%%"))
        self._config.set("emit", "stdout", "false")


def write_new_config(filename: str) -> None:
    """Write a new config file if one does not exist."""
    if os.path.exists(filename):
        return

    report_name = filename.replace(".ini", ".csv")
    config = NEW_CONFIG.format(filename=report_name)

    with open(filename, "w") as config_file:
        config_file.write(config)
