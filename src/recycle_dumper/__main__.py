from __future__ import annotations

import argparse
import logging
from pathlib import Path

from recycle_dumper.dumper import Dumper
from recycle_dumper.dumperconfig import DumperConfig
from recycle_dumper.dumperconfig import write_new_config
from recycle_dumper.dumperrow import RowOverflowError

LOG_FORMAT = "%(asctime)s %(levelname)s %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def parse_args(args: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Dump the deleted files and folders of recycle bins as CSV.",
    )
    parser.add_argument(
        "roots",
        type=str,
        nargs="*",
        help="Recycle bin folders to dump, e.g. C:\\$Recycle.Bin\\<SID>.",
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="The path to the configuration file. Default: built in defaults.",
    )
    parser.add_argument(
        "--output",
        type=str,
        default=None,
        help="Write the report to this file instead of stdout.",
    )
    parser.add_argument(
        "--debug",
        help="Enable debug logging.",
        default=False,
        action="store_true",
    )
    parser.add_argument(
        "--log-file",
        help="Enable logging to a file next to the report or config file.",
        default=False,
        action="store_true",
    )
    parser.add_argument(
        "--make-config",
        help="Create a default configuration file at the --config path.",
        default=False,
        action="store_true",
    )
    namespace = parser.parse_args(args)

    if not namespace.roots and not namespace.make_config:
        parser.error("at least one ROOT is required")

    return namespace


def add_file_handler_to_logging(anchor_filepath: str) -> None:
    """Add a file handler to the root logger next to the file provided."""
    filepath = Path(anchor_filepath).absolute()
    log_filepath = filepath.parent / f"{filepath.stem}.log"
    file_handler = logging.FileHandler(log_filepath)
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    logging.getLogger().addHandler(file_handler)


def main(*, cli_args: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(cli_args)

    if args.make_config:
        if not args.config:
            raise SystemExit("--make-config requires --config")
        write_new_config(args.config)
        return 0

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format=LOG_FORMAT,
        datefmt=DATE_FORMAT,
    )

    config = DumperConfig(args.config)
    if args.output:
        config.override_output(args.output)

    if args.log_file:
        anchor = args.output or args.config or config.emit_file or "recycle_dumper"
        add_file_handler_to_logging(anchor)

    dumper = Dumper(config)

    try:
        success = dumper.run(args.roots)

    except RowOverflowError as error:
        logging.getLogger(__name__).error("Run aborted: %s", error)
        return 1

    return 0 if success else 1


if __name__ == "__main__":
    raise SystemExit(main())
