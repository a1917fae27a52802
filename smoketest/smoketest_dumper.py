from __future__ import annotations

import argparse
import logging
import random
import shutil
from pathlib import Path
from string import ascii_uppercase
from string import digits

from recycle_dumper.dumper import Dumper
from recycle_dumper.dumperconfig import DumperConfig
from recycle_dumper.dumperdecoder import encode_record
from recycle_dumper.dumpermodel import DeletionRecord
from recycle_dumper.dumpermodel import EPOCH_AS_FILETIME

BASE_DIR: Path = Path(__file__).resolve().parent
TEST_DIR: Path = BASE_DIR / "smoketest_bin" / "S-1-5-21-1000-1000-1000-1001"
REPORT: Path = BASE_DIR / "smoketest_report.csv"
ITEM_COUNT_RANGE: tuple[int, int] = (5, 40)
CHANCE_OF_FOLDER = 0.3  # out of 1.0
CHANCE_OF_MISSING = 0.1
MAX_FOLDER_DEPTH = 3

logger = logging.getLogger(__name__)


def random_id() -> str:
    """Return six random upper case letters or digits."""
    return "".join(random.choices(ascii_uppercase + digits, k=6))


def build_folder(path: Path, depth: int) -> int:
    """Fill a deleted folder with random content. Returns the total file size."""
    path.mkdir(parents=True)
    total = 0
    for index in range(random.randint(0, 5)):
        if depth < MAX_FOLDER_DEPTH and random.random() < CHANCE_OF_FOLDER:
            total += build_folder(path / f"sub{index}", depth + 1)
            continue

        size = random.randint(0, 4096)
        (path / f"file{index}.bin").write_bytes(b"\x00" * size)
        total += size

    return total


def build_recycle_bin() -> int:
    """Create a synthetic recycle bin. Returns the number of index files."""
    shutil.rmtree(TEST_DIR.parent, ignore_errors=True)
    TEST_DIR.mkdir(parents=True)

    count = random.randint(*ITEM_COUNT_RANGE)
    for _ in range(count):
        identifier = random_id()
        data_path = TEST_DIR / f"$R{identifier}"

        if random.random() < CHANCE_OF_FOLDER:
            size = build_folder(data_path, 1)
            original = f"C:\\Users\\smoke\\Documents\\folder_{identifier}"

        else:
            size = random.randint(0, 4096)
            data_path = data_path.with_suffix(".bin")
            data_path.write_bytes(b"\x00" * size)
            original = f"C:\\Users\\smoke\\Documents\\file_{identifier}.bin"

        if random.random() < CHANCE_OF_MISSING:
            shutil.rmtree(data_path, ignore_errors=True)
            data_path.unlink(missing_ok=True)

        record = DeletionRecord(
            format_version=random.choice([1, 2]),
            original_size=size,
            deleted_at=EPOCH_AS_FILETIME + random.randint(0, 2**55),
            original_path=original,
        )
        index_name = "$I" + data_path.name[2:]
        (TEST_DIR / index_name).write_bytes(encode_record(record))

    logger.info("Built %d deleted items in %s", count, TEST_DIR)
    return count


def main() -> int:
    """Build a synthetic recycle bin and dump it."""
    parser = argparse.ArgumentParser(description="Recycle bin dumper smoketest")
    parser.add_argument("--keep", action="store_true", help="Keep the generated bin.")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(message)s")
    build_recycle_bin()

    config = DumperConfig()
    config.override_output(str(REPORT))
    success = Dumper(config).run([str(TEST_DIR)])

    logger.info("Report written to %s", REPORT)
    if not args.keep:
        shutil.rmtree(TEST_DIR.parent, ignore_errors=True)

    return 0 if success else 1


if __name__ == "__main__":
    raise SystemExit(main())
