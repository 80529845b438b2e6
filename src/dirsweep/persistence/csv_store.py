"""
Per-target CSV persistence.

Each target gets one file, named after the target, holding its
deduplicated records. Re-running a target overwrites its file.
"""

from __future__ import annotations

import csv
import logging
import re
from pathlib import Path
from typing import Sequence

from dirsweep.core.normalize.records import CSV_COLUMNS, Record

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^\w\-]+")


def target_filename(target: str) -> str:
    """File name for a target: runs of non-word characters become ``_``."""
    stem = _UNSAFE_CHARS.sub("_", target.strip()) or "_"
    return f"{stem}.csv"


class CsvResultWriter:
    """Writes one CSV artifact per target into ``output_dir``."""

    def __init__(self, output_dir: Path | str) -> None:
        self.output_dir = Path(output_dir)

    def path_for(self, target: str) -> Path:
        return self.output_dir / target_filename(target)

    def write(self, target: str, records: Sequence[Record]) -> Path:
        """Write ``records`` for ``target`` and return the file path."""
        self.output_dir.mkdir(parents=True, exist_ok=True)
        path = self.path_for(target)

        with open(path, "w", encoding="utf-8", newline="") as f:
            writer = csv.writer(f, quoting=csv.QUOTE_ALL, lineterminator="\n")
            writer.writerow([column for column, _ in CSV_COLUMNS])
            for record in records:
                writer.writerow(["" if value is None else str(value) for value in record.to_row()])

        logger.debug(f"Wrote {len(records)} records to {path}")
        return path

    __call__ = write
