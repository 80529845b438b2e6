"""Result persistence layer."""

from .csv_store import CsvResultWriter, target_filename

__all__ = [
    "CsvResultWriter",
    "target_filename",
]
