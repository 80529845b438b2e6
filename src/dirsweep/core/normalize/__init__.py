"""Normalization and deduplication of extracted directory records."""

from .records import CSV_COLUMNS, Record, clean_value, dedupe_records, parse_coordinate

__all__ = [
    "CSV_COLUMNS",
    "Record",
    "clean_value",
    "dedupe_records",
    "parse_coordinate",
]
