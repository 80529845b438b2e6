"""
Directory record model and deduplication.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Iterable

_NULL_TOKENS = {"", "null", "undefined"}

# Column order of the persisted CSV, keyed by the directory's own names
CSV_COLUMNS: tuple[tuple[str, str], ...] = (
    ("accountId", "account_id"),
    ("type", "category"),
    ("name", "name"),
    ("address", "address"),
    ("email", "email"),
    ("phone", "phone"),
    ("website", "website"),
    ("lat", "lat"),
    ("lng", "lng"),
)


def clean_value(value: Any) -> str | None:
    """Trim a raw attribute value; blank and null-like strings become None.

    Inner whitespace is kept as the directory sent it.
    """
    if value is None:
        return None
    text = str(value).strip()
    if text.lower() in _NULL_TOKENS:
        return None
    return text


def parse_coordinate(value: Any) -> float | None:
    text = clean_value(value)
    if text is None:
        return None
    try:
        return float(text)
    except ValueError:
        return None


@dataclass(frozen=True)
class Record:
    """One directory listing as read from a result row."""

    account_id: str | None = None
    category: str | None = None
    name: str | None = None
    address: str | None = None
    email: str | None = None
    phone: str | None = None
    website: str | None = None
    lat: float | None = None
    lng: float | None = None

    @property
    def dedup_key(self) -> str:
        """Identifier, or lowercase ``name|address`` when there is none."""
        if self.account_id:
            return self.account_id
        return f"{(self.name or '').lower()}|{(self.address or '').lower()}"

    @classmethod
    def from_attributes(cls, data: dict[str, Any]) -> "Record":
        """Build from a result row's ``data-*`` attributes (names without prefix)."""
        return cls(
            account_id=clean_value(data.get("accountid")),
            category=clean_value(data.get("acctype")),
            name=clean_value(data.get("name")),
            address=clean_value(data.get("address1")) or clean_value(data.get("address2")),
            email=clean_value(data.get("emailaddress")),
            phone=clean_value(data.get("telephone1")) or clean_value(data.get("telephone2")),
            website=clean_value(data.get("websiteurl")),
            lat=parse_coordinate(data.get("lat")),
            lng=parse_coordinate(data.get("lng")),
        )

    def to_row(self) -> list[Any]:
        values = asdict(self)
        return [values[attr] for _, attr in CSV_COLUMNS]


def dedupe_records(records: Iterable[Record]) -> list[Record]:
    """Drop repeated records by dedup_key, keeping the first occurrence."""
    unique: dict[str, Record] = {}
    for record in records:
        unique.setdefault(record.dedup_key, record)
    return list(unique.values())
