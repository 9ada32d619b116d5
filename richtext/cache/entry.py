"""Cache entry type and its store encoding."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict

from richtext.contracts.cache_record import validate_cache_record
from richtext.errors import CacheCorruptionError
from richtext.links.metadata_types import Metadata


MAX_FAILURE_COUNT = 255


@dataclass(frozen=True)
class CacheEntry:
    key: str
    value: Metadata
    fetched_at: float
    ttl: float
    failure_count: int = 0

    @property
    def expires_at(self) -> float:
        return self.fetched_at + self.ttl

    def is_fresh(self, now: float, *, ttl_factor: float = 1.0) -> bool:
        return now < self.fetched_at + self.ttl * ttl_factor


def encode_entry(entry: CacheEntry) -> Dict[str, Any]:
    return {
        "key": entry.key,
        "value": entry.value.to_dict(),
        "fetched_at": float(entry.fetched_at),
        "ttl": float(entry.ttl),
        "failure_count": int(entry.failure_count),
    }


def decode_entry(record: Any, key: str) -> CacheEntry:
    """Rebuild an entry from a store record, raising `CacheCorruptionError` if malformed."""
    errors = validate_cache_record(record)
    if errors:
        raise CacheCorruptionError(key, "; ".join(errors))
    if record["key"] != key:
        raise CacheCorruptionError(key, f"record belongs to {record['key']!r}")
    return CacheEntry(
        key=record["key"],
        value=Metadata.from_dict(record["value"]),
        fetched_at=float(record["fetched_at"]),
        ttl=float(record["ttl"]),
        failure_count=int(record["failure_count"]),
    )
