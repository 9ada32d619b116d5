"""Link metadata value types."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Dict, Mapping, Optional, Union


METADATA_FIELDS = ("title", "description", "image", "url", "site_name", "author", "date")


@dataclass(frozen=True)
class Metadata:
    """Metadata for one link.

    A failed fetch is still a `Metadata`, with `error` set, so it can be
    cached like any other value. `values` is read-only: one instance is
    handed to every caller waiting on the same fetch.
    """

    values: Mapping[str, str] = field(default_factory=dict)
    error: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "values", MappingProxyType(dict(self.values)))

    @property
    def ok(self) -> bool:
        return self.error is None

    def get(self, name: str, default: Optional[str] = None) -> Optional[str]:
        return self.values.get(name, default)

    @property
    def title(self) -> Optional[str]:
        return self.values.get("title")

    @property
    def description(self) -> Optional[str]:
        return self.values.get("description")

    @property
    def image(self) -> Optional[str]:
        return self.values.get("image")

    @property
    def url(self) -> Optional[str]:
        return self.values.get("url")

    @classmethod
    def failed(cls, error: str) -> "Metadata":
        return cls(values={}, error=error or "fetch_failed")

    def to_dict(self) -> Dict[str, Any]:
        return {"values": dict(self.values), "error": self.error}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Metadata":
        values = data.get("values") or {}
        return cls(values={str(k): str(v) for k, v in values.items()}, error=data.get("error"))


@dataclass(frozen=True)
class FetchResult:
    """Outcome of one fetch attempt, as returned by a fetch collaborator."""

    metadata: Optional[Metadata]
    status: str
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == "ok" and self.metadata is not None and self.metadata.ok

    @classmethod
    def success(cls, metadata: Metadata) -> "FetchResult":
        return cls(metadata=metadata, status="ok")

    @classmethod
    def failure(cls, status: str, error: Optional[str] = None) -> "FetchResult":
        return cls(metadata=None, status=status, error=error or status)


# fetch_metadata(url, timeout_seconds); a bare Metadata return is accepted too
FetchCollaborator = Callable[[str, float], Union[FetchResult, Metadata]]


def coerce_fetch_result(value: object) -> FetchResult:
    if isinstance(value, FetchResult):
        return value
    if isinstance(value, Metadata):
        if value.ok:
            return FetchResult.success(value)
        return FetchResult.failure("error", value.error)
    return FetchResult.failure("bad_result", f"fetcher returned {type(value).__name__}")
