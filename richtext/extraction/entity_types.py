"""Shared extraction data types."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Tuple


class EntityKind(str, Enum):
    LINK = "link"
    EMAIL = "email"
    PHONE = "phone"
    HASHTAG = "hashtag"
    MENTION = "mention"


@dataclass(frozen=True)
class ExtractedEntity:
    """One match found in the source text.

    `raw` is always `text[start:end]`. For hashtags and mentions the sigil is
    not part of the span, so `raw` is the bare token.
    """

    kind: EntityKind
    raw: str
    start: int
    end: int

    @property
    def span(self) -> Tuple[int, int]:
        return (self.start, self.end)

    def to_dict(self) -> dict:
        return {"kind": self.kind.value, "raw": self.raw, "span": [self.start, self.end]}
