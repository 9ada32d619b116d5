"""Single entry point: extract entities from text and resolve link metadata.

One bad link never spoils the result: its `Metadata` carries the error and
every other entity and link is still returned.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from richtext.cache.metadata_cache import MetadataCache
from richtext.extraction.entity_types import EntityKind, ExtractedEntity
from richtext.extraction.extractor import extract
from richtext.extraction.patterns import PatternLibrary, default_library
from richtext.links.metadata_types import Metadata
from richtext.links.previews import render_preview
from richtext.validation.dispatcher import (
    IdentifierKind,
    ValidationDispatcher,
    ValidationResult,
)


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProcessResult:
    entities: Tuple[ExtractedEntity, ...]
    link_metadata: Dict[str, Metadata] = field(default_factory=dict)
    identifiers: Tuple[ValidationResult, ...] = ()

    @property
    def links(self) -> List[str]:
        """Distinct links in order of first occurrence."""
        out: List[str] = []
        for e in self.entities:
            if e.kind is EntityKind.LINK and e.raw not in out:
                out.append(e.raw)
        return out

    def of_kind(self, kind: EntityKind) -> List[ExtractedEntity]:
        return [e for e in self.entities if e.kind is kind]

    def link_previews(self) -> List[Dict[str, Optional[str]]]:
        """Flat per-link records for a renderer that shows link cards."""
        previews = []
        for url in self.links:
            md = self.link_metadata.get(url)
            previews.append(
                {
                    "url": url,
                    "title": md.title if md else None,
                    "description": md.description if md else None,
                    "image": md.image if md else None,
                    "error": md.error if md else None,
                }
            )
        return previews

    def render_link_previews(self, fmt: str = "markdown") -> List[str]:
        """One rendered card per distinct link (`html`, `markdown` or `text`)."""
        return [render_preview(self.link_metadata.get(url), url, fmt) for url in self.links]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "entities": [e.to_dict() for e in self.entities],
            "link_metadata": {url: md.to_dict() for url, md in self.link_metadata.items()},
            "identifiers": [r.to_dict() for r in self.identifiers],
        }


class Processor:
    def __init__(
        self,
        cache: Optional[MetadataCache] = None,
        *,
        library: Optional[PatternLibrary] = None,
        dispatcher: Optional[ValidationDispatcher] = None,
        fetch_wait: Optional[float] = None,
    ):
        self.cache = cache
        self.library = library or default_library()
        self.dispatcher = dispatcher or ValidationDispatcher(self.library)
        self.fetch_wait = fetch_wait

    def process(self, text: str, *, fetch: bool = True, scan_identifiers: bool = False) -> ProcessResult:
        entities = tuple(extract(text, library=self.library))
        result = ProcessResult(entities=entities)
        link_metadata: Dict[str, Metadata] = {}
        if fetch and self.cache is not None and result.links:
            link_metadata = self.cache.get_many(result.links, wait=self.fetch_wait)
            failed = sum(1 for md in link_metadata.values() if not md.ok)
            if failed:
                logger.info("%d of %d links have no metadata", failed, len(link_metadata))
        identifiers: Tuple[ValidationResult, ...] = ()
        if scan_identifiers:
            identifiers = tuple(self.scan_identifiers(text))
        return ProcessResult(entities=entities, link_metadata=link_metadata, identifiers=identifiers)

    def scan_identifiers(self, text: str) -> List[ValidationResult]:
        """Find identifier-shaped substrings and return the ones that validate, in text order."""
        if not isinstance(text, str) or not text:
            return []
        found: List[Tuple[int, ValidationResult]] = []
        seen = set()
        for kind in IdentifierKind:
            name = f"candidate_{kind.value}"
            if not self.library.has_helper(name):
                continue
            for m in self.library.helper(name).finditer(text):
                res = self.dispatcher.validate(kind, m.group(0))
                if not res.valid or (kind, res.normalized) in seen:
                    continue
                seen.add((kind, res.normalized))
                found.append((m.start(), res))
        found.sort(key=lambda item: item[0])
        return [res for _, res in found]

    def validate(self, kind: Union[IdentifierKind, str], value: object) -> ValidationResult:
        return self.dispatcher.validate(kind, value)

    def batch_validate(self, kind: Union[IdentifierKind, str], values: Iterable[object]) -> List[ValidationResult]:
        return self.dispatcher.batch_validate(kind, values)


def process(text: str, *, cache: Optional[MetadataCache] = None, scan_identifiers: bool = False) -> ProcessResult:
    return Processor(cache).process(text, scan_identifiers=scan_identifiers)
