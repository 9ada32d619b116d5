"""Entity extraction: one scan of the text over the combined matcher alternation."""

from __future__ import annotations

from typing import Iterable, Iterator, List, Optional, Tuple

from richtext.extraction.entity_types import EntityKind, ExtractedEntity
from richtext.extraction.patterns import Matcher, PatternLibrary, default_library


def _trim(matcher: Matcher, text: str, start: int, end: int) -> Tuple[int, int]:
    if matcher.sigil and text.startswith(matcher.sigil, start):
        start += len(matcher.sigil)
    changed = True
    while changed and end > start:
        changed = False
        if matcher.trim_trailing and text[end - 1] in matcher.trim_trailing:
            end -= 1
            changed = True
        elif matcher.balance_parens and text[end - 1] == ")":
            chunk = text[start:end]
            if chunk.count(")") > chunk.count("("):
                end -= 1
                changed = True
    return start, end


class Extraction:
    """Lazy, restartable sequence of entities for one text.

    Each iteration rescans the text; identical input always yields identical
    output in identical order (document order of match starts).
    """

    def __init__(self, text: str, library: Optional[PatternLibrary] = None):
        self.text = text if isinstance(text, str) else ""
        self.library = library or default_library()

    def __iter__(self) -> Iterator[ExtractedEntity]:
        text = self.text
        if not text:
            return
        lib = self.library
        for m in lib.scanner().finditer(text):
            matcher = lib.matcher_for_group(m.lastgroup)
            start, end = _trim(matcher, text, m.start(), m.end())
            if end <= start:
                continue
            yield ExtractedEntity(kind=matcher.kind, raw=text[start:end], start=start, end=end)

    def __bool__(self) -> bool:
        return next(iter(self), None) is not None

    def of_kind(self, kind: EntityKind) -> List[ExtractedEntity]:
        return [e for e in self if e.kind is kind]

    def values(self, kind: EntityKind) -> List[str]:
        return [e.raw for e in self if e.kind is kind]

    def to_list(self) -> List[ExtractedEntity]:
        return list(self)


def extract(text: str, *, library: Optional[PatternLibrary] = None) -> Extraction:
    return Extraction(text, library)


def extract_all(texts: Iterable[str], *, library: Optional[PatternLibrary] = None) -> List[List[ExtractedEntity]]:
    return [extract(t, library=library).to_list() for t in texts]
