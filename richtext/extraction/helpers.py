"""Text helpers built on the pattern library.

Markdown links, image/attachment URLs, handles, excerpts and token format
checks. Unlike `extract`, these return plain strings.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Tuple
from urllib.parse import urlparse, urlunparse

from richtext.config import DEFAULT_EXCERPT_LENGTH
from richtext.extraction.entity_types import EntityKind
from richtext.extraction.extractor import extract
from richtext.extraction.patterns import PatternLibrary, default_library


def _lib(library: Optional[PatternLibrary]) -> PatternLibrary:
    return library or default_library()


def _unique(items: List[str]) -> List[str]:
    seen = set()
    out = []
    for it in items:
        if it in seen:
            continue
        seen.add(it)
        out.append(it)
    return out


def extract_markdown_links(text: str, *, library: Optional[PatternLibrary] = None) -> List[Tuple[str, str]]:
    if not isinstance(text, str):
        return []
    return [(m.group(1), m.group(2)) for m in _lib(library).helper("markdown_link").finditer(text)]


def extract_image_urls(text: str, *, library: Optional[PatternLibrary] = None) -> List[str]:
    if not isinstance(text, str):
        return []
    return [m.group(0) for m in _lib(library).helper("image_url").finditer(text)]


def extract_attachment_urls(text: str, *, library: Optional[PatternLibrary] = None) -> List[str]:
    if not isinstance(text, str):
        return []
    return [m.group(0) for m in _lib(library).helper("attachment_url").finditer(text)]


def extract_twitter_handles(text: str, *, library: Optional[PatternLibrary] = None) -> List[str]:
    if not isinstance(text, str):
        return []
    return _unique([m.group(1) for m in _lib(library).helper("twitter_handle").finditer(text)])


def extract_with_context(
    text: str,
    kind: EntityKind,
    *,
    context_length: int = 50,
    library: Optional[PatternLibrary] = None,
) -> List[Dict[str, str]]:
    """Unique entities of one kind, each with the surrounding text."""
    out: List[Dict[str, str]] = []
    seen = set()
    for e in extract(text, library=library):
        if e.kind is not kind or e.raw in seen:
            continue
        seen.add(e.raw)
        lo = max(0, e.start - context_length)
        hi = min(len(text), e.end + context_length)
        out.append({kind.value: e.raw, "context": text[lo:hi].strip()})
    return out


def create_excerpt(text: str, length: int = DEFAULT_EXCERPT_LENGTH) -> str:
    if not isinstance(text, str):
        return ""
    if len(text) <= length:
        return text
    return text[:length].rstrip() + "…"


def normalize_url(url: str) -> str:
    """Drop query, fragment and trailing slash.

    Coarser than `canonicalize_url`, which keeps non-tracking query params.
    """
    try:
        p = urlparse(url)
    except ValueError:
        return url
    return urlunparse((p.scheme, p.netloc, p.path, "", "", "")).rstrip("/")


def is_valid_hashtag(tag: object, *, library: Optional[PatternLibrary] = None) -> bool:
    return _lib(library).matches_format("hashtag", tag)


def is_valid_mention(mention: object, *, library: Optional[PatternLibrary] = None) -> bool:
    return _lib(library).matches_format("mention", mention)


def is_valid_twitter_handle(handle: object, *, library: Optional[PatternLibrary] = None) -> bool:
    return _lib(library).matches_format("twitter_handle", handle)


def is_valid_instagram_handle(handle: object, *, library: Optional[PatternLibrary] = None) -> bool:
    return _lib(library).matches_format("instagram_handle", handle)


def is_valid_url(url: object, *, library: Optional[PatternLibrary] = None) -> bool:
    if not _lib(library).matches_format("url", url):
        return False
    return bool(urlparse(str(url)).netloc)
