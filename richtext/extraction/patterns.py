"""Pattern library: every regular expression the package uses lives here.

Three tables:
- entity matchers, combined into one alternation so extraction is a single scan
- format patterns, matched against a whole value (UUID, MAC, IPv4, ...)
- helper patterns, searched in free text (markdown links, identifier candidates,
  normalization character classes, ...)

Extra matchers may be registered at startup. The first lookup compiles the
tables and freezes the library; registering afterwards raises
`ConfigurationError`.
"""

from __future__ import annotations

import re
import threading
from dataclasses import dataclass
from typing import Dict, List, Optional, Pattern, Tuple

from richtext.errors import ConfigurationError
from richtext.extraction.entity_types import EntityKind


@dataclass(frozen=True)
class Matcher:
    name: str
    kind: EntityKind
    pattern: str
    flags: int = 0
    # Leading sigil excluded from the emitted token ("#", "@").
    sigil: str = ""
    # Characters trimmed from the end of a match.
    trim_trailing: str = ""
    # Drop a trailing ")" that has no "(" partner inside the match.
    balance_parens: bool = False


_OCTET = r"(?:25[0-5]|2[0-4]\d|1\d\d|[1-9]?\d)"

IMAGE_EXTENSIONS = ("jpg", "jpeg", "png", "gif", "svg", "webp")
ATTACHMENT_EXTENSIONS = ("pdf", "docx", "doc", "xlsx", "xls", "pptx", "ppt", "txt", "csv", "zip", "rar", "7z")

DEFAULT_MATCHERS: List[Matcher] = [
    Matcher(
        name="link",
        kind=EntityKind.LINK,
        pattern=r"https?://[^\s<>\"'`{}|\\^]+",
        flags=re.IGNORECASE,
        trim_trailing=".,!?:;",
        balance_parens=True,
    ),
    Matcher(
        name="email",
        kind=EntityKind.EMAIL,
        pattern=r"(?<![A-Za-z0-9._%+-])[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b",
    ),
    Matcher(name="mention", kind=EntityKind.MENTION, pattern=r"(?<![\w@])@\w+", sigil="@"),
    Matcher(name="hashtag", kind=EntityKind.HASHTAG, pattern=r"(?<![\w#&])#\w+", sigil="#"),
    Matcher(
        name="phone",
        kind=EntityKind.PHONE,
        pattern=r"(?<![\w+])\+?\d[\d \-()]{6,}\d(?!\w)",
    ),
]

DEFAULT_FORMATS: Dict[str, Tuple[str, int]] = {
    "uuid": (r"[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}", 0),
    # one separator style throughout
    "mac_address": (r"[0-9A-Fa-f]{2}([:-])(?:[0-9A-Fa-f]{2}\1){4}[0-9A-Fa-f]{2}", 0),
    "ipv4": (_OCTET + r"(?:\." + _OCTET + r"){3}", 0),
    "hex_color": (r"#(?:[0-9a-fA-F]{3}){1,2}", 0),
    "hashtag": (r"\w+", 0),
    "mention": (r"\w+", 0),
    "twitter_handle": (r"\w{1,15}", 0),
    "instagram_handle": (r"[\w.]{1,30}", 0),
    "url": (r"https?://[^\s]+", re.IGNORECASE),
}

DEFAULT_HELPERS: Dict[str, Tuple[str, int]] = {
    # normalization
    "non_digit": (r"[^0-9]", 0),
    "non_isbn": (r"[^0-9Xx]", 0),
    "whitespace": (r"\s+", 0),
    "digit_separators": (r"[\s-]+", 0),
    # free-text helpers
    "markdown_link": (r"\[([^\]]+)\]\((https?://[^)\s]+)\)", 0),
    "image_url": (r"https?://[^\s<>\"']+?\.(?:" + "|".join(IMAGE_EXTENSIONS) + r")\b", re.IGNORECASE),
    "attachment_url": (r"https?://[\w\-.?,'/\\+&%$#=:()~]+?\.(?:" + "|".join(ATTACHMENT_EXTENSIONS) + r")\b", re.IGNORECASE),
    "twitter_handle": (r"(?<![\w@])@(\w{1,15})(?!\w)", 0),
    # identifier candidates, keyed by identifier kind
    "candidate_isbn": (r"(?<![\w-])(?:97[89](?:[- ]?\d){10}|\d(?:[- ]?\d){8}[- ]?[\dXx])(?![\w-])", 0),
    "candidate_issn": (r"(?<![\w-])\d{4}-\d{3}[\dXx](?![\w-])", 0),
    "candidate_iban": (r"\b[A-Z]{2}\d{2}[A-Z0-9]{11,30}\b", 0),
    "candidate_vin": (r"\b[A-HJ-NPR-Z0-9]{17}\b", 0),
    "candidate_uuid": (r"\b[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}\b", 0),
    "candidate_mac_address": (r"(?<![\w:-])[0-9A-Fa-f]{2}(?:[:-][0-9A-Fa-f]{2}){5}(?![\w:-])", 0),
    "candidate_ipv4": (r"(?<![\d.])" + _OCTET + r"(?:\." + _OCTET + r"){3}(?![\d.])", 0),
    "candidate_hex_color": (r"(?<![\w&])#(?:[0-9a-fA-F]{6}|[0-9a-fA-F]{3})(?![\w])", 0),
}


class PatternLibrary:
    def __init__(self) -> None:
        self._matchers: Dict[str, Matcher] = {}
        self._formats: Dict[str, Tuple[str, int]] = {}
        self._helpers: Dict[str, Tuple[str, int]] = {}
        self._lock = threading.Lock()
        self._frozen = False
        self._scanner: Optional[Pattern[str]] = None
        self._group_matchers: Dict[str, Matcher] = {}
        self._compiled_formats: Dict[str, Pattern[str]] = {}
        self._compiled_helpers: Dict[str, Pattern[str]] = {}

    @property
    def frozen(self) -> bool:
        return self._frozen

    def _check_open(self, name: str) -> None:
        if self._frozen:
            raise ConfigurationError(f"pattern library is frozen; cannot register {name!r}")
        if not name or not name.replace("_", "").isalnum():
            raise ConfigurationError(f"invalid pattern name {name!r}")

    @staticmethod
    def _compile(name: str, pattern: str, flags: int) -> Pattern[str]:
        try:
            return re.compile(pattern, flags)
        except re.error as e:
            raise ConfigurationError(f"pattern {name!r} does not compile: {e}") from e

    def register(self, matcher: Matcher) -> None:
        with self._lock:
            self._check_open(matcher.name)
            if matcher.name in self._matchers:
                raise ConfigurationError(f"entity matcher {matcher.name!r} already registered")
            compiled = self._compile(matcher.name, matcher.pattern, matcher.flags)
            if compiled.groupindex:
                raise ConfigurationError(f"entity matcher {matcher.name!r} must not use named groups")
            if compiled.match(""):
                raise ConfigurationError(f"entity matcher {matcher.name!r} matches the empty string")
            self._matchers[matcher.name] = matcher

    def register_format(self, name: str, pattern: str, flags: int = 0) -> None:
        with self._lock:
            self._check_open(name)
            self._compile(name, pattern, flags)
            self._formats[name] = (pattern, flags)

    def register_helper(self, name: str, pattern: str, flags: int = 0) -> None:
        with self._lock:
            self._check_open(name)
            self._compile(name, pattern, flags)
            self._helpers[name] = (pattern, flags)

    def freeze(self) -> None:
        with self._lock:
            self._freeze_locked()

    def _freeze_locked(self) -> None:
        if self._frozen:
            return
        parts = []
        for i, m in enumerate(self._matchers.values()):
            group = f"m{i}"
            self._group_matchers[group] = m
            inner = m.pattern
            if m.flags & re.IGNORECASE:
                inner = f"(?i:{inner})"
            parts.append(f"(?P<{group}>{inner})")
        # an empty alternation would match everywhere
        self._scanner = re.compile("|".join(parts)) if parts else re.compile(r"(?!)")
        self._compiled_formats = {n: re.compile(p, f) for n, (p, f) in self._formats.items()}
        self._compiled_helpers = {n: re.compile(p, f) for n, (p, f) in self._helpers.items()}
        self._frozen = True

    def _ensure_frozen(self) -> None:
        if not self._frozen:
            self.freeze()

    # -- lookups (each freezes the library) --

    def scanner(self) -> Pattern[str]:
        self._ensure_frozen()
        assert self._scanner is not None
        return self._scanner

    def matcher_for_group(self, group: str) -> Matcher:
        self._ensure_frozen()
        return self._group_matchers[group]

    def matchers(self) -> List[Matcher]:
        self._ensure_frozen()
        return list(self._matchers.values())

    def format(self, name: str) -> Pattern[str]:
        self._ensure_frozen()
        try:
            return self._compiled_formats[name]
        except KeyError:
            raise ConfigurationError(f"no format pattern named {name!r}") from None

    def helper(self, name: str) -> Pattern[str]:
        self._ensure_frozen()
        try:
            return self._compiled_helpers[name]
        except KeyError:
            raise ConfigurationError(f"no helper pattern named {name!r}") from None

    def has_format(self, name: str) -> bool:
        self._ensure_frozen()
        return name in self._compiled_formats

    def has_helper(self, name: str) -> bool:
        self._ensure_frozen()
        return name in self._compiled_helpers

    def matches_format(self, name: str, value: object) -> bool:
        if not isinstance(value, str):
            return False
        return self.format(name).fullmatch(value) is not None


def build_default_library() -> PatternLibrary:
    """Return an unfrozen library holding the default tables."""
    lib = PatternLibrary()
    for m in DEFAULT_MATCHERS:
        lib.register(m)
    for name, (pattern, flags) in DEFAULT_FORMATS.items():
        lib.register_format(name, pattern, flags)
    for name, (pattern, flags) in DEFAULT_HELPERS.items():
        lib.register_helper(name, pattern, flags)
    return lib


_default: Optional[PatternLibrary] = None
_default_lock = threading.Lock()


def default_library() -> PatternLibrary:
    """Shared library, built once on first use.

    Startup code may register extra matchers on it before the first lookup.
    """
    global _default
    if _default is None:
        with _default_lock:
            if _default is None:
                _default = build_default_library()
    return _default
