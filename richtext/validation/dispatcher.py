"""Identifier validation entry point.

`validate(kind, value)` looks up the one validator registered for `kind`,
normalizes the value, runs the check and packages the outcome. Unknown kinds
raise `UnknownKindError`; bad values never raise.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional, Tuple, Union

from richtext.errors import ConfigurationError, UnknownKindError
from richtext.extraction.patterns import PatternLibrary, default_library
from richtext.validation import checksums


class IdentifierKind(str, Enum):
    ISBN = "isbn"
    ISSN = "issn"
    IBAN = "iban"
    VIN = "vin"
    LUHN = "luhn"
    EAN13 = "ean13"
    UPCA = "upca"
    UUID = "uuid"
    MAC_ADDRESS = "mac_address"
    IPV4 = "ipv4"
    HEX_COLOR = "hex_color"


class ErrorCode(str, Enum):
    # Format and checksum failures are deliberately not told apart.
    INVALID = "invalid"


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    kind: IdentifierKind
    normalized: str
    error: Optional[ErrorCode] = None
    message: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "valid": self.valid,
            "kind": self.kind.value,
            "normalized": self.normalized,
            "error": self.error.value if self.error else None,
            "message": self.message,
        }


@dataclass(frozen=True)
class _Entry:
    normalize: Callable[[str, Optional[PatternLibrary]], str]
    check: Callable[[str, Optional[PatternLibrary]], bool]
    message: str
    description: str
    valid_examples: Tuple[str, ...]
    invalid_examples: Tuple[str, ...]


@dataclass(frozen=True)
class KindInfo:
    """What a kind accepts, for help screens and client-side hints."""

    kind: IdentifierKind
    description: str
    pattern: Optional[str]
    valid_examples: Tuple[str, ...]
    invalid_examples: Tuple[str, ...]

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "description": self.description,
            "pattern": self.pattern,
            "valid": list(self.valid_examples),
            "invalid": list(self.invalid_examples),
        }


def _strip(value: str, library: Optional[PatternLibrary] = None) -> str:
    return value.strip()


def _strip_lower(value: str, library: Optional[PatternLibrary] = None) -> str:
    return value.strip().lower()


def _strip_upper(value: str, library: Optional[PatternLibrary] = None) -> str:
    return value.strip().upper()


_TABLE: Dict[IdentifierKind, _Entry] = {
    IdentifierKind.ISBN: _Entry(
        checksums.normalize_isbn,
        checksums.isbn_valid,
        "is not a valid ISBN",
        "International Standard Book Number, 10 or 13 digits",
        ("978-3-16-148410-0", "0-306-40615-2"),
        ("978-3-16-148410-1", "123"),
    ),
    IdentifierKind.ISSN: _Entry(
        checksums.normalize_issn,
        checksums.issn_valid,
        "is not a valid ISSN",
        "International Standard Serial Number (NNNN-NNNC)",
        ("0378-5955", "2434-561X"),
        ("0378-5954", "123"),
    ),
    IdentifierKind.IBAN: _Entry(
        checksums.normalize_iban,
        checksums.iban_valid,
        "is not a valid IBAN",
        "International Bank Account Number, mod-97 checked",
        ("GB82WEST12345698765432", "GB82 WEST 1234 5698 7654 32"),
        ("GB82WEST12345698765431", "123"),
    ),
    IdentifierKind.VIN: _Entry(
        checksums.normalize_vin,
        checksums.vin_valid,
        "is not a valid VIN",
        "Vehicle Identification Number, 17 characters with a check digit",
        ("1M8GDM9AXKP042788",),
        ("1M8GDM9AXKP042789", "123"),
    ),
    IdentifierKind.LUHN: _Entry(
        checksums.normalize_luhn,
        checksums.luhn_valid,
        "is not a valid number (Luhn check failed)",
        "Card-style number passing the Luhn mod-10 check",
        ("4111 1111 1111 1111", "79927398713"),
        ("79927398710", "123"),
    ),
    IdentifierKind.EAN13: _Entry(
        checksums.normalize_gs1,
        checksums.ean13_valid,
        "is not a valid EAN-13 barcode",
        "EAN-13 product barcode",
        ("4006381333931",),
        ("4006381333932", "123"),
    ),
    IdentifierKind.UPCA: _Entry(
        checksums.normalize_gs1,
        checksums.upca_valid,
        "is not a valid UPC-A barcode",
        "UPC-A product barcode",
        ("036000291452",),
        ("036000291453", "123"),
    ),
    IdentifierKind.UUID: _Entry(
        _strip_lower,
        checksums.uuid_valid,
        "is not a valid UUID",
        "UUID in 8-4-4-4-12 hex form",
        ("123e4567-e89b-12d3-a456-426614174000",),
        ("123e4567e89b12d3a456426614174000", "123"),
    ),
    IdentifierKind.MAC_ADDRESS: _Entry(
        _strip_upper,
        checksums.mac_address_valid,
        "is not a valid MAC address",
        "MAC address, six hex pairs split by one kind of separator",
        ("00:1A:2B:3C:4D:5E", "00-1a-2b-3c-4d-5e"),
        ("00:1A-2B:3C:4D:5E", "123"),
    ),
    IdentifierKind.IPV4: _Entry(
        _strip,
        checksums.ipv4_valid,
        "is not a valid IPv4 address",
        "Dotted-quad IPv4 address",
        ("192.168.1.1", "0.0.0.0"),
        ("256.1.1.1", "1.2.3"),
    ),
    IdentifierKind.HEX_COLOR: _Entry(
        _strip_lower,
        checksums.hex_color_valid,
        "is not a valid hex color",
        "CSS hex color, #rgb or #rrggbb",
        ("#fff", "#A1B2C3"),
        ("#abcd", "fff"),
    ),
}


def resolve_kind(kind: Union[IdentifierKind, str]) -> IdentifierKind:
    """Accept an `IdentifierKind`, its value ("isbn") or its name ("MAC_ADDRESS")."""
    if isinstance(kind, IdentifierKind):
        return kind
    if isinstance(kind, str):
        key = kind.strip()
        try:
            return IdentifierKind(key.lower())
        except ValueError:
            pass
        member = IdentifierKind.__members__.get(key.upper())
        if member is not None:
            return member
    raise UnknownKindError(kind)


class ValidationDispatcher:
    def __init__(self, library: Optional[PatternLibrary] = None):
        self.library = library or default_library()
        missing = [k for k in IdentifierKind if k not in _TABLE]
        if missing:
            raise ConfigurationError(f"no validator for kinds: {', '.join(k.value for k in missing)}")
        self._table = dict(_TABLE)

    def validate(self, kind: Union[IdentifierKind, str], value: object) -> ValidationResult:
        k = resolve_kind(kind)
        entry = self._table[k]
        if not isinstance(value, str):
            return ValidationResult(valid=False, kind=k, normalized="", error=ErrorCode.INVALID, message=entry.message)
        normalized = entry.normalize(value, self.library)
        ok = entry.check(value, self.library)
        if ok:
            return ValidationResult(valid=True, kind=k, normalized=normalized)
        return ValidationResult(valid=False, kind=k, normalized=normalized, error=ErrorCode.INVALID, message=entry.message)

    def batch_validate(self, kind: Union[IdentifierKind, str], values: Iterable[object]) -> List[ValidationResult]:
        """Validate every value, in input order, without stopping at the first failure."""
        k = resolve_kind(kind)
        return [self.validate(k, v) for v in values]

    def pattern_for(self, kind: Union[IdentifierKind, str]) -> Optional[str]:
        """Regex a value of `kind` has to look like, or None for bare digit runs."""
        k = resolve_kind(kind)
        if self.library.has_format(k.value):
            return self.library.format(k.value).pattern
        if self.library.has_helper(f"candidate_{k.value}"):
            return self.library.helper(f"candidate_{k.value}").pattern
        return None

    def describe(self, kind: Union[IdentifierKind, str]) -> KindInfo:
        k = resolve_kind(kind)
        entry = self._table[k]
        return KindInfo(
            kind=k,
            description=entry.description,
            pattern=self.pattern_for(k),
            valid_examples=entry.valid_examples,
            invalid_examples=entry.invalid_examples,
        )

    def describe_all(self) -> List[KindInfo]:
        return [self.describe(k) for k in IdentifierKind]


_default_dispatcher: Optional[ValidationDispatcher] = None


def default_dispatcher() -> ValidationDispatcher:
    global _default_dispatcher
    if _default_dispatcher is None:
        _default_dispatcher = ValidationDispatcher()
    return _default_dispatcher


def validate(kind: Union[IdentifierKind, str], value: object) -> ValidationResult:
    return default_dispatcher().validate(kind, value)


def batch_validate(kind: Union[IdentifierKind, str], values: Iterable[object]) -> List[ValidationResult]:
    return default_dispatcher().batch_validate(kind, values)


def describe(kind: Union[IdentifierKind, str]) -> KindInfo:
    return default_dispatcher().describe(kind)
