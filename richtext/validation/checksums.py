"""Check-digit algorithms.

Every validator takes the raw input, normalizes it with the pattern library's
character classes, and returns a bool. None of them raise on bad input: wrong
length, wrong alphabet and wrong check digit are all just `False`.
"""

from __future__ import annotations

from typing import Callable, Dict, Optional

from richtext.extraction.patterns import PatternLibrary, default_library


_DIGITS = "0123456789"

# ISO 3779 transliteration; I, O and Q are not allowed in a VIN.
VIN_TRANSLITERATION: Dict[str, int] = {
    "A": 1, "B": 2, "C": 3, "D": 4, "E": 5, "F": 6, "G": 7, "H": 8,
    "J": 1, "K": 2, "L": 3, "M": 4, "N": 5, "P": 7, "R": 9,
    "S": 2, "T": 3, "U": 4, "V": 5, "W": 6, "X": 7, "Y": 8, "Z": 9,
}
VIN_WEIGHTS = (8, 7, 6, 5, 4, 3, 2, 10, 0, 9, 8, 7, 6, 5, 4, 3, 2)


def _lib(library: Optional[PatternLibrary]) -> PatternLibrary:
    return library or default_library()


def _is_digits(s: str) -> bool:
    return bool(s) and all(c in _DIGITS for c in s)


# -----------------------------
# Normalizers
# -----------------------------
def normalize_luhn(value: str, library: Optional[PatternLibrary] = None) -> str:
    return _lib(library).helper("non_digit").sub("", value)


def normalize_isbn(value: str, library: Optional[PatternLibrary] = None) -> str:
    return _lib(library).helper("non_isbn").sub("", value).upper()


def normalize_issn(value: str, library: Optional[PatternLibrary] = None) -> str:
    return value.replace("-", "").upper()


def normalize_iban(value: str, library: Optional[PatternLibrary] = None) -> str:
    return _lib(library).helper("whitespace").sub("", value).upper()


def normalize_vin(value: str, library: Optional[PatternLibrary] = None) -> str:
    return value.upper()


def normalize_gs1(value: str, library: Optional[PatternLibrary] = None) -> str:
    return _lib(library).helper("digit_separators").sub("", value)


# -----------------------------
# Algorithms
# -----------------------------
def luhn_valid(value: str, library: Optional[PatternLibrary] = None) -> bool:
    """ISO/IEC 7812 Luhn check. A string with no digits sums to 0 and passes."""
    if not isinstance(value, str):
        return False
    digits = normalize_luhn(value, library)
    total = 0
    for i, ch in enumerate(reversed(digits)):
        d = ord(ch) - 48
        if i % 2 == 1:
            d *= 2
            if d > 9:
                d -= 9
        total += d
    return total % 10 == 0


def isbn_valid(value: str, library: Optional[PatternLibrary] = None) -> bool:
    """ISBN-10 (mod 11, X = 10) or ISBN-13 (weights 1,3; mod 10)."""
    if not isinstance(value, str):
        return False
    s = normalize_isbn(value, library)
    if len(s) == 10:
        if not _is_digits(s[:9]):
            return False
        total = 0
        for i, ch in enumerate(s):
            d = 10 if ch == "X" else ord(ch) - 48
            total += d * (10 - i)
        return total % 11 == 0
    if len(s) == 13:
        if not _is_digits(s):
            return False
        total = sum((ord(ch) - 48) * (1 if i % 2 == 0 else 3) for i, ch in enumerate(s))
        return total % 10 == 0
    return False


def issn_check_char(first_seven: str) -> str:
    total = sum((ord(ch) - 48) * (8 - i) for i, ch in enumerate(first_seven))
    check = (11 - (total % 11)) % 11
    return "X" if check == 10 else str(check)


def issn_valid(value: str, library: Optional[PatternLibrary] = None) -> bool:
    """ISO 3297 ISSN: weights 8..2 over seven digits, check (11 - sum mod 11) mod 11."""
    if not isinstance(value, str):
        return False
    s = normalize_issn(value, library)
    if len(s) != 8 or not _is_digits(s[:7]):
        return False
    return s[7] == issn_check_char(s[:7])


def iban_valid(value: str, library: Optional[PatternLibrary] = None) -> bool:
    """ISO 13616 mod-97: rotate the first four characters to the end, letters A=10..Z=35."""
    if not isinstance(value, str):
        return False
    s = normalize_iban(value, library)
    if len(s) < 5:
        return False
    rearranged = s[4:] + s[:4]
    parts = []
    for ch in rearranged:
        if ch in _DIGITS:
            parts.append(ch)
        elif "A" <= ch <= "Z":
            parts.append(str(ord(ch) - 55))
        else:
            return False
    try:
        return int("".join(parts)) % 97 == 1
    except ValueError:
        return False


def vin_check_char(vin: str) -> Optional[str]:
    total = 0
    for ch, weight in zip(vin, VIN_WEIGHTS):
        if ch in _DIGITS:
            value = ord(ch) - 48
        else:
            value = VIN_TRANSLITERATION.get(ch)
            if value is None:
                return None
        total += value * weight
    check = total % 11
    return "X" if check == 10 else str(check)


def vin_valid(value: str, library: Optional[PatternLibrary] = None) -> bool:
    """ISO 3779 VIN check digit at position 9."""
    if not isinstance(value, str):
        return False
    s = normalize_vin(value, library)
    if len(s) != 17:
        return False
    check = vin_check_char(s)
    return check is not None and s[8] == check


def _gs1_valid(s: str, length: int, first_weight: int) -> bool:
    if len(s) != length or not _is_digits(s):
        return False
    other = 4 - first_weight
    total = sum((ord(ch) - 48) * (first_weight if i % 2 == 0 else other) for i, ch in enumerate(s[:-1]))
    return (10 - (total % 10)) % 10 == ord(s[-1]) - 48


def ean13_valid(value: str, library: Optional[PatternLibrary] = None) -> bool:
    """GS1 EAN-13: weights 1,3 over the first twelve digits."""
    if not isinstance(value, str):
        return False
    return _gs1_valid(normalize_gs1(value, library), 13, 1)


def upca_valid(value: str, library: Optional[PatternLibrary] = None) -> bool:
    """GS1 UPC-A: weights 3,1 over the first eleven digits."""
    if not isinstance(value, str):
        return False
    return _gs1_valid(normalize_gs1(value, library), 12, 3)


# -----------------------------
# Format-only validators
# -----------------------------
def uuid_valid(value: str, library: Optional[PatternLibrary] = None) -> bool:
    return isinstance(value, str) and _lib(library).matches_format("uuid", value.strip())


def mac_address_valid(value: str, library: Optional[PatternLibrary] = None) -> bool:
    return isinstance(value, str) and _lib(library).matches_format("mac_address", value.strip())


def ipv4_valid(value: str, library: Optional[PatternLibrary] = None) -> bool:
    return isinstance(value, str) and _lib(library).matches_format("ipv4", value.strip())


def hex_color_valid(value: str, library: Optional[PatternLibrary] = None) -> bool:
    return isinstance(value, str) and _lib(library).matches_format("hex_color", value.strip())


Validator = Callable[[str, Optional[PatternLibrary]], bool]
