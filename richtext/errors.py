"""Exceptions raised to callers.

Only programmer errors surface as exceptions. Bad input data and failed
fetches are reported as values (`ValidationResult`, `Metadata.error`).
"""

from __future__ import annotations


class RichTextError(Exception):
    """Base class for richtext errors."""


class ConfigurationError(RichTextError, ValueError):
    """Invalid configuration or registration after the pattern table was frozen."""


class UnknownKindError(RichTextError, KeyError):
    """Validation requested for an identifier kind that does not exist."""

    def __init__(self, kind: object):
        super().__init__(kind)
        self.kind = kind

    def __str__(self) -> str:
        return f"unknown identifier kind: {self.kind!r}"


class CacheCorruptionError(RichTextError):
    """A backing store returned a record that does not decode to a cache entry."""

    def __init__(self, key: str, reason: str):
        super().__init__(f"{key}: {reason}")
        self.key = key
        self.reason = reason
