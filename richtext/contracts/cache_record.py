"""Cache record contract.

A cache entry is stored as a JSON object so any key-value backend can hold
it. This module defines:
- A JSON Schema for that object
- A validator returning human-readable errors

Records that fail validation are treated as corrupt by the cache.
"""

from __future__ import annotations

from typing import Any, Dict, List

from jsonschema import Draft202012Validator


CACHE_RECORD_SCHEMA: Dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "required": ["key", "value", "fetched_at", "ttl", "failure_count"],
    "properties": {
        "key": {"type": "string", "minLength": 1},
        "value": {
            "type": "object",
            "required": ["values"],
            "properties": {
                "values": {
                    "type": "object",
                    "additionalProperties": {"type": "string"},
                },
                "error": {"type": ["string", "null"]},
            },
            "additionalProperties": False,
        },
        "fetched_at": {"type": "number"},
        "ttl": {"type": "number", "exclusiveMinimum": 0},
        "failure_count": {"type": "integer", "minimum": 0, "maximum": 255},
    },
    "additionalProperties": True,
}


_VALIDATOR = Draft202012Validator(CACHE_RECORD_SCHEMA)


def validate_cache_record(payload: Any) -> List[str]:
    """Return a list of human-readable validation errors (empty means valid)."""
    errors = []
    for e in sorted(_VALIDATOR.iter_errors(payload), key=lambda x: list(map(str, x.path))):
        path = ".".join(str(p) for p in e.path) if e.path else "<root>"
        errors.append(f"{path}: {e.message}")
    return errors
