"""Small helpers for strings, rows and key/value lists."""

from __future__ import annotations

import hashlib
from typing import Any, Iterable, Mapping


def unique(items: Iterable[str] | None) -> list[str] | None:
    """Return the distinct items sorted alphabetically; ``None`` stays ``None``."""
    if items is None:
        return None
    return sorted(set(items))


def flatten_row(row: Mapping[str, Any]) -> dict[str, Any]:
    """Flatten nested mappings into one level, dropping ``None`` values.

    Keys of nested mappings are lifted to the top level; the key that held the
    nested mapping itself is not kept.
    """
    flat: dict[str, Any] = {}
    for key, value in row.items():
        if isinstance(value, Mapping):
            flat.update(flatten_row(value))
        elif value is not None:
            flat[key] = value
    return flat


def sha256_hex(data: bytes) -> str:
    """Return the lowercase hex SHA-256 digest of ``data``."""
    return hashlib.sha256(data).hexdigest()


def to_map(kvs: Iterable[Any]) -> dict[str, Any]:
    """Build a dict from a flat ``key, value, key, value`` sequence.

    A trailing key without a value maps to ``None``. Non-string keys are
    converted with ``str``.
    """
    items = list(kvs)
    if len(items) % 2 == 1:
        items.append(None)
    result: dict[str, Any] = {}
    pairs = iter(items)
    for key, value in zip(pairs, pairs):
        result[key if isinstance(key, str) else str(key)] = value
    return result