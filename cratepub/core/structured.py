"""Typed accessors for parsed TOML tables.

`tomllib` hands back plain dicts of `object`; these helpers narrow them at the
config boundary and report a wrong type as a wrong type, instead of letting it
leak into the release stages.
"""

from __future__ import annotations

from typing import Mapping, TypeGuard, cast

StrDict = dict[str, object]


class FieldTypeError(ValueError):
    """A config key is present but holds a value of the wrong type."""

    def __init__(self, key: str, expected: str, value: object) -> None:
        super().__init__(f"{key}: expected {expected}, got {type(value).__name__}")
        self.key = key


def is_str_dict(obj: object) -> TypeGuard[StrDict]:
    """Return True if obj is a dict with string keys."""
    if not isinstance(obj, dict):
        return False
    d = cast(dict[object, object], obj)
    return all(isinstance(k, str) for k in d.keys())


def as_str_dict(obj: object) -> StrDict | None:
    if is_str_dict(obj):
        return obj
    return None


def get_table(table: Mapping[str, object], key: str) -> StrDict:
    """Get a nested table; a missing key yields an empty table."""
    value = table.get(key)
    if value is None:
        return {}
    out = as_str_dict(value)
    if out is None:
        raise FieldTypeError(key, "table", value)
    return out


def get_str(table: Mapping[str, object], key: str) -> str | None:
    """Get a non-empty string (stripped). Missing or blank yields None."""
    value = table.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise FieldTypeError(key, "string", value)
    s = value.strip()
    return s or None


def get_positive_float(table: Mapping[str, object], key: str) -> float | None:
    """Get a strictly positive number (int or float, not bool)."""
    value = table.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int | float) or value <= 0:
        raise FieldTypeError(key, "positive number", value)
    return float(value)


def get_str_list(table: Mapping[str, object], key: str) -> tuple[str, ...] | None:
    """Get a non-empty list of strings."""
    value = table.get(key)
    if value is None:
        return None
    if not isinstance(value, list):
        raise FieldTypeError(key, "list of strings", value)
    items = cast(list[object], value)
    if not items or not all(isinstance(item, str) and item for item in items):
        raise FieldTypeError(key, "list of strings", value)
    return tuple(cast(list[str], items))
