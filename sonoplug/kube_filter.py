"""Removing paths and empty branches from ordered YAML mappings."""

from __future__ import annotations

from typing import Any


def filter_yaml(mapping: dict[Any, Any], *args: str) -> dict[Any, Any]:
    """Return a copy of mapping without the element at the given key path."""
    if not args:
        raise ValueError("filter_yaml needs at least one path element")
    head, rest = args[0], args[1:]
    out: dict[Any, Any] = {}
    for key, value in mapping.items():
        if isinstance(key, str) and key == head:
            if not rest:
                continue
            if isinstance(value, dict):
                value = filter_yaml(value, *rest)
        out[key] = value
    return out


def filter_empty(mapping: dict[Any, Any]) -> dict[Any, Any]:
    """Return a copy of mapping with empty nested mappings removed, recursively."""
    out: dict[Any, Any] = {}
    for key, value in mapping.items():
        if isinstance(value, dict):
            value = filter_empty(value)
            if not value:
                continue
        out[key] = value
    return out