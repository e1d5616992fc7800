"""Read-only mapping values built from decoded JSON."""

from __future__ import annotations

import json
from collections.abc import Iterator, Mapping
from typing import Any


def _format(value: Any) -> str:
    if isinstance(value, str):
        return json.dumps(value)
    if value is None:
        return "None"
    if isinstance(value, list):
        return "[" + ", ".join(_format(item) for item in value) + "]"
    return str(value)


class Values(Mapping):
    """A string-keyed mapping with stable, sorted string output."""

    type_name = "vault: secret"

    def __init__(self, values: dict[str, Any] | None = None) -> None:
        self._values = dict(values or {})

    def __getitem__(self, key: str) -> Any:
        return self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._values))

    def __len__(self) -> int:
        return len(self._values)

    def __bool__(self) -> bool:
        return bool(self._values)

    def __hash__(self) -> int:
        raise TypeError(f"unhashable type: {self.type_name}")

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Values):
            return self._values == other._values
        return NotImplemented

    def __str__(self) -> str:
        body = " ".join(f"{json.dumps(key)}:{_format(self._values[key])}" for key in self)
        return f"map[{body}]"

    __repr__ = __str__

    def get(self, key: Any) -> Any:
        """Return the value for a string key, or None when absent."""
        if not isinstance(key, str):
            raise TypeError(f"want string key, got: {type(key).__name__}")
        return self._values.get(key)


def value_from_json(value: Any) -> Any:
    """Convert a decoded JSON value, turning objects into Values."""
    if value is None or isinstance(value, (str, bool, int, float)):
        return value
    if isinstance(value, dict):
        return value_from_nested_map(value)
    if isinstance(value, list):
        converted = []
        for index, item in enumerate(value):
            try:
                converted.append(value_from_json(item))
            except TypeError as err:
                raise TypeError(
                    f"failed to convert item to Starlark type [{index}]={item!r}: {err}"
                ) from err
        return converted
    raise TypeError(f"unsupported JSON data type: {type(value).__name__}")


def value_from_nested_map(mapping: dict[str, Any]) -> Values:
    """Convert a decoded JSON object into Values."""
    return Values({str(key): value_from_json(value) for key, value in mapping.items()})