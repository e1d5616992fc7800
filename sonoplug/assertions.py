"""Assertions for scripts, with failure messages built from a template."""

from __future__ import annotations

import json
import re
from collections.abc import Mapping
from typing import Any

import yaml

DEFAULT_ERROR_MESSAGE = "Not equal:\n\n\t\t\t(expected type: $4)\n$1\n\n(was type: $5)\n$2"

_PLACEHOLDER = re.compile(r"\$[1-5]|\\n|\\t")


class AssertionFailed(AssertionError):
    """A script assertion did not hold."""


def _type_name(value: Any) -> str:
    if value is None:
        return "NoneType"
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, int):
        return "int"
    if isinstance(value, float):
        return "float"
    if isinstance(value, str):
        return "string"
    if isinstance(value, tuple):
        return "tuple"
    if isinstance(value, list):
        return "list"
    if isinstance(value, Mapping):
        return "dict"
    return type(value).__name__


def _display(value: Any) -> str:
    """Return the script-language text of a value; strings come out quoted."""
    if value is None:
        return "None"
    if isinstance(value, bool):
        return "True" if value else "False"
    if isinstance(value, str):
        return json.dumps(value, ensure_ascii=False)
    if isinstance(value, tuple):
        if len(value) == 1:
            return f"({_display(value[0])},)"
        return "(" + ", ".join(_display(item) for item in value) + ")"
    if isinstance(value, list):
        return "[" + ", ".join(_display(item) for item in value) + "]"
    if isinstance(value, Mapping):
        return "{" + ", ".join(f"{_display(k)}: {_display(v)}" for k, v in value.items()) + "}"
    return str(value)


def _compare(expected: Any, actual: Any) -> str:
    left, right = _display(expected), _display(actual)
    if left == right:
        return " " + left
    return f"-{left}\n+{right}"


def format_message(template: str, expected: Any, actual: Any) -> str:
    """Fill a message template.

    $1 and $2 become the expected and actual values, $3 a diff of them, $4 and
    $5 their type names; the two-character sequences \\n and \\t become a
    newline and a tab. Placeholders may appear any number of times in any order.
    """
    diff = _compare(expected, actual) if "$3" in template else ""
    replacements = {
        "$1": _display(expected),
        "$2": _display(actual),
        "$3": diff,
        "$4": _type_name(expected),
        "$5": _type_name(actual),
        "\\n": "\n",
        "\\t": "\t",
    }

    def substitute(text: str) -> str:
        return _PLACEHOLDER.sub(lambda match: replacements[match.group(0)], text)

    # A second pass resolves escapes that the substituted values brought in.
    return substitute(substitute(template))


def _to_plain(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {_to_plain(k): _to_plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_to_plain(item) for item in value]
    return value


def _as_yaml(value: Any) -> str:
    try:
        return yaml.safe_dump(_to_plain(value), sort_keys=False, default_flow_style=False)
    except yaml.YAMLError as err:
        raise ValueError(f"cannot encode {_type_name(value)} value: {err}") from err


def fail(message: str) -> None:
    """Raise AssertionFailed with the given message."""
    if not isinstance(message, str):
        raise TypeError(f"expected a string, but was {_type_name(message)}")
    raise AssertionFailed(f"fail: {message}")


def equals(expected: Any, actual: Any, message: str | None = None) -> None:
    """Raise AssertionFailed unless both values encode to the same YAML.

    A custom message is a template for format_message; like any string value
    it is used in its quoted form.
    """
    for value in (expected, actual):
        if callable(value):
            raise TypeError(
                f"expected argument not to be a function, but was {type(value).__name__}"
            )

    if _as_yaml(expected) != _as_yaml(actual):
        template = DEFAULT_ERROR_MESSAGE if message is None else _display(message)
        raise AssertionFailed(format_message(template, expected, actual))