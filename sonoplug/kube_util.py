"""Conversions of script values into Kubernetes int-or-string values."""

from __future__ import annotations

_INT32_MIN = -(2**31)
_INT32_MAX = 2**31 - 1


def from_str(value: str) -> str:
    """Return the string form of an int-or-string holding a string."""
    if not isinstance(value, str):
        raise TypeError(f"from_str: for parameter 1: got {type(value).__name__}, want string")
    return value


def from_int(value: int) -> str:
    """Return the string form of an int-or-string holding a 32-bit integer."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"from_int: for parameter 1: got {type(value).__name__}, want int")
    if not _INT32_MIN <= value <= _INT32_MAX:
        raise ValueError(
            f"from_int: for parameter 1: {value} out of range (want value in signed 32-bit range)"
        )
    return str(value)