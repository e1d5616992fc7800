"""A named collection of attributes exposed to scripts."""

from __future__ import annotations

from typing import Any


class Module:
    """A module whose members are looked up by name."""

    type_name = "<module>"

    def __init__(self, name: str, attrs: dict[str, Any] | None = None) -> None:
        self.name = name
        self.attrs = dict(attrs or {})

    def __str__(self) -> str:
        return f"<module: {self.name}>"

    def __bool__(self) -> bool:
        return True

    def __hash__(self) -> int:
        raise TypeError(f"unhashable type: {self.type_name}")

    def attr(self, name: str) -> Any:
        """Return the named member, raising AttributeError when absent."""
        try:
            return self.attrs[name]
        except KeyError:
            raise AttributeError(f"<module: {self.name}>: method name `{name}' not found") from None

    def attr_names(self) -> list[str]:
        """Return the member names in sorted order."""
        return sorted(self.attrs)