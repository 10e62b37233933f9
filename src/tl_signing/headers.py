"""Ordered header collection with case-insensitive names."""

from __future__ import annotations

from typing import Iterator

from tl_signing.types import HeaderInput


def require_utf8(value: str, label: str) -> str:
    try:
        value.encode("utf-8")
    except UnicodeEncodeError as error:
        raise ValueError(f"{label} is not encodable as UTF-8") from error
    return value


class HeaderSet:
    """Header names map to values; lookups ignore case.

    Names keep the casing they were first added with and iterate in
    insertion order. Adding a name again replaces its value in place.
    """

    def __init__(self, headers: HeaderInput | None = None) -> None:
        self._entries: dict[str, tuple[str, str]] = {}
        if headers is not None:
            self.update(headers)

    def add(self, name: str, value: str) -> None:
        value = require_utf8(str(value), "Header value")
        key = require_utf8(name, "Header name").lower()
        existing = self._entries.get(key)
        display = existing[0] if existing is not None else name
        self._entries[key] = (display, value)

    def update(self, headers: HeaderInput) -> None:
        if hasattr(headers, "items"):
            for name, value in headers.items():  # type: ignore[union-attr]
                self.add(str(name), str(value))
            return

        for entry in headers:
            if len(entry) != 2:
                raise ValueError("Header entries must be [name, value]")
            self.add(str(entry[0]), str(entry[1]))

    def get(self, name: str) -> str | None:
        entry = self._entries.get(name.lower())
        return entry[1] if entry is not None else None

    def names(self) -> list[str]:
        return [display for display, _ in self._entries.values()]

    def items(self) -> list[tuple[str, str]]:
        return list(self._entries.values())

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(self.names())

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"HeaderSet({self.items()!r})"
