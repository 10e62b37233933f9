"""Signing string construction."""

from __future__ import annotations

from typing import Sequence

from tl_signing.headers import HeaderSet


def build_signing_string(
    method: str,
    path: str,
    header_names: Sequence[str],
    headers: HeaderSet,
    body: bytes,
) -> bytes:
    """Return the bytes covered by the signature.

    The first line is ``"{METHOD} {path}"``, then one ``"{name}: {value}"``
    line per entry of ``header_names`` in the given order and casing, then
    the raw body with no trailing newline. Values are looked up in
    ``headers`` ignoring case; every name must be present there.
    """
    lines = [f"{method.upper()} {path}\n"]
    for name in header_names:
        value = headers.get(name)
        if value is None:
            raise KeyError(name)
        lines.append(f"{name}: {value}\n")
    return "".join(lines).encode("utf-8") + body
