from __future__ import annotations

from urllib.parse import quote


def segment(value: str) -> str:
    """Quote one path segment; names may contain spaces and slashes."""

    return quote(value, safe="")


__all__ = ["segment"]
