"""Extension of a module location (URL or path)."""

from __future__ import annotations

from urllib.parse import urlsplit


def parse_extension(location: str) -> str:
    """
    Return the text after the final dot of the final path segment.

    >>> parse_extension("file:///app/lib/index.py")
    'py'
    >>> parse_extension("/app/README")
    ''
    """
    path = urlsplit(location).path if "://" in location else location
    segment = path.replace("\\", "/").rsplit("/", 1)[-1]
    if "." not in segment:
        return ""
    return segment.rsplit(".", 1)[1]
