"""Helper utilities.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

from typing import Iterable, Optional


def normalize_path(path: str) -> str:
    """Normalize URL path."""
    if not path:
        return "/"

    # Remove double slashes
    while "//" in path:
        path = path.replace("//", "/")

    if not path.startswith("/"):
        path = "/" + path

    if path != "/" and path.endswith("/"):
        path = path[:-1]

    return path


def join_paths(base: str, path: str) -> str:
    """Join a base path and a path with exactly one slash between them."""
    base = base.rstrip("/")
    if not path:
        return base or "/"
    return base + "/" + path.lstrip("/")


def preferred_media_type(
    accept: str,
    known: Iterable[str],
    default: Optional[str] = None,
) -> Optional[str]:
    """First media type in an Accept header that is in ``known``.

    Quality parameters are ignored; header order decides.
    """
    known = list(known)
    for item in accept.split(","):
        media_type = item.split(";", 1)[0].strip().lower()
        if media_type in known:
            return media_type
    return default


__all__ = [
    "normalize_path",
    "join_paths",
    "preferred_media_type",
]
