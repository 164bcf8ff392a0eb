"""Version identifier ordering for API documentation versions."""

from __future__ import annotations

import re
from collections.abc import Iterable

_SEGMENT_RE = re.compile(r"[.\-]")


def version_key(version: str) -> tuple[tuple[int, int | str], ...]:
    """Sort key for ``v``-prefixed dotted version identifiers.

    Numeric segments compare numerically and always sort before
    non-numeric ones, which compare as strings.

    Examples:
        >>> version_key("v18.12.1") > version_key("v9.0.0")
        True
        >>> version_key("v18") < version_key("v18.1")
        True
    """
    stripped = version[1:] if version[:1] in ("v", "V") else version
    key: list[tuple[int, int | str]] = []
    for segment in _SEGMENT_RE.split(stripped):
        if segment.isdigit():
            key.append((0, int(segment)))
        else:
            key.append((1, segment))
    return tuple(key)


def latest_version(versions: Iterable[str]) -> str | None:
    """Return the highest version in *versions*, or None if empty."""
    candidates = [v for v in versions if v]
    if not candidates:
        return None
    return max(candidates, key=version_key)


def sort_versions(versions: Iterable[str]) -> list[str]:
    """Unique versions in ascending order."""
    return sorted(set(versions), key=version_key)
