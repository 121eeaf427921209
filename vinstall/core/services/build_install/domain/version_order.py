"""
L1 Domain — Version-aware ordering (pure).

Orders version strings the way ``sort -V`` does: runs of digits compare
numerically, everything between them compares as text.  No I/O.
"""

from __future__ import annotations

import re

LATEST = "latest"

_PART_RE = re.compile(r"(\D*)(\d*)")


def version_key(version: str) -> tuple[tuple[str, int], ...]:
    """Sort key for ``version``.

    ``"v1.10.0"`` becomes ``(("v", 1), (".", 10), (".", 0))`` so that
    ``1.10.0`` sorts after ``1.9.0``.  A version that extends another
    (``1.2.0-rc1`` vs ``1.2.0``) sorts after it.
    """
    parts: list[tuple[str, int]] = []
    for text, digits in _PART_RE.findall(version):
        if not text and not digits:
            continue
        parts.append((text, int(digits) if digits else -1))
    return tuple(parts)


def max_version(versions: list[str]) -> str:
    """Return the highest version under version-aware ordering."""
    return max(versions, key=version_key)


def sort_versions(versions: list[str], *, reverse: bool = False) -> list[str]:
    return sorted(versions, key=version_key, reverse=reverse)


def is_latest(spec: str) -> bool:
    return spec == LATEST


def is_explicit_version(spec: str) -> bool:
    """Explicit specs must start with a digit (``1.24.0``, ``3.12``)."""
    return bool(spec) and spec[0].isdigit()
