"""
L3 Detection — Host facts.

Read-only: processor count for parallel builds.
"""

from __future__ import annotations

import os


def core_count() -> int:
    """Number of processors usable for ``make -j``, ``1`` if undetectable."""
    try:
        return len(os.sched_getaffinity(0)) or 1
    except (AttributeError, OSError):
        return os.cpu_count() or 1

