"""
L2 Resolver — Version spec → resolved tag.

Pure function over a supplied tag list.  Listing tags (git sync or a
descriptor's static release list) happens before this is called.
"""

from __future__ import annotations

import logging
import re

from vinstall.core.errors import InvalidVersion, NoTagsFound, TagNotFound
from vinstall.core.models.build import ResolvedVersion
from vinstall.core.services.build_install.domain.version_order import (
    is_explicit_version,
    is_latest,
    max_version,
)

logger = logging.getLogger(__name__)


def filter_tags(
    tags: list[str],
    *,
    prefix: str = "",
    exclude: str | None = None,
) -> list[str]:
    """Keep tags starting with ``prefix`` and not matching ``exclude``."""
    exclude_re = re.compile(exclude) if exclude else None
    kept = []
    for tag in tags:
        tag = tag.strip()
        if not tag or not tag.startswith(prefix):
            continue
        if exclude_re is not None and exclude_re.search(tag):
            continue
        kept.append(tag)
    return kept


def resolve_version(
    spec: str,
    tags: list[str],
    *,
    prefix: str = "v",
    exclude: str | None = None,
) -> ResolvedVersion:
    """Resolve ``spec`` against ``tags``.

    Args:
        spec: ``"latest"`` or an explicit version starting with a digit.
        tags: Every known tag/reference for the package.
        prefix: Tag prefix; ``"v"`` maps ``1.2.0`` to ``v1.2.0``.
        exclude: Regex of tags to ignore for ``latest`` (pre-releases).

    Returns:
        The resolved version and its tag.

    Raises:
        NoTagsFound: ``latest`` and nothing survives filtering.
        InvalidVersion: explicit spec does not start with a digit.
        TagNotFound: explicit spec's tag is not in ``tags``.
    """
    if is_latest(spec):
        candidates = filter_tags(tags, prefix=prefix, exclude=exclude)
        if not candidates:
            raise NoTagsFound(prefix, exclude)
        tag = max_version(candidates)
        version = tag[len(prefix):]
        logger.debug("Resolved latest → %s (from %d candidates)", tag, len(candidates))
        return ResolvedVersion(version=version, tag=tag)

    if not is_explicit_version(spec):
        raise InvalidVersion(spec)

    tag = f"{prefix}{spec}"
    if tag not in {t.strip() for t in tags}:
        raise TagNotFound(tag)
    return ResolvedVersion(version=spec, tag=tag)
