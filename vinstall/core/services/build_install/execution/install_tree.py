"""
L4 Execution — Install tree and ``default`` alias.

Layout (fixed)::

    <base>/<version>/              install prefix
    <base>/<version>/.build/*.log  preserved stage logs
    <base>/default -> <version>    preferred version
"""

from __future__ import annotations

import logging
import os
import shutil
import time
from pathlib import Path

from vinstall.core.errors import InstallDirError
from vinstall.core.models.settings import SymlinkPolicy
from vinstall.core.services.build_install.data.constants import (
    BUILD_LOG_DIR,
    DEFAULT_ALIAS,
)

logger = logging.getLogger(__name__)


def ensure_install_dir(base: Path, version: str) -> tuple[Path, bool]:
    """Return ``<base>/<version>``, creating it if absent.

    Returns:
        ``(path, already_populated)``; the flag is True when the
        directory existed and was non-empty, so callers may skip work.

    Raises:
        InstallDirError: the directory cannot be read or created.
    """
    path = base / version
    try:
        if path.is_dir() and any(path.iterdir()):
            logger.info("Install directory %s already exists", path)
            return path, True
        path.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise InstallDirError(path, exc.strerror or str(exc)) from exc
    return path, False


def is_broken_symlink(path: Path) -> bool:
    return path.is_symlink() and not path.exists()


def _point_link(link: Path, target: str) -> None:
    """Atomically make ``link`` a symlink to ``target`` (like ``ln -sfn``)."""
    tmp = link.with_name(f".{link.name}.{os.getpid()}.tmp")
    if tmp.is_symlink() or tmp.exists():
        tmp.unlink()
    tmp.symlink_to(target)
    os.replace(tmp, link)


def add_default_symlink(
    base: Path,
    version: str,
    policy: SymlinkPolicy | None = None,
) -> bool:
    """Point ``<base>/default`` at ``<version>`` according to ``policy``.

    The three cases are governed independently:

    - no ``default`` yet → ``policy.create_if_missing``
    - ``default`` is a symlink → ``policy.update_if_symlink``
    - ``default`` exists but is not a symlink → ``policy.replace_if_not_symlink``;
      a real directory is renamed aside, never deleted.

    Returns:
        True if the alias was created or changed.

    Raises:
        InstallDirError: the alias could not be inspected or rewritten.
    """
    policy = policy or SymlinkPolicy()
    dest = base / DEFAULT_ALIAS
    try:
        return _update_alias(base, dest, version, policy)
    except OSError as exc:
        raise InstallDirError(dest, exc.strerror or str(exc)) from exc


def _update_alias(base: Path, dest: Path, version: str, policy: SymlinkPolicy) -> bool:
    if dest.is_symlink():
        if not policy.update_if_symlink:
            logger.info("Leaving %s → %s (updates disabled)", dest, os.readlink(dest))
            return False
        if os.readlink(dest) == version:
            return False
        _point_link(dest, version)
        logger.info("Updated %s → %s", dest, version)
        return True

    if dest.exists():
        if not policy.replace_if_not_symlink:
            logger.info("Leaving %s (not a symlink, replacement disabled)", dest)
            return False
        if dest.is_dir():
            aside = dest.with_name(f"{DEFAULT_ALIAS}.replaced-{int(time.time())}")
            logger.warning("%s is a directory; moving it to %s", dest, aside)
            dest.rename(aside)
        _point_link(dest, version)
        logger.info("Replaced %s with symlink → %s", dest, version)
        return True

    if not policy.create_if_missing:
        logger.info("Not creating %s (creation disabled)", dest)
        return False
    base.mkdir(parents=True, exist_ok=True)
    _point_link(dest, version)
    logger.info("Created %s → %s", dest, version)
    return True


def preserve_logs(workdir: Path, install_dir: Path) -> list[Path]:
    """Copy ``*.log`` from ``workdir`` into ``<install_dir>/.build/``.

    Timestamps are preserved; a file whose destination copy has the same
    size and is at least as new is skipped.

    Returns:
        Paths of the files actually copied.

    Raises:
        InstallDirError: ``.build/`` cannot be created or written.
    """
    logs = sorted(workdir.glob("*.log"))
    if not logs:
        return []

    build_dir = install_dir / BUILD_LOG_DIR
    copied: list[Path] = []
    try:
        build_dir.mkdir(parents=True, exist_ok=True)
        for src in logs:
            dst = build_dir / src.name
            if dst.is_file():
                s, d = src.stat(), dst.stat()
                if d.st_size == s.st_size and d.st_mtime >= s.st_mtime:
                    continue
            shutil.copy2(src, dst)
            copied.append(dst)
    except OSError as exc:
        raise InstallDirError(build_dir, exc.strerror or str(exc)) from exc

    logger.debug("Preserved %d log(s) in %s", len(copied), build_dir)
    return copied
