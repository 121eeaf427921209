"""
L4 Execution — Archive extraction.

Unpacks with ``tar`` into a destination that is always recreated from
scratch: an existing directory of the same name is removed first, so a
retry never merges with leftovers from an earlier attempt.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
from pathlib import Path

from vinstall.core.errors import MissingArtifact, UnpackFailed
from vinstall.core.services.build_install.data.constants import UNPACK_TIMEOUT

logger = logging.getLogger(__name__)


def _remove(path: Path) -> None:
    if path.is_symlink() or path.is_file():
        path.unlink()
    elif path.is_dir():
        shutil.rmtree(path)


def unpack(
    archive: Path,
    dest: Path,
    *,
    strip_components: bool = True,
    timeout: int = UNPACK_TIMEOUT,
) -> Path:
    """Extract ``archive`` into ``dest``.

    Args:
        archive: Tarball (any compression ``tar`` auto-detects).
        dest: Target directory; destroyed and recreated if present.
        strip_components: Drop the archive's leading path component so
            every upstream layout lands directly in ``dest``.
        timeout: Seconds before extraction is abandoned.

    Returns:
        ``dest``.

    Raises:
        MissingArtifact: ``archive`` is not a regular file.
        UnpackFailed: ``tar`` exited non-zero.
    """
    if not archive.is_file():
        raise MissingArtifact(archive, "package")

    if dest.exists() or dest.is_symlink():
        logger.debug("Removing previous unpack at %s", dest)
        _remove(dest)
    dest.mkdir(parents=True)

    cmd = ["tar", "-x", "-f", str(archive), "-C", str(dest)]
    if strip_components:
        cmd.append("--strip-components=1")

    logger.info("Unpacking %s → %s", archive.name, dest)
    try:
        result = subprocess.run(cmd, capture_output=True, text=True, timeout=timeout)
    except subprocess.TimeoutExpired as exc:
        raise UnpackFailed(archive, 124) from exc
    except OSError as exc:
        raise UnpackFailed(archive, 127) from exc

    if result.returncode != 0:
        logger.debug("tar stderr: %s", result.stderr.strip())
        raise UnpackFailed(archive, result.returncode)
    return dest
