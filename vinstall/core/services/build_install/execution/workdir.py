"""
L4 Execution — Private working directories.

Downloads, unpacked sources and stage logs live under
``<tmp>/installers/<package>/``, which must be 0700 and owned by the
current user.  Each run gets its own fresh subdirectory, removed when
the run ends unless something flagged it for preservation.
"""

from __future__ import annotations

import logging
import os
import shutil
import stat
import tempfile
from pathlib import Path
from types import TracebackType

from vinstall.core.errors import InstallError, UnsafeDirectory
from vinstall.core.services.build_install.data.constants import INSTALLERS_DIR

logger = logging.getLogger(__name__)


def verify_private_dir(*paths: Path) -> None:
    """Require each path to be a 0700 directory owned by the current user.

    Raises:
        UnsafeDirectory: on the first path that fails a check.
        ValueError: no path given.
    """
    if not paths:
        raise ValueError("verify_private_dir requires at least one directory path")

    uid = os.getuid()
    for path in paths:
        try:
            st = path.lstat()
        except OSError as exc:
            raise UnsafeDirectory(path, f"cannot stat: {exc.strerror}") from exc
        if not stat.S_ISDIR(st.st_mode):
            raise UnsafeDirectory(path, "not a directory")
        if st.st_uid != uid:
            raise UnsafeDirectory(path, f"not owned by uid {uid}")
        if stat.S_IMODE(st.st_mode) != 0o700:
            raise UnsafeDirectory(
                path, f"perms are {stat.S_IMODE(st.st_mode):04o}, expected 0700",
            )


def make_download_dir(package: str, work_root: Path | None = None) -> Path:
    """Create (or validate) ``<work_root>/installers/<package>``.

    Args:
        package: Package name.
        work_root: Parent temp directory, default ``tempfile.gettempdir()``.

    Returns:
        The private per-package directory.

    Raises:
        UnsafeDirectory: it exists with the wrong owner or mode, or
            cannot be created.
    """
    root = Path(work_root) if work_root else Path(tempfile.gettempdir())
    dirpath = root / INSTALLERS_DIR / package

    if dirpath.exists():
        verify_private_dir(dirpath)
        return dirpath

    try:
        dirpath.mkdir(mode=0o700, parents=True)
        # mkdir's mode is filtered by the umask
        dirpath.chmod(0o700)
    except OSError as exc:
        raise UnsafeDirectory(dirpath, f"cannot create: {exc.strerror or exc}") from exc
    return dirpath


class WorkingDirectory:
    """Scoped, exclusively owned working directory for one pipeline run.

    Usage::

        with WorkingDirectory("python", keep=False) as wd:
            download(wd.path, urls)
            ...

    On exit the directory is deleted unless ``keep`` was requested or
    ``preserve()`` was called.  An ``InstallError`` escaping the block
    preserves it automatically so logs and partial builds stay
    inspectable; an interrupt does not.
    """

    def __init__(self, package: str, *, work_root: Path | None = None, keep: bool = False) -> None:
        self.package = package
        self.work_root = work_root
        self.keep = keep
        self.preserved = False
        self.preserve_reason = ""
        self._path: Path | None = None

    @property
    def path(self) -> Path:
        if self._path is None:
            raise RuntimeError("WorkingDirectory used outside its 'with' block")
        return self._path

    def preserve(self, reason: str) -> None:
        """Keep the directory after the run, e.g. because a stage failed."""
        self.preserved = True
        self.preserve_reason = reason

    def __enter__(self) -> WorkingDirectory:
        parent = make_download_dir(self.package, self.work_root)
        try:
            self._path = Path(tempfile.mkdtemp(prefix="run-", dir=parent))
        except OSError as exc:
            raise UnsafeDirectory(
                parent, f"cannot create a run directory: {exc.strerror or exc}",
            ) from exc
        logger.debug("Working directory: %s", self._path)
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if isinstance(exc, InstallError) and not self.preserved:
            self.preserve(str(exc))
        self.cleanup()

    def cleanup(self) -> None:
        if self._path is None or not self._path.exists():
            return
        if self.keep or self.preserved:
            logger.warning(
                "Keeping working directory %s%s",
                self._path,
                f" ({self.preserve_reason})" if self.preserve_reason else "",
            )
            return
        shutil.rmtree(self._path)
        logger.debug("Removed working directory %s", self._path)
