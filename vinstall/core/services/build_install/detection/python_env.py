"""
L3 Detection — Locate installed Python interpreters.

Read-only checks over the install tree and PATH.  Used to report which
interpreter the ``default`` alias currently points at.
"""

from __future__ import annotations

import logging
import re
import shutil
import subprocess
from pathlib import Path

from vinstall.core.errors import InstallError

logger = logging.getLogger(__name__)

_BINARIES = ("python3", "python")
_DEFAULT_BASE = Path("/opt/python")
_MAJOR_MINOR_RE = re.compile(r"(\d+\.\d+)")


def _works(exe: Path) -> bool:
    try:
        result = subprocess.run(
            [str(exe), "-V"], capture_output=True, text=True, timeout=15,
        )
    except (OSError, subprocess.TimeoutExpired):
        return False
    return result.returncode == 0


def find_python(base: Path | None = None) -> Path | None:
    """Path of the preferred Python executable.

    Checks ``<base>/default/bin/python3`` then ``.../python``, and falls
    back to the first working ``python3``/``python`` on PATH.

    Returns:
        The executable path, or ``None`` if nothing usable was found.
    """
    base = base or _DEFAULT_BASE
    for binary in _BINARIES:
        exe = base / "default" / "bin" / binary
        if exe.exists() and _works(exe):
            return exe

    for binary in _BINARIES:
        found = shutil.which(binary)
        if found and _works(Path(found)):
            return Path(found)

    return None


def python_lib_dir(exe: Path) -> Path:
    """``<prefix>/lib/pythonX.Y`` for the interpreter at ``exe``.

    The prefix comes from ``<exe>-config --prefix`` and ``X.Y`` from
    ``<exe> --version``.

    Raises:
        InstallError: ``exe`` is not executable, either check fails,
            or the resulting directory does not exist.
    """
    if not exe.is_file() or not exe.stat().st_mode & 0o111:
        raise InstallError(f"'{exe}' is not a Python executable")

    pyconfig = Path(f"{exe}-config")
    try:
        prefix = subprocess.run(
            [str(pyconfig), "--prefix"], capture_output=True, text=True, timeout=15,
        )
    except (OSError, subprocess.TimeoutExpired) as exc:
        raise InstallError(f"'{pyconfig} --prefix' failed: {exc}") from exc
    if prefix.returncode != 0:
        raise InstallError(f"'{pyconfig} --prefix' failed", returncode=prefix.returncode)

    try:
        version = subprocess.run(
            [str(exe), "--version"], capture_output=True, text=True, timeout=15,
        )
    except (OSError, subprocess.TimeoutExpired) as exc:
        raise InstallError(f"couldn't determine Python lib dir: {exc}") from exc
    # Python 2 printed the version on stderr
    output = (version.stdout or version.stderr).strip().splitlines()
    match = _MAJOR_MINOR_RE.search(output[-1]) if output else None
    if version.returncode != 0 or match is None:
        raise InstallError("couldn't determine Python lib dir")

    libdir = Path(prefix.stdout.strip()) / "lib" / f"python{match.group(1)}"
    if not libdir.is_dir():
        raise InstallError(f"expected Python lib dir '{libdir}' not found")
    return libdir
