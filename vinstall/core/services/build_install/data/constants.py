"""
L0 Data — Module-level constants.

Pure data. No logic. No imports beyond stdlib.
"""

from __future__ import annotations

# Clean execution environment: the only PATH a build tool ever sees.
CLEAN_PATH = "/usr/bin:/bin"

# Lines of a failed stage's log echoed back to the operator.
LOG_TAIL_LINES = 10

# Stage timeouts (seconds). Large interpreters with PGO can take an hour.
STAGE_TIMEOUTS: dict[str, int] = {
    "bootstrap": 600,
    "configure": 1800,
    "compile": 7200,
    "test": 7200,
    "install": 1800,
}

DOWNLOAD_TIMEOUT = 900
GPG_TIMEOUT = 120
UNPACK_TIMEOUT = 600

# Archive suffixes stripped by ``basename_from_package``.
ARCHIVE_SUFFIXES: tuple[str, ...] = (
    ".tar.gz", ".tar.bz2", ".tar.xz", ".tgz", ".tbz2", ".txz", ".tar",
)

# Subdirectory of the private temp root that holds per-package workdirs.
INSTALLERS_DIR = "installers"

# Name of the preserved-logs directory inside an install tree.
BUILD_LOG_DIR = ".build"

# Alias inside the package base directory.
DEFAULT_ALIAS = "default"
