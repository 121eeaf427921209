"""
Logging configuration — set up once by the CLI entrypoint.

Two kinds of output leave a vinstall run:

- build tool output, which never goes through logging: each stage
  writes its own ``<stage>.log`` (see ``subprocess_runner``), later kept
  under ``<install_dir>/.build/``;
- pipeline diagnostics (resolved tags, exact stage commands, workdir
  decisions), which go through the ``vinstall`` logger tree configured
  here.

Only the ``vinstall`` tree follows the requested level; anything else
that logs stays at WARNING unless debugging.  Progress lines are echoed
by the CLI itself, so the console handler stays terse by default.

Levels are resolved in precedence order:
    CLI flag  >  VINSTALL_LOG_LEVEL env var  >  WARNING (default)

VINSTALL_LOG_FILE adds a file handler, at VINSTALL_LOG_FILE_LEVEL or the
console level.  A DEBUG file log records every stage command line next
to the per-stage logs, which is what a failed build report needs.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

PACKAGE_LOGGER = "vinstall"

_CONSOLE_FORMATS: dict[int, tuple[str, str | None]] = {
    logging.DEBUG: ("%(asctime)s %(levelname)-5s %(name)s:%(lineno)d  %(message)s", "%H:%M:%S"),
    logging.INFO: ("%(asctime)s %(message)s", "%H:%M:%S"),
}
_CONSOLE_DEFAULT = ("%(levelname)s: %(message)s", None)

_FILE_FORMAT = "%(asctime)s %(levelname)-5s [%(process)d] %(name)s  %(message)s"
_FILE_DATEFMT = "%Y-%m-%d %H:%M:%S"


def setup_logging(
    level: str = "WARNING",
    log_file: str | None = None,
    log_file_level: str | None = None,
) -> None:
    """Configure logging for one vinstall process.

    Args:
        level: Console level name (DEBUG, INFO, WARNING, ERROR).
        log_file: Optional log file; parent dirs are created.
        log_file_level: File handler level, defaults to ``level``.
    """
    console_level = _parse_level(level)
    fmt, datefmt = _CONSOLE_FORMATS.get(console_level, _CONSOLE_DEFAULT)

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(logging.Formatter(fmt, datefmt=datefmt))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(console)

    package_level = console_level
    if log_file:
        file_level = _parse_level(log_file_level) if log_file_level else console_level
        package_level = min(package_level, file_level)

        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setLevel(file_level)
        fh.setFormatter(logging.Formatter(_FILE_FORMAT, datefmt=_FILE_DATEFMT))
        root.addHandler(fh)

    logging.getLogger(PACKAGE_LOGGER).setLevel(package_level)
    root.setLevel(logging.DEBUG if console_level <= logging.DEBUG else logging.WARNING)

    logging.raiseExceptions = False


def _parse_level(level: str | None) -> int:
    """Convert a level name string to its numeric constant."""
    if not level:
        return logging.WARNING
    numeric = getattr(logging, level.upper(), None)
    if not isinstance(numeric, int):
        return logging.WARNING
    return numeric
