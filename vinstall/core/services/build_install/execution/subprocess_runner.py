"""
L4 Execution — Clean-environment stage runner.

The SINGLE PLACE where build tools are launched.  Every stage runs
with a minimal, explicit environment (``PATH=/usr/bin:/bin`` plus
locale and compiler flags) so that the invoking user's shell cannot
leak into a build, and every stage writes its output to its own log.
"""

from __future__ import annotations

import logging
import shlex
import subprocess
import time
from collections import deque
from pathlib import Path

from vinstall.core.models.build import StageResult
from vinstall.core.models.settings import PipelineSettings
from vinstall.core.services.build_install.data.constants import (
    CLEAN_PATH,
    LOG_TAIL_LINES,
)

logger = logging.getLogger(__name__)

# Exit statuses used when the tool never produced one
EXIT_TIMEOUT = 124
EXIT_NOT_FOUND = 127


def clean_env(settings: PipelineSettings) -> dict[str, str]:
    """The complete environment handed to a build tool."""
    env = {
        "PATH": CLEAN_PATH,
        "LANGUAGE": settings.language,
        "LANG": settings.effective_lang,
    }
    for key, value in (
        ("CFLAGS", settings.cflags),
        ("CPPFLAGS", settings.cppflags),
        ("LDFLAGS", settings.ldflags),
    ):
        if value:
            env[key] = value
    return env


def format_command(cmd: list[str], env: dict[str, str]) -> str:
    """Render ``cmd`` the way it would be typed with ``env -i``."""
    assignments = " ".join(f"{k}={shlex.quote(v)}" for k, v in env.items())
    return f"env -i {assignments} {shlex.join(cmd)}"


def run_clean(
    stage: str,
    cmd: list[str],
    *,
    cwd: Path,
    log_dir: Path,
    settings: PipelineSettings,
    timeout: int | None = None,
) -> StageResult:
    """Run one build stage under the clean environment.

    stdout and stderr both go to ``<log_dir>/<stage>.log``; the exact
    command line is written as the log's first line and logged at INFO.

    Args:
        stage: Stage name, also the log file's stem.
        cmd: Command list, e.g. ``["./configure", "--prefix=/opt/x/1.0"]``.
        cwd: Directory to run in (the unpacked source tree).
        log_dir: Directory receiving the stage log.
        settings: Supplies locale and compiler flags.
        timeout: Seconds before the stage is killed.

    Returns:
        A ``StageResult``; the tool's own exit status is kept unchanged.
        A timeout maps to 124 and a missing executable to 127.
    """
    env = clean_env(settings)
    log_path = log_dir / f"{stage}.log"
    rendered = format_command(cmd, env)
    logger.info("[%s] %s (cwd=%s)", stage, rendered, cwd)

    start = time.monotonic()
    with open(log_path, "w", encoding="utf-8") as log:
        log.write(f"+ {rendered}\n")
        log.flush()
        try:
            result = subprocess.run(
                cmd,
                cwd=cwd,
                env=env,
                stdin=subprocess.DEVNULL,
                stdout=log,
                stderr=subprocess.STDOUT,
                timeout=timeout,
            )
            returncode = result.returncode
        except subprocess.TimeoutExpired:
            log.write(f"\n{stage} timed out after {timeout}s\n")
            returncode = EXIT_TIMEOUT
        except OSError as exc:
            log.write(f"\n{stage} could not start: {exc}\n")
            returncode = EXIT_NOT_FOUND

    elapsed_ms = int((time.monotonic() - start) * 1000)
    logger.debug("[%s] exit %d after %dms", stage, returncode, elapsed_ms)
    return StageResult(
        stage=stage,
        returncode=returncode,
        log_path=log_path,
        duration_ms=elapsed_ms,
    )


def tail(log_path: Path, lines: int = LOG_TAIL_LINES) -> str:
    """Last ``lines`` lines of a log, ``""`` if it cannot be read."""
    try:
        with open(log_path, encoding="utf-8", errors="replace") as f:
            return "".join(deque(f, maxlen=lines))
    except OSError:
        return ""
