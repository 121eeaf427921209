"""
Git adapter — repository sync and tag listing.

Keeps a persistent clone per package so ``latest`` can be resolved
from the upstream tag list.  Uses the git CLI — never raw API calls.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
from pathlib import Path

from vinstall.core.errors import VcsError

logger = logging.getLogger(__name__)

GIT_TIMEOUT = 900  # seconds; first clones of large repos are slow


class GitRepository:
    """A local clone of ``url`` at ``path``.

    Operations:
        sync:       clone if absent, otherwise fetch tags and ``pull --rebase``
        list_tags:  every tag, sorted version-aware by git itself
        archive:    export one tag as a tarball for the unpack stage
    """

    def __init__(self, path: Path, url: str) -> None:
        self.path = path
        self.url = url

    def is_available(self) -> bool:
        return shutil.which("git") is not None

    @property
    def cloned(self) -> bool:
        return (self.path / ".git").exists()

    # ── Operations ──────────────────────────────────────────────

    def sync(self) -> None:
        """Clone the repository, or bring an existing clone up to date."""
        if not self.is_available():
            raise VcsError("git not found", returncode=127)

        if not self.cloned:
            logger.info("Cloning %s into %s", self.url, self.path)
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self._git(["clone", "--quiet", self.url, str(self.path)], cwd=self.path.parent)
            return

        logger.info("Updating clone %s", self.path)
        self._git(["fetch", "--quiet", "--tags", "--force"], cwd=self.path)
        self._git(["pull", "--quiet", "--rebase"], cwd=self.path)

    def list_tags(self) -> list[str]:
        output = self._git(["tag", "-l", "--sort=version:refname"], cwd=self.path)
        return [t.strip() for t in output.splitlines() if t.strip()]

    def archive(self, tag: str, output: Path, *, prefix: str) -> Path:
        """Write ``tag`` as ``output`` (tar), every entry under ``prefix/``."""
        self._git(
            ["archive", "--format=tar", f"--prefix={prefix.rstrip('/')}/",
             f"--output={output}", tag],
            cwd=self.path,
        )
        return output

    # ── Helpers ─────────────────────────────────────────────────

    def _git(self, args: list[str], cwd: Path, timeout: int = GIT_TIMEOUT) -> str:
        """Run a git command and return stdout."""
        try:
            result = subprocess.run(
                ["git", *args],
                cwd=cwd,
                capture_output=True,
                text=True,
                timeout=timeout,
            )
        except subprocess.TimeoutExpired as exc:
            raise VcsError(f"git {args[0]} timed out after {timeout}s", returncode=124) from exc
        except OSError as exc:
            raise VcsError(f"git {args[0]} could not run in {cwd}: {exc}", returncode=127) from exc
        if result.returncode != 0:
            raise VcsError(
                result.stderr.strip() or f"git {args[0]} failed",
                returncode=result.returncode,
            )
        return result.stdout
