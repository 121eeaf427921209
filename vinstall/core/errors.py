"""
Error taxonomy — every failure the install pipeline can raise.

Library code raises these; only the CLI layer catches ``InstallError``
and turns it into a diagnostic plus a process exit status.  Each error
carries a ``returncode`` so the underlying tool's status survives all
the way to ``sys.exit``.
"""

from __future__ import annotations

from pathlib import Path


class InstallError(Exception):
    """Base class for all pipeline failures."""

    returncode: int = 1

    def __init__(self, message: str, *, returncode: int | None = None) -> None:
        super().__init__(message)
        if returncode is not None:
            self.returncode = returncode

    @property
    def exit_status(self) -> int:
        """``returncode`` as a process exit status.

        A tool killed by signal N reports ``-N``; shells report that as
        ``128 + N``, and so does this.  A zero ``returncode`` still exits 1.
        """
        if self.returncode < 0:
            return 128 - self.returncode
        return self.returncode or 1


class ConfigError(InstallError):
    """Raised when configuration or a package descriptor is invalid."""


# ── Version resolution ──────────────────────────────────────────


class InvalidVersion(InstallError):
    """An explicit version spec does not start with a digit."""

    def __init__(self, spec: str) -> None:
        super().__init__(f"Invalid version '{spec}': must be 'latest' or start with a digit")
        self.spec = spec


class NoTagsFound(InstallError):
    """No tag survived filtering while resolving ``latest``."""

    def __init__(self, prefix: str, exclude: str | None = None) -> None:
        detail = f" (excluding /{exclude}/)" if exclude else ""
        super().__init__(f"No tags found matching prefix '{prefix}'{detail}")
        self.prefix = prefix
        self.exclude = exclude


class TagNotFound(InstallError):
    """The tag built from an explicit spec is not in the tag list."""

    def __init__(self, tag: str) -> None:
        super().__init__(f"Tag '{tag}' not found")
        self.tag = tag


# ── Acquisition ─────────────────────────────────────────────────


class VcsError(InstallError):
    """A git operation (clone, fetch, tag listing, archive) failed."""


class UnsafeDirectory(InstallError):
    """A working directory is not 0700 or not owned by the current user."""

    def __init__(self, path: Path | str, reason: str) -> None:
        super().__init__(f"Unsafe directory '{path}': {reason}")
        self.path = Path(path)


class DownloadFailed(InstallError):
    """The download client failed for one URL."""

    def __init__(self, url: str, returncode: int, *, not_found: bool = False) -> None:
        kind = "not found" if not_found else "transport error"
        super().__init__(
            f"Download failed [{kind}, status {returncode}]: {url}",
            returncode=returncode,
        )
        self.url = url
        self.not_found = not_found


class UnpackFailed(InstallError):
    """The archive extractor exited non-zero."""

    def __init__(self, archive: Path | str, returncode: int) -> None:
        super().__init__(
            f"Failed with status {returncode} to unpack package: {archive}",
            returncode=returncode,
        )
        self.archive = Path(archive)


# ── Signature verification ──────────────────────────────────────


class MissingArtifact(InstallError):
    """A file that must be verified does not exist."""

    def __init__(self, path: Path | str, what: str = "file") -> None:
        super().__init__(f"{what} '{path}' does not exist or is not a regular file")
        self.path = Path(path)


class SignatureToolMissing(InstallError):
    """Neither gpg2 nor gpg is on PATH."""

    def __init__(self) -> None:
        super().__init__("gpg not found (looked for gpg2, gpg)", returncode=127)


class SignatureInvalid(InstallError):
    """gpg --verify exited non-zero."""

    def __init__(self, signature: Path, data: Path, returncode: int) -> None:
        super().__init__(
            f"GPG verification failed [gpg --verify '{signature}' '{data}'] "
            f"with status {returncode}. Import the relevant public key, if "
            "necessary, and run the command manually to view the error messages",
            returncode=returncode,
        )
        self.signature = signature
        self.data = data


# ── Install tree ────────────────────────────────────────────────


class InstallDirError(InstallError):
    """The install tree could not be created or updated."""

    def __init__(self, path: Path | str, reason: str) -> None:
        super().__init__(f"Cannot update install tree at '{path}': {reason}")
        self.path = Path(path)


# ── Build stages ────────────────────────────────────────────────


class StageFailed(InstallError):
    """A build stage exited non-zero."""

    stage = "stage"

    def __init__(self, returncode: int, log_path: Path, tail: str = "") -> None:
        super().__init__(
            f"{self.stage} failed with code {returncode}",
            returncode=returncode,
        )
        self.log_path = log_path
        self.tail = tail


class ConfigureFailed(StageFailed):
    stage = "configure"


class CompileFailed(StageFailed):
    stage = "compile"


class TestFailed(StageFailed):
    stage = "test"
    __test__ = False  # not a pytest class


class InstallFailed(StageFailed):
    stage = "install"


STAGE_ERRORS: dict[str, type[StageFailed]] = {
    cls.stage: cls
    for cls in (ConfigureFailed, CompileFailed, TestFailed, InstallFailed)
}


class AlreadyInstalled(InstallError):
    """Informational: the expected binary is already in the install dir."""

    returncode = 0

    def __init__(self, install_dir: Path, binary: str) -> None:
        super().__init__(f"{install_dir / binary} already exists")
        self.install_dir = install_dir
        self.binary = binary
