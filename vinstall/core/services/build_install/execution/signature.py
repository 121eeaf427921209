"""
L4 Execution — Detached signature verification.

Fully delegated to GnuPG; nothing about the signature is parsed here.
Trust material (imported public keys) must already be in the keyring.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
from pathlib import Path

from vinstall.core.errors import MissingArtifact, SignatureInvalid, SignatureToolMissing
from vinstall.core.services.build_install.data.constants import GPG_TIMEOUT

logger = logging.getLogger(__name__)

_GPG_BINARIES = ("gpg2", "gpg")


def find_gpg() -> str:
    """Path to ``gpg2`` or ``gpg``.

    Raises:
        SignatureToolMissing: neither is on PATH.
    """
    for binary in _GPG_BINARIES:
        path = shutil.which(binary)
        if path:
            return path
    raise SignatureToolMissing()


def gpg_verify(signature: Path, data: Path, *, timeout: int = GPG_TIMEOUT) -> None:
    """Verify detached ``signature`` for ``data``.

    Raises:
        MissingArtifact: either file is missing.
        SignatureToolMissing: no gpg binary.
        SignatureInvalid: gpg rejected the signature.
    """
    if not signature.is_file():
        raise MissingArtifact(signature, "signature file")
    if not data.is_file():
        raise MissingArtifact(data, "file")

    gpg = find_gpg()
    logger.info("Verifying %s with %s", data.name, signature.name)
    try:
        result = subprocess.run(
            [gpg, "--quiet", "--verify", str(signature), str(data)],
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired as exc:
        raise SignatureInvalid(signature, data, 124) from exc

    if result.returncode != 0:
        logger.debug("gpg stderr: %s", result.stderr.strip())
        raise SignatureInvalid(signature, data, result.returncode)
