"""
L4 Execution — Source downloads.

Fetches URLs with ``curl`` into a private directory.  Each file is
saved under the URL's last path segment.  The first failure aborts
the whole batch.
"""

from __future__ import annotations

import logging
import posixpath
import shutil
import subprocess
from pathlib import Path
from urllib.parse import urlsplit

from vinstall.core.errors import DownloadFailed, InstallError
from vinstall.core.services.build_install.data.constants import (
    ARCHIVE_SUFFIXES,
    DOWNLOAD_TIMEOUT,
)
from vinstall.core.services.build_install.execution.workdir import verify_private_dir

logger = logging.getLogger(__name__)

# curl exits 22 when --fail sees an HTTP status >= 400
_CURL_HTTP_ERROR = 22


def basename_from_url(url: str) -> str:
    """Last path segment of ``url``, ignoring any query string.

    Raises:
        InstallError: the URL has no usable last segment.
    """
    name = posixpath.basename(urlsplit(url).path)
    if not name:
        raise InstallError(f"cannot derive a file name from URL: {url}")
    return name


def basename_from_package(package_path: Path | str) -> str:
    """``Python-3.12.7`` for ``/a/Python-3.12.7.tar.xz`` (archive suffix removed)."""
    name = Path(package_path).name
    for suffix in ARCHIVE_SUFFIXES:
        if name.endswith(suffix):
            return name[: -len(suffix)]
    return name


def download(
    download_dir: Path,
    urls: list[str],
    *,
    timeout: int = DOWNLOAD_TIMEOUT,
) -> list[Path]:
    """Download each URL into ``download_dir``.

    Args:
        download_dir: Private (0700) destination directory.
        urls: URLs to fetch, in order.
        timeout: Per-URL timeout in seconds.

    Returns:
        Paths of the downloaded files, in ``urls`` order.

    Raises:
        UnsafeDirectory: ``download_dir`` fails the private-dir check.
        DownloadFailed: on the first URL that cannot be fetched.
    """
    verify_private_dir(download_dir)

    curl = shutil.which("curl")
    paths: list[Path] = []
    for url in urls:
        dest = download_dir / basename_from_url(url)
        if curl is None:
            raise DownloadFailed(url, 127)

        logger.info("Downloading %s → %s", url, dest)
        try:
            result = subprocess.run(
                [
                    curl, "--fail", "--location", "--silent", "--show-error",
                    "--output", str(dest), url,
                ],
                capture_output=True,
                text=True,
                timeout=timeout,
            )
        except subprocess.TimeoutExpired as exc:
            raise DownloadFailed(url, 28) from exc  # curl's own timeout code

        if result.returncode != 0:
            logger.debug("curl stderr: %s", result.stderr.strip())
            raise DownloadFailed(
                url,
                result.returncode,
                not_found=result.returncode == _CURL_HTTP_ERROR,
            )
        paths.append(dest)

    return paths
