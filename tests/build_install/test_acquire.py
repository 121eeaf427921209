"""
Tests for source acquisition: downloads, signature checks, unpacking.

``curl`` and ``gpg`` are never actually run; ``subprocess.run`` and
``shutil.which`` are patched.  Unpacking uses the real ``tar``.
"""

from __future__ import annotations

import shutil
import subprocess
from unittest.mock import patch

import pytest

from vinstall.core.errors import (
    DownloadFailed,
    InstallError,
    MissingArtifact,
    SignatureInvalid,
    SignatureToolMissing,
    UnpackFailed,
    UnsafeDirectory,
)
from vinstall.core.services.build_install.execution.download import (
    basename_from_package,
    basename_from_url,
    download,
)
from vinstall.core.services.build_install.execution.signature import find_gpg, gpg_verify
from vinstall.core.services.build_install.execution.unpack import unpack

_DOWNLOAD = "vinstall.core.services.build_install.execution.download"
_SIGNATURE = "vinstall.core.services.build_install.execution.signature"

requires_tar = pytest.mark.skipif(shutil.which("tar") is None, reason="tar not installed")


def _completed(returncode=0, stderr=""):
    return subprocess.CompletedProcess(args=[], returncode=returncode, stdout="", stderr=stderr)


@pytest.fixture
def private_dir(tmp_path):
    d = tmp_path / "dl"
    d.mkdir()
    d.chmod(0o700)
    return d


# ── Names ───────────────────────────────────────────────────────


class TestBasenames:
    @pytest.mark.parametrize("url,expected", [
        ("https://www.python.org/ftp/python/3.12.7/Python-3.12.7.tar.xz", "Python-3.12.7.tar.xz"),
        ("https://example.org/x/pkg-1.0.tar.gz?download=1", "pkg-1.0.tar.gz"),
    ])
    def test_from_url(self, url, expected):
        assert basename_from_url(url) == expected

    def test_from_url_without_file(self):
        with pytest.raises(InstallError):
            basename_from_url("https://example.org/")

    @pytest.mark.parametrize("path,expected", [
        ("/a/Python-3.12.7.tar.xz", "Python-3.12.7"),
        ("bash-5.2.37.tar.gz", "bash-5.2.37"),
        ("gnupg-2.4.7.tar.bz2", "gnupg-2.4.7"),
        ("git-2.47.0.tar", "git-2.47.0"),
        ("plain", "plain"),
    ])
    def test_from_package(self, path, expected):
        assert basename_from_package(path) == expected


# ── Download ────────────────────────────────────────────────────


class TestDownload:
    def test_success(self, private_dir):
        urls = ["https://example.org/p-1.0.tar.gz", "https://example.org/p-1.0.tar.gz.asc"]
        with patch(f"{_DOWNLOAD}.shutil.which", return_value="/usr/bin/curl"), \
             patch(f"{_DOWNLOAD}.subprocess.run", return_value=_completed()) as run:
            paths = download(private_dir, urls)

        assert paths == [private_dir / "p-1.0.tar.gz", private_dir / "p-1.0.tar.gz.asc"]
        cmd = run.call_args_list[0].args[0]
        assert cmd[0] == "/usr/bin/curl"
        assert "--fail" in cmd
        assert cmd[-1] == urls[0]

    def test_http_error_is_not_found(self, private_dir):
        with patch(f"{_DOWNLOAD}.shutil.which", return_value="/usr/bin/curl"), \
             patch(f"{_DOWNLOAD}.subprocess.run", return_value=_completed(22)) as run:
            with pytest.raises(DownloadFailed) as exc_info:
                download(private_dir, ["https://example.org/a.tar.gz", "https://example.org/b.tar.gz"])

        assert exc_info.value.not_found is True
        assert exc_info.value.returncode == 22
        assert "not found" in str(exc_info.value)
        assert run.call_count == 1

    def test_transport_error(self, private_dir):
        with patch(f"{_DOWNLOAD}.shutil.which", return_value="/usr/bin/curl"), \
             patch(f"{_DOWNLOAD}.subprocess.run", return_value=_completed(6)):
            with pytest.raises(DownloadFailed) as exc_info:
                download(private_dir, ["https://nohost.invalid/a.tar.gz"])
        assert exc_info.value.not_found is False
        assert exc_info.value.returncode == 6

    def test_timeout(self, private_dir):
        boom = subprocess.TimeoutExpired(cmd="curl", timeout=1)
        with patch(f"{_DOWNLOAD}.shutil.which", return_value="/usr/bin/curl"), \
             patch(f"{_DOWNLOAD}.subprocess.run", side_effect=boom):
            with pytest.raises(DownloadFailed) as exc_info:
                download(private_dir, ["https://example.org/a.tar.gz"], timeout=1)
        assert exc_info.value.returncode == 28

    def test_no_curl(self, private_dir):
        with patch(f"{_DOWNLOAD}.shutil.which", return_value=None):
            with pytest.raises(DownloadFailed) as exc_info:
                download(private_dir, ["https://example.org/a.tar.gz"])
        assert exc_info.value.returncode == 127

    def test_unsafe_dir(self, tmp_path):
        d = tmp_path / "open"
        d.mkdir()
        d.chmod(0o755)
        with patch(f"{_DOWNLOAD}.subprocess.run") as run:
            with pytest.raises(UnsafeDirectory):
                download(d, ["https://example.org/a.tar.gz"])
        run.assert_not_called()


# ── Signature ───────────────────────────────────────────────────


class TestSignature:
    @pytest.fixture
    def artifacts(self, tmp_path):
        data = tmp_path / "p-1.0.tar.gz"
        sig = tmp_path / "p-1.0.tar.gz.asc"
        data.write_bytes(b"data")
        sig.write_bytes(b"sig")
        return sig, data

    def test_prefers_gpg2(self):
        with patch(f"{_SIGNATURE}.shutil.which", side_effect=lambda b: f"/usr/bin/{b}"):
            assert find_gpg() == "/usr/bin/gpg2"

    def test_falls_back_to_gpg(self):
        which = {"gpg": "/usr/bin/gpg"}.get
        with patch(f"{_SIGNATURE}.shutil.which", side_effect=which):
            assert find_gpg() == "/usr/bin/gpg"

    def test_no_gpg(self, artifacts):
        with patch(f"{_SIGNATURE}.shutil.which", return_value=None):
            with pytest.raises(SignatureToolMissing) as exc_info:
                gpg_verify(*artifacts)
        assert exc_info.value.returncode == 127

    def test_missing_signature(self, artifacts):
        sig, data = artifacts
        sig.unlink()
        with pytest.raises(MissingArtifact, match="signature file"):
            gpg_verify(sig, data)

    def test_missing_data(self, artifacts):
        sig, data = artifacts
        data.unlink()
        with pytest.raises(MissingArtifact):
            gpg_verify(sig, data)

    def test_valid(self, artifacts):
        sig, data = artifacts
        with patch(f"{_SIGNATURE}.shutil.which", return_value="/usr/bin/gpg"), \
             patch(f"{_SIGNATURE}.subprocess.run", return_value=_completed()) as run:
            gpg_verify(sig, data)
        assert run.call_args.args[0] == ["/usr/bin/gpg", "--quiet", "--verify", str(sig), str(data)]

    def test_invalid(self, artifacts):
        with patch(f"{_SIGNATURE}.shutil.which", return_value="/usr/bin/gpg"), \
             patch(f"{_SIGNATURE}.subprocess.run", return_value=_completed(1, "BAD signature")):
            with pytest.raises(SignatureInvalid) as exc_info:
                gpg_verify(*artifacts)
        assert exc_info.value.returncode == 1
        assert "Import the relevant public key" in str(exc_info.value)


# ── Unpack ──────────────────────────────────────────────────────


@requires_tar
class TestUnpack:
    def test_strips_top_level(self, tmp_path, make_tarball):
        archive = make_tarball("p-1.0", {"configure": "#!/bin/sh\n", "src/main.c": "int main;"})
        dest = unpack(archive, tmp_path / "work" / "p-1.0")

        assert (dest / "configure").is_file()
        assert (dest / "src" / "main.c").read_text() == "int main;"

    def test_any_top_level_name(self, tmp_path, make_tarball):
        archive = make_tarball("p-1.0", {"configure": ""}, top="upstream-odd-name")
        dest = unpack(archive, tmp_path / "src")
        assert (dest / "configure").is_file()

    def test_without_strip(self, tmp_path, make_tarball):
        archive = make_tarball("p-1.0", {"configure": ""})
        dest = unpack(archive, tmp_path / "src", strip_components=False)
        assert (dest / "p-1.0" / "configure").is_file()

    def test_repeat_leaves_no_residue(self, tmp_path, make_tarball):
        archive = make_tarball("p-1.0", {"configure": ""})
        dest = tmp_path / "src"
        unpack(archive, dest)
        (dest / "stale.o").write_text("old build")

        unpack(archive, dest)
        assert sorted(p.name for p in dest.iterdir()) == ["configure"]

    def test_missing_archive(self, tmp_path):
        with pytest.raises(MissingArtifact):
            unpack(tmp_path / "nope.tar.gz", tmp_path / "src")

    def test_corrupt_archive(self, tmp_path):
        archive = tmp_path / "bad.tar.gz"
        archive.write_bytes(b"this is not a tarball")
        with pytest.raises(UnpackFailed) as exc_info:
            unpack(archive, tmp_path / "src")
        assert exc_info.value.returncode != 0
