"""
Shared test fixtures and configuration.
"""

from __future__ import annotations

import io
import shutil
import subprocess
import tarfile
from collections.abc import Callable
from pathlib import Path

import pytest

from vinstall.core.models.build import StageResult
from vinstall.core.models.package import PackageDescriptor
from vinstall.core.models.settings import PipelineSettings


@pytest.fixture
def settings(tmp_path: Path) -> PipelineSettings:
    """Settings rooted entirely inside tmp_path."""
    return PipelineSettings(
        base_dir=tmp_path / "opt",
        work_root=tmp_path / "tmp",
        jobs=2,
    )


@pytest.fixture
def demo_descriptor() -> PackageDescriptor:
    """A tarball package with a static release list and no optional flags."""
    return PackageDescriptor(
        name="demo",
        source="tarball",
        url="https://example.invalid/demo-{version}.tar.gz",
        tag_prefix="v",
        versions=["1.0.0", "1.2.0", "1.10.0"],
        configure_args=["--disable-docs"],
        test_target="check",
        binary="bin/demo",
    )


class FakeRunner:
    """Stands in for ``run_clean``: records calls, writes logs, fails on demand.

    A successful ``install`` stage creates ``<prefix>/bin/demo``, where
    the prefix is taken from the configure command.  ``hooks`` maps a
    stage name to a callable run with the stage's cwd, e.g. to leave
    files behind the way a real bootstrap would.
    """

    def __init__(
        self,
        fail: dict[str, int] | None = None,
        hooks: dict[str, Callable[[Path], None]] | None = None,
    ) -> None:
        self.fail = fail or {}
        self.hooks = hooks or {}
        self.calls: list[tuple[str, list[str]]] = []
        self.cwds: list[Path] = []
        self.prefix: Path | None = None

    @property
    def stages(self) -> list[str]:
        return [stage for stage, _ in self.calls]

    def __call__(self, stage, cmd, *, cwd, log_dir, settings, timeout=None) -> StageResult:
        self.calls.append((stage, list(cmd)))
        self.cwds.append(cwd)
        if stage in self.hooks:
            self.hooks[stage](cwd)
        for arg in cmd:
            if arg.startswith("--prefix="):
                self.prefix = Path(arg.split("=", 1)[1])

        returncode = self.fail.get(stage, 0)
        log_path = log_dir / f"{stage}.log"
        lines = [f"+ {' '.join(cmd)}"] + [f"{stage} line {i}" for i in range(15)]
        if returncode:
            lines.append(f"{stage}: error {returncode}")
        log_path.write_text("\n".join(lines) + "\n")

        if stage == "install" and not returncode and self.prefix is not None:
            binary = self.prefix / "bin" / "demo"
            binary.parent.mkdir(parents=True, exist_ok=True)
            binary.write_text("#!/bin/sh\n")

        return StageResult(stage=stage, returncode=returncode, log_path=log_path)


@pytest.fixture
def fake_runner() -> type[FakeRunner]:
    return FakeRunner


@pytest.fixture
def make_tarball(tmp_path: Path):
    """Build a .tar.gz whose entries sit under a single top-level directory."""

    def _make(name: str, files: dict[str, str], top: str | None = None) -> Path:
        top = top or name
        archive = tmp_path / "archives" / f"{name}.tar.gz"
        archive.parent.mkdir(parents=True, exist_ok=True)
        with tarfile.open(archive, "w:gz") as tar:
            for rel, content in files.items():
                data = content.encode()
                info = tarfile.TarInfo(f"{top}/{rel}")
                info.size = len(data)
                info.mode = 0o644
                tar.addfile(info, io.BytesIO(data))
        return archive

    return _make


def git(cwd: Path, *args: str) -> None:
    """Run git with a throwaway identity and no signing."""
    subprocess.run(
        ["git", "-c", "user.name=Test", "-c", "user.email=test@example.invalid",
         "-c", "commit.gpgsign=false", "-c", "tag.gpgsign=false", *args],
        cwd=cwd, check=True, capture_output=True,
    )


@pytest.fixture
def git_upstream(tmp_path: Path) -> Path:
    """A local repository tagged v1.0.0, v1.2.0 and v1.10.0."""
    if shutil.which("git") is None:
        pytest.skip("git not installed")
    repo = tmp_path / "upstream"
    repo.mkdir()
    git(repo, "init", "--quiet")
    for version in ("1.0.0", "1.2.0", "1.10.0"):
        (repo / "VERSION").write_text(f"{version}\n")
        git(repo, "add", "VERSION")
        git(repo, "commit", "--quiet", "-m", version)
        git(repo, "tag", f"v{version}")
    return repo
