"""
L5 Orchestration — The install pipeline.

Ties everything together for one package version::

    resolve → acquire → verify → configure → compile → [test] → install
            → preserve logs → default alias

Every failure aborts the rest of the run (a failing test stage under
the ``continue`` policy excepted) and keeps the working directory on
disk for inspection.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from vinstall.adapters.vcs.git import GitRepository
from vinstall.core.errors import (
    STAGE_ERRORS,
    AlreadyInstalled,
    ConfigureFailed,
    InstallError,
    InvalidVersion,
)
from vinstall.core.models.build import PipelineState, ResolvedVersion, StageResult
from vinstall.core.models.package import PackageDescriptor
from vinstall.core.models.settings import PipelineSettings
from vinstall.core.services.build_install.domain.version_order import (
    is_explicit_version,
    is_latest,
)
from vinstall.core.services.build_install.execution.build_stages import (
    plan_stages,
    stage_command,
)
from vinstall.core.services.build_install.execution.download import (
    basename_from_package,
    download,
)
from vinstall.core.services.build_install.execution.install_tree import (
    add_default_symlink,
    ensure_install_dir,
    preserve_logs,
)
from vinstall.core.services.build_install.execution.signature import gpg_verify
from vinstall.core.services.build_install.execution.subprocess_runner import run_clean, tail
from vinstall.core.services.build_install.execution.unpack import unpack
from vinstall.core.services.build_install.execution.workdir import (
    WorkingDirectory,
    make_download_dir,
)
from vinstall.core.services.build_install.resolver.version_resolution import resolve_version

logger = logging.getLogger(__name__)

StageRunner = Callable[..., StageResult]

_STAGE_STATES: dict[str, PipelineState] = {
    "bootstrap": "configuring",
    "configure": "configuring",
    "compile": "compiling",
    "test": "testing",
    "install": "installing",
}


@dataclass
class PipelineRun:
    """What one pipeline invocation did."""

    package: str
    state: PipelineState = "resolving"
    resolved: ResolvedVersion | None = None
    install_dir: Path | None = None
    skipped: bool = False
    notice: str = ""
    stages: list[StageResult] = field(default_factory=list)
    default_updated: bool = False
    workdir: Path | None = None
    workdir_kept: bool = False

    @property
    def ok(self) -> bool:
        return self.state == "done"

    def to_dict(self) -> dict:
        return {
            "package": self.package,
            "state": self.state,
            "version": self.resolved.version if self.resolved else None,
            "tag": self.resolved.tag if self.resolved else None,
            "install_dir": str(self.install_dir) if self.install_dir else None,
            "skipped": self.skipped,
            "notice": self.notice,
            "stages": [
                {"stage": s.stage, "returncode": s.returncode, "log": str(s.log_path)}
                for s in self.stages
            ],
            "default_updated": self.default_updated,
            "workdir": str(self.workdir) if self.workdir and self.workdir_kept else None,
        }


class BuildPipeline:
    """Generic build-and-install pipeline for one package descriptor.

    Args:
        descriptor: Package metadata.
        settings: Behavior switches for this run.
        install_base: Overrides ``<settings.base_dir>/<package>``.
        runner: Stage runner, ``run_clean`` unless injected.
        progress: Callback for short human-readable progress lines.
    """

    def __init__(
        self,
        descriptor: PackageDescriptor,
        settings: PipelineSettings,
        *,
        install_base: Path | None = None,
        runner: StageRunner = run_clean,
        progress: Callable[[str], None] | None = None,
    ) -> None:
        self.descriptor = descriptor
        self.settings = settings
        self.base = settings.package_base(descriptor.name, install_base)
        self.runner = runner
        self.progress = progress or (lambda msg: logger.info("%s", msg))
        self.last_run: PipelineRun | None = None

    # ── Version resolution ──────────────────────────────────────

    def repository(self) -> GitRepository:
        cache = make_download_dir(self.descriptor.name, self.settings.work_root)
        return GitRepository(cache / "repo", self.descriptor.repo)

    def list_tags(self) -> list[str]:
        """Every known tag: from the synced clone, or the static release list."""
        if self.descriptor.source == "git":
            repo = self.repository()
            repo.sync()
            return repo.list_tags()
        return self.descriptor.tags()

    def resolve(self, spec: str) -> ResolvedVersion:
        if not is_latest(spec) and not is_explicit_version(spec):
            raise InvalidVersion(spec)
        return resolve_version(
            spec,
            self.list_tags(),
            prefix=self.descriptor.tag_prefix,
            exclude=self.descriptor.tag_exclude,
        )

    # ── Stages ──────────────────────────────────────────────────

    def acquire(self, resolved: ResolvedVersion, workdir: Path, run: PipelineRun) -> Path:
        """Fetch, verify and unpack the source; return the source tree."""
        d = self.descriptor
        self._transition(run, "acquiring")

        if d.url:
            url = d.render(d.url, version=resolved.version, tag=resolved.tag)
            urls = [url]
            if d.signature_url:
                urls.append(d.render(d.signature_url, version=resolved.version, tag=resolved.tag))
            paths = download(workdir, urls)
            archive = paths[0]

            self._transition(run, "verifying")
            if d.signature_url:
                gpg_verify(paths[1], archive)
            else:
                logger.warning("%s has no signature URL; skipping verification", d.name)
        else:
            name = f"{d.name}-{resolved.version}"
            archive = self.repository().archive(
                resolved.tag, workdir / f"{name}.tar", prefix=name,
            )

        dest = workdir / basename_from_package(archive)
        self.progress(" - unpacking")
        return unpack(archive, dest, strip_components=d.strip_components)

    def build(
        self,
        source_dir: Path,
        install_dir: Path,
        workdir: Path,
        run: PipelineRun,
        *,
        install: bool = True,
    ) -> None:
        """Run bootstrap/configure/compile/[test]/[install], gating each on the last."""
        steps = plan_stages(self.descriptor, install_dir, self.settings, install=install)
        for step in steps:
            stage = step["stage"]
            self._transition(run, _STAGE_STATES[stage])
            self.progress(f" - {step['label'].lower()}")

            result = self.runner(
                stage,
                stage_command(step, source_dir, self.settings),
                cwd=source_dir,
                log_dir=workdir,
                settings=self.settings,
                timeout=step["timeout"],
            )
            run.stages.append(result)
            if result.ok:
                continue

            if stage == "test" and self.settings.test_policy == "continue":
                logger.warning(
                    "Tests failed with code %d, continuing (see %s)",
                    result.returncode, result.log_path,
                )
                continue

            error_cls = STAGE_ERRORS.get(stage, ConfigureFailed)
            raise error_cls(result.returncode, result.log_path, tail(result.log_path))

    def is_installed(self, install_dir: Path, populated: bool) -> bool:
        """The expected binary exists (or, with none declared, the dir is non-empty)."""
        if self.descriptor.binary:
            return (install_dir / self.descriptor.binary).exists()
        return populated

    def should_skip(self, install_dir: Path, populated: bool) -> bool:
        """Already installed and neither ``clobber`` nor ``always_run`` is set."""
        if self.settings.clobber or self.settings.always_run:
            return False
        return self.is_installed(install_dir, populated)

    # ── Top level ───────────────────────────────────────────────

    def run(self, spec: str = "latest") -> PipelineRun:
        """Resolve ``spec`` and install it.

        Returns:
            The completed ``PipelineRun`` (state ``done``).

        Raises:
            InstallError: any failure; ``self.last_run`` holds the
                partial run with state ``failed``.
        """
        run = PipelineRun(package=self.descriptor.name)
        self.last_run = run
        try:
            self._run(spec, run)
        except InstallError:
            run.state = "failed"
            raise
        return run

    def _run(self, spec: str, run: PipelineRun) -> None:
        resolved = self.resolve(spec)
        run.resolved = resolved
        self.progress(f"{self.descriptor.name} {resolved.version} (tag {resolved.tag})")

        install_dir, populated = ensure_install_dir(self.base, resolved.version)
        run.install_dir = install_dir

        if self.should_skip(install_dir, populated):
            run.skipped = True
            run.notice = str(AlreadyInstalled(install_dir, self.descriptor.binary))
            self.progress(f" - already installed: {run.notice}")
        else:
            # always_run over an existing install rebuilds (and tests) but
            # leaves the installed files alone; clobber reinstalls
            install = self.settings.clobber or not self.is_installed(install_dir, populated)
            if not install:
                run.notice = f"{install_dir} already installed; running stages without install"
                self.progress(f" - {run.notice}")
            with WorkingDirectory(
                self.descriptor.name,
                work_root=self.settings.work_root,
                keep=self.settings.keep_workdir,
            ) as wd:
                run.workdir = wd.path
                try:
                    source_dir = self.acquire(resolved, wd.path, run)
                    self.build(source_dir, install_dir, wd.path, run, install=install)
                    preserve_logs(wd.path, install_dir)
                except InstallError as exc:
                    wd.preserve(str(exc))
                    run.workdir_kept = True
                    raise
                run.workdir_kept = wd.keep

        run.default_updated = add_default_symlink(self.base, resolved.version, self.settings.symlink)
        self._transition(run, "done")

    def _transition(self, run: PipelineRun, state: PipelineState) -> None:
        logger.debug("%s: %s → %s", self.descriptor.name, run.state, state)
        run.state = state
