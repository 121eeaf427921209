"""
Tests for the end-to-end install pipeline.

Acquisition is replaced by a stub that creates an empty source tree,
and stages run through ``FakeRunner`` (see conftest), so no network
or compiler is needed.
"""

from __future__ import annotations

import os
import shutil
from pathlib import Path
from textwrap import dedent

import pytest

from vinstall.core.errors import (
    CompileFailed,
    ConfigureFailed,
    InstallDirError,
    TagNotFound,
    TestFailed,
)
from vinstall.core.models.settings import SymlinkPolicy
from vinstall.core.services.build_install.orchestration.pipeline import (
    BuildPipeline,
    PipelineRun,
)


@pytest.fixture(autouse=True)
def _stub_acquire(monkeypatch):
    def fake_acquire(self, resolved, workdir, run):
        self._transition(run, "acquiring")
        src = workdir / f"{self.descriptor.name}-{resolved.version}"
        src.mkdir()
        return src

    monkeypatch.setattr(BuildPipeline, "acquire", fake_acquire)


def _pipeline(descriptor, settings, runner, **overrides):
    if overrides:
        settings = settings.model_copy(update=overrides)
    return BuildPipeline(descriptor, settings, runner=runner)


def _workdirs(settings) -> list[Path]:
    parent = settings.work_root / "installers" / "demo"
    return sorted(parent.glob("run-*")) if parent.exists() else []


class TestSuccessfulRun:
    def test_latest_installs_and_links_default(self, demo_descriptor, settings, fake_runner):
        runner = fake_runner()
        run = _pipeline(demo_descriptor, settings, runner).run("latest")

        base = settings.base_dir / "demo"
        assert run.ok
        assert run.resolved.version == "1.10.0"
        assert run.install_dir == base / "1.10.0"
        assert (base / "1.10.0" / "bin" / "demo").exists()
        assert os.readlink(base / "default") == "1.10.0"
        assert run.default_updated is True
        assert runner.stages == ["configure", "compile", "install"]

    def test_configure_gets_prefix(self, demo_descriptor, settings, fake_runner):
        runner = fake_runner()
        _pipeline(demo_descriptor, settings, runner).run("1.2.0")

        stage, cmd = runner.calls[0]
        assert stage == "configure"
        assert cmd[:2] == ["./configure", f"--prefix={settings.base_dir / 'demo' / '1.2.0'}"]
        assert "--disable-docs" in cmd

    def test_logs_preserved_and_workdir_removed(self, demo_descriptor, settings, fake_runner):
        run = _pipeline(demo_descriptor, settings, fake_runner()).run("1.2.0")

        build_dir = run.install_dir / ".build"
        assert sorted(p.name for p in build_dir.glob("*.log")) == [
            "compile.log", "configure.log", "install.log",
        ]
        assert not run.workdir_kept
        assert _workdirs(settings) == []

    def test_keep_workdir(self, demo_descriptor, settings, fake_runner):
        run = _pipeline(demo_descriptor, settings, fake_runner(), keep_workdir=True).run("1.2.0")
        assert run.workdir_kept
        assert run.workdir.is_dir()

    def test_to_dict(self, demo_descriptor, settings, fake_runner):
        run = _pipeline(demo_descriptor, settings, fake_runner()).run("1.0.0")
        data = run.to_dict()
        assert data["state"] == "done"
        assert data["version"] == "1.0.0"
        assert data["tag"] == "v1.0.0"
        assert [s["stage"] for s in data["stages"]] == ["configure", "compile", "install"]
        assert data["workdir"] is None


class TestTestPolicy:
    def test_abort_halts_before_install(self, demo_descriptor, settings, fake_runner):
        runner = fake_runner(fail={"test": 2})
        pipeline = _pipeline(
            demo_descriptor, settings, runner, run_tests=True, test_policy="abort",
        )

        with pytest.raises(TestFailed) as exc_info:
            pipeline.run("1.2.0")

        assert exc_info.value.returncode == 2
        assert "test: error 2" in exc_info.value.tail
        assert runner.stages == ["configure", "compile", "test"]
        assert not (settings.base_dir / "demo" / "default").exists()

        run = pipeline.last_run
        assert run.state == "failed"
        assert run.workdir_kept
        assert run.workdir.is_dir()
        assert (run.workdir / "test.log").is_file()

    def test_continue_proceeds_to_install(self, demo_descriptor, settings, fake_runner):
        runner = fake_runner(fail={"test": 2})
        run = _pipeline(
            demo_descriptor, settings, runner, run_tests=True, test_policy="continue",
        ).run("1.2.0")

        assert run.ok
        assert runner.stages == ["configure", "compile", "test", "install"]
        assert run.stages[2].returncode == 2

    def test_tests_skipped_by_default(self, demo_descriptor, settings, fake_runner):
        runner = fake_runner()
        _pipeline(demo_descriptor, settings, runner).run("1.2.0")
        assert "test" not in runner.stages


class TestStageFailure:
    def test_compile_failure_keeps_returncode(self, demo_descriptor, settings, fake_runner):
        runner = fake_runner(fail={"compile": 2})
        pipeline = _pipeline(demo_descriptor, settings, runner)

        with pytest.raises(CompileFailed) as exc_info:
            pipeline.run("1.2.0")

        exc = exc_info.value
        assert exc.returncode == 2
        assert exc.log_path.name == "compile.log"
        assert len(exc.tail.splitlines()) == 10
        assert runner.stages == ["configure", "compile"]
        assert pipeline.last_run.workdir.is_dir()

    def test_bootstrap_failure_is_configure_failure(self, demo_descriptor, settings, fake_runner):
        descriptor = demo_descriptor.model_copy(update={"bootstrap": ["autoreconf", "-i"]})
        runner = fake_runner(fail={"bootstrap": 1})

        with pytest.raises(ConfigureFailed):
            _pipeline(descriptor, settings, runner).run("1.2.0")
        assert runner.stages == ["bootstrap"]


class TestBootstrapThenConfigure:
    @staticmethod
    def _write_configure(cwd: Path) -> None:
        script = cwd / "configure"
        script.write_text(dedent("""\
            #!/bin/sh
            echo "  --with-foo   enable foo"
        """))
        script.chmod(0o755)

    @pytest.mark.skipif(shutil.which("sh") is None, reason="sh not installed")
    def test_optional_arg_checked_after_bootstrap(self, demo_descriptor, settings, fake_runner):
        descriptor = demo_descriptor.model_copy(update={
            "bootstrap": ["make", "configure"],
            "optional_configure_args": ["--with-foo", "--with-bar"],
        })
        runner = fake_runner(hooks={"bootstrap": self._write_configure})
        _pipeline(descriptor, settings, runner).run("1.2.0")

        assert runner.stages[:2] == ["bootstrap", "configure"]
        configure_cmd = runner.calls[1][1]
        assert "--with-foo" in configure_cmd
        assert "--with-bar" not in configure_cmd


class TestInstallTreeFailure:
    def test_base_is_a_file(self, demo_descriptor, settings, fake_runner):
        settings.base_dir.parent.mkdir(parents=True, exist_ok=True)
        settings.base_dir.write_text("not a directory\n")
        runner = fake_runner()
        pipeline = _pipeline(demo_descriptor, settings, runner)

        with pytest.raises(InstallDirError) as exc_info:
            pipeline.run("1.2.0")

        assert exc_info.value.returncode == 1
        assert "Cannot update install tree" in str(exc_info.value)
        assert runner.calls == []
        assert pipeline.last_run.state == "failed"


class TestResolutionFailure:
    def test_unknown_version_has_no_side_effects(self, demo_descriptor, settings, fake_runner):
        runner = fake_runner()
        with pytest.raises(TagNotFound):
            _pipeline(demo_descriptor, settings, runner).run("9.9.9")

        assert runner.calls == []
        assert not (settings.base_dir / "demo").exists()
        assert _workdirs(settings) == []


class TestAlreadyInstalled:
    def _populate(self, settings, version="1.2.0"):
        install_dir = settings.base_dir / "demo" / version
        (install_dir / "bin").mkdir(parents=True)
        (install_dir / "bin" / "demo").write_text("")
        return install_dir

    def test_skips_stages_but_updates_default(self, demo_descriptor, settings, fake_runner):
        self._populate(settings)
        runner = fake_runner()
        run = _pipeline(demo_descriptor, settings, runner).run("1.2.0")

        assert run.ok
        assert run.skipped
        assert "already exists" in run.notice
        assert runner.calls == []
        assert os.readlink(settings.base_dir / "demo" / "default") == "1.2.0"

    def test_clobber_rebuilds(self, demo_descriptor, settings, fake_runner):
        self._populate(settings)
        runner = fake_runner()
        run = _pipeline(demo_descriptor, settings, runner, clobber=True).run("1.2.0")

        assert not run.skipped
        assert runner.stages == ["configure", "compile", "install"]

    def test_always_run_builds_without_install(self, demo_descriptor, settings, fake_runner):
        install_dir = self._populate(settings)
        (install_dir / "bin" / "demo").write_text("installed earlier\n")
        runner = fake_runner()
        run = _pipeline(demo_descriptor, settings, runner, always_run=True).run("1.2.0")

        assert run.ok
        assert not run.skipped
        assert "without install" in run.notice
        assert runner.stages == ["configure", "compile"]
        assert (install_dir / "bin" / "demo").read_text() == "installed earlier\n"
        assert (install_dir / ".build" / "compile.log").is_file()

    def test_always_run_runs_tests(self, demo_descriptor, settings, fake_runner):
        self._populate(settings)
        runner = fake_runner()
        _pipeline(
            demo_descriptor, settings, runner, always_run=True, run_tests=True,
        ).run("1.2.0")
        assert runner.stages == ["configure", "compile", "test"]

    def test_always_run_installs_when_missing(self, demo_descriptor, settings, fake_runner):
        runner = fake_runner()
        run = _pipeline(demo_descriptor, settings, runner, always_run=True).run("1.2.0")
        assert runner.stages == ["configure", "compile", "install"]
        assert run.notice == ""

    def test_populated_without_binary_declared(self, demo_descriptor, settings, fake_runner):
        descriptor = demo_descriptor.model_copy(update={"binary": ""})
        install_dir = settings.base_dir / "demo" / "1.2.0"
        install_dir.mkdir(parents=True)
        (install_dir / "README").write_text("")

        runner = fake_runner()
        run = _pipeline(descriptor, settings, runner).run("1.2.0")
        assert run.skipped
        assert runner.calls == []


class TestDefaultPolicy:
    def test_pinned_default_not_moved(self, demo_descriptor, settings, fake_runner):
        base = settings.base_dir / "demo"
        base.mkdir(parents=True)
        (base / "default").symlink_to("1.0.0")

        pinned = SymlinkPolicy(update_if_symlink=False)
        run = _pipeline(demo_descriptor, settings, fake_runner(), symlink=pinned).run("1.10.0")

        assert run.ok
        assert run.default_updated is False
        assert os.readlink(base / "default") == "1.0.0"


class TestPipelineRun:
    def test_ok_only_when_done(self):
        run = PipelineRun(package="demo")
        assert not run.ok
        run.state = "done"
        assert run.ok
