"""
CLI commands for building and installing packages.

Thin wrappers over ``vinstall.core.services.build_install``.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from vinstall.core.errors import InstallError, StageFailed
from vinstall.core.models.settings import PipelineSettings


def _descriptors(ctx: click.Context):
    from vinstall.core.config.loader import load_descriptors

    return load_descriptors(ctx.obj.get("config_path"))


def _fail(exc: InstallError) -> None:
    """Print a diagnostic for ``exc`` and exit with its status."""
    click.secho(f"❌ {exc}", fg="red")
    if isinstance(exc, StageFailed):
        if exc.tail:
            click.echo(exc.tail.rstrip("\n"))
        click.echo()
        click.echo(f"See {exc.log_path} for more info")
    sys.exit(exc.exit_status)


# ── Install ─────────────────────────────────────────────────────


@click.command()
@click.argument("package")
@click.argument("version", default="latest")
@click.option(
    "--install-dir", "-d",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Base directory for this package (default: $VINSTALL_BASE/<package>).",
)
@click.option("--run-tests/--no-run-tests", default=None, help="Run the test stage.")
@click.option(
    "--test-policy",
    type=click.Choice(["abort", "continue"]),
    default=None,
    help="What a failing test stage does (default: continue).",
)
@click.option("--clobber", is_flag=True, default=None, help="Rebuild even if already installed.")
@click.option(
    "--always-run", is_flag=True, default=None,
    help="Rebuild and test an installed version without reinstalling it.",
)
@click.option("--keep-workdir", is_flag=True, default=None, help="Never delete the working directory.")
@click.option("--jobs", "-j", type=int, default=None, help="Parallel compile jobs.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def install(
    ctx: click.Context,
    package: str,
    version: str,
    install_dir: Path | None,
    run_tests: bool | None,
    test_policy: str | None,
    clobber: bool | None,
    always_run: bool | None,
    keep_workdir: bool | None,
    jobs: int | None,
    as_json: bool,
) -> None:
    """Build PACKAGE at VERSION ('latest' or e.g. 3.12.7) and install it."""
    from vinstall.core.config.loader import get_descriptor
    from vinstall.core.services.build_install.orchestration.pipeline import BuildPipeline

    quiet = ctx.obj.get("quiet", False) or as_json
    try:
        descriptor = get_descriptor(package, _descriptors(ctx))
        settings = PipelineSettings.from_env(
            run_tests=run_tests,
            test_policy=test_policy,
            clobber=clobber or None,
            always_run=always_run or None,
            keep_workdir=keep_workdir or None,
            jobs=jobs,
        )
        pipeline = BuildPipeline(
            descriptor,
            settings,
            install_base=install_dir,
            progress=(lambda msg: None) if quiet else click.echo,
        )
        run = pipeline.run(version)
    except InstallError as exc:
        _fail(exc)
        return

    if as_json:
        click.echo(json.dumps(run.to_dict(), indent=2))
        return

    if not quiet:
        click.secho(f"✅ {run.package} {run.resolved.version} → {run.install_dir}", fg="green")
        if run.default_updated:
            click.echo(f"   default → {run.resolved.version}")


# ── Resolve ─────────────────────────────────────────────────────


@click.command()
@click.argument("package")
@click.argument("version", default="latest")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def resolve(ctx: click.Context, package: str, version: str, as_json: bool) -> None:
    """Show which tag VERSION resolves to for PACKAGE."""
    from vinstall.core.config.loader import get_descriptor
    from vinstall.core.services.build_install.orchestration.pipeline import BuildPipeline

    try:
        descriptor = get_descriptor(package, _descriptors(ctx))
        resolved = BuildPipeline(descriptor, PipelineSettings.from_env()).resolve(version)
    except InstallError as exc:
        _fail(exc)
        return

    if as_json:
        click.echo(json.dumps(resolved.model_dump(), indent=2))
        return
    click.echo(f"{resolved.version}\t{resolved.tag}")


# ── Packages ────────────────────────────────────────────────────


@click.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def packages(ctx: click.Context, as_json: bool) -> None:
    """List known packages."""
    try:
        descriptors = _descriptors(ctx)
    except InstallError as exc:
        _fail(exc)
        return

    if as_json:
        click.echo(json.dumps(
            {name: d.model_dump(mode="json") for name, d in sorted(descriptors.items())},
            indent=2,
        ))
        return

    click.secho("📦 Packages:", fg="cyan", bold=True)
    for name, d in sorted(descriptors.items()):
        click.echo(f"   {name:<12} {d.source:<8} {d.description}")


# ── Default alias ───────────────────────────────────────────────


@click.command()
@click.argument("package")
@click.argument("version")
@click.option(
    "--install-dir", "-d",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Base directory for this package (default: $VINSTALL_BASE/<package>).",
)
def default(package: str, version: str, install_dir: Path | None) -> None:
    """Point PACKAGE's 'default' alias at an installed VERSION."""
    from vinstall.core.services.build_install.execution.install_tree import add_default_symlink

    try:
        settings = PipelineSettings.from_env()
        base = settings.package_base(package, install_dir)
        if not (base / version).is_dir():
            click.secho(f"❌ {base / version} is not installed", fg="red")
            sys.exit(1)
        updated = add_default_symlink(base, version, settings.symlink)
    except InstallError as exc:
        _fail(exc)
        return

    if updated:
        click.secho(f"✅ {base / 'default'} → {version}", fg="green")
    else:
        click.secho(f"⚠️  {base / 'default'} left unchanged (symlink policy)", fg="yellow")


# ── Python ──────────────────────────────────────────────────────


@click.command("python-info")
@click.option(
    "--install-dir", "-d",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Python base directory (default: $VINSTALL_BASE/python).",
)
def python_info(install_dir: Path | None) -> None:
    """Show the preferred Python interpreter and its lib directory."""
    from vinstall.core.services.build_install.detection.python_env import (
        find_python,
        python_lib_dir,
    )

    try:
        base = PipelineSettings.from_env().package_base("python", install_dir)
    except InstallError as exc:
        _fail(exc)
        return
    exe = find_python(base)
    if exe is None:
        click.secho("❌ No working Python interpreter found", fg="red")
        sys.exit(1)

    click.echo(f"python:  {exe}")
    try:
        click.echo(f"lib dir: {python_lib_dir(exe)}")
    except InstallError as exc:
        click.secho(f"⚠️  {exc}", fg="yellow")
