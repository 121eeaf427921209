"""
vinstall — CLI entrypoint.

Usage:
    python -m vinstall.main --help
    vinstall install python 3.12.7
    vinstall install nghttp2 latest --install-dir /opt/nghttp2
"""

from __future__ import annotations

import os
from pathlib import Path

import click

from vinstall import __version__
from vinstall.core.observability.logging_config import setup_logging


@click.group()
@click.version_option(version=__version__, prog_name="vinstall")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to packages.yml (default: auto-detect).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """vinstall — build source packages into versioned install trees."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    # ── Logging setup (once, at process start) ──────────────────
    if debug:
        level = "DEBUG"
    elif verbose:
        level = "INFO"
    elif quiet:
        level = "ERROR"
    else:
        level = os.environ.get("VINSTALL_LOG_LEVEL", "WARNING")

    setup_logging(
        level=level,
        log_file=os.environ.get("VINSTALL_LOG_FILE"),
        log_file_level=os.environ.get("VINSTALL_LOG_FILE_LEVEL"),
    )


# ── Register sub-commands ───────────────────────────────────────

from vinstall.ui.cli.install import default, install, packages, python_info, resolve  # noqa: E402

cli.add_command(install)
cli.add_command(resolve)
cli.add_command(packages)
cli.add_command(default)
cli.add_command(python_info)


if __name__ == "__main__":
    cli()
