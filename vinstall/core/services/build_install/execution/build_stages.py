"""
L4 Execution — Autotools stage planning.

Turns a package descriptor into the ordered list of stage steps the
pipeline runs: optional bootstrap, ``./configure``, ``make -jN``,
optional ``make <test>``, ``make install``.
"""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path

from vinstall.core.models.package import PackageDescriptor
from vinstall.core.models.settings import PipelineSettings
from vinstall.core.services.build_install.data.constants import STAGE_TIMEOUTS
from vinstall.core.services.build_install.detection.host import core_count
from vinstall.core.services.build_install.execution.subprocess_runner import clean_env

logger = logging.getLogger(__name__)


def has_configure_opt(source_dir: Path, opt: str, settings: PipelineSettings) -> bool:
    """Whether ``./configure --help=short`` in ``source_dir`` mentions ``opt``.

    ``opt`` may carry a value (``--with-x=y``); only the option name is
    looked up.
    """
    name = opt.split("=", 1)[0]
    try:
        result = subprocess.run(
            ["./configure", "--help=short"],
            cwd=source_dir,
            env=clean_env(settings),
            capture_output=True,
            text=True,
            timeout=60,
        )
    except (OSError, subprocess.TimeoutExpired):
        return False
    return name in result.stdout


def plan_stages(
    descriptor: PackageDescriptor,
    install_dir: Path,
    settings: PipelineSettings,
    *,
    install: bool = True,
) -> list[dict]:
    """Generate the stage steps for an autotools build.

    Args:
        descriptor: Package metadata (flags, targets).
        install_dir: ``--prefix`` for configure.
        settings: Supplies ``jobs`` and ``run_tests``.
        install: Include the ``install`` stage.

    Returns:
        Ordered list of ``{"stage", "label", "command", "timeout"}``
        dicts.  ``bootstrap`` is present only when the descriptor
        declares one, ``test`` only when tests are enabled and
        ``install`` only when ``install`` is set.  The configure step
        also carries ``optional_args``, which ``stage_command`` checks
        against the source tree once the step is about to run.
    """
    jobs = settings.jobs or core_count()

    steps: list[dict] = []
    if descriptor.bootstrap:
        steps.append({
            "stage": "bootstrap",
            "label": "Bootstrap",
            "command": list(descriptor.bootstrap),
            "timeout": STAGE_TIMEOUTS["bootstrap"],
        })

    steps += [
        {
            "stage": "configure",
            "label": "Configure",
            "command": ["./configure", f"--prefix={install_dir}", *descriptor.configure_args],
            "optional_args": list(descriptor.optional_configure_args),
            "timeout": STAGE_TIMEOUTS["configure"],
        },
        {
            "stage": "compile",
            "label": f"Compile ({jobs} jobs)",
            "command": ["make", f"-j{jobs}", *descriptor.make_args],
            "timeout": STAGE_TIMEOUTS["compile"],
        },
    ]

    if settings.run_tests:
        steps.append({
            "stage": "test",
            "label": f"Test (make {descriptor.test_target})",
            "command": ["make", descriptor.test_target],
            "timeout": STAGE_TIMEOUTS["test"],
        })

    if install:
        steps.append({
            "stage": "install",
            "label": f"Install (make {descriptor.install_target})",
            "command": ["make", descriptor.install_target],
            "timeout": STAGE_TIMEOUTS["install"],
        })
    return steps


def stage_command(step: dict, source_dir: Path, settings: PipelineSettings) -> list[str]:
    """The command to run for ``step``, with supported optional args added.

    Called right before the step runs, so a bootstrap stage has already
    generated ``./configure`` when its options are checked.
    """
    command = list(step["command"])
    for opt in step.get("optional_args", ()):
        if has_configure_opt(source_dir, opt, settings):
            command.append(opt)
        else:
            logger.info("configure does not support %s, skipping it", opt)
    return command
