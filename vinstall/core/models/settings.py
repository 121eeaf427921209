"""
Pipeline settings — the typed replacement for environment globals.

Every optional behavior the pipeline recognizes is a field here.
``PipelineSettings.from_env()`` reads the conventional environment
variables once, at the edge; everything downstream receives the
settings object explicitly.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, ValidationError

from vinstall.core.errors import ConfigError

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _env_flag(environ: Mapping[str, str], name: str, default: bool = False) -> bool:
    """Interpret an environment variable as a boolean."""
    raw = environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in _TRUE_VALUES


class SymlinkPolicy(BaseModel):
    """Independent controls for the ``default`` alias.

    An operator pins ``default`` by turning off the update flags; a
    pinned alias is then never silently moved by later installs.
    """

    create_if_missing: bool = True
    update_if_symlink: bool = True
    replace_if_not_symlink: bool = True


class PipelineSettings(BaseModel):
    """Behavior switches for one pipeline run."""

    # ── Stages ───────────────────────────────────────────────────
    run_tests: bool = False
    test_policy: Literal["abort", "continue"] = "continue"
    clobber: bool = False
    always_run: bool = False

    # ── Working directory ────────────────────────────────────────
    keep_workdir: bool = False
    work_root: Path | None = None       # None = system temp dir

    # ── Install tree ─────────────────────────────────────────────
    base_dir: Path = Path("/opt")
    symlink: SymlinkPolicy = Field(default_factory=SymlinkPolicy)

    # ── Clean execution environment ──────────────────────────────
    language: str = "en_US"
    lang: str = ""                      # "" = <language>.UTF-8
    cflags: str = ""
    cppflags: str = ""
    ldflags: str = ""
    jobs: int | None = None             # None = detected core count

    @property
    def effective_lang(self) -> str:
        return self.lang or f"{self.language}.UTF-8"

    def package_base(self, package: str, override: Path | None = None) -> Path:
        """Base directory holding every version of ``package``."""
        if override is not None:
            return override
        return self.base_dir / package

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None, **overrides) -> PipelineSettings:
        """Build settings from environment variables.

        Keyword ``overrides`` (typically from CLI options) win over the
        environment.  ``None`` overrides are ignored.

        Raises:
            ConfigError: a value does not validate, e.g. ``VINSTALL_JOBS=four``.
        """
        env = os.environ if environ is None else environ

        data: dict = {
            "run_tests": _env_flag(env, "VINSTALL_RUN_TESTS"),
            "clobber": _env_flag(env, "VINSTALL_CLOBBER"),
            "always_run": _env_flag(env, "VINSTALL_ALWAYS_RUN"),
            "keep_workdir": _env_flag(env, "VINSTALL_KEEP_WORKDIR"),
            "symlink": SymlinkPolicy(
                create_if_missing=not _env_flag(env, "DEFAULT_SYMLINK_NO_CREATE"),
                update_if_symlink=not _env_flag(env, "DEFAULT_SYMLINK_NO_UPDATE"),
                replace_if_not_symlink=not _env_flag(env, "DEFAULT_SYMLINK_NO_REPLACE"),
            ),
            "cflags": env.get("CFLAGS", ""),
            "cppflags": env.get("CPPFLAGS", ""),
            "ldflags": env.get("LDFLAGS", ""),
        }
        if env.get("VINSTALL_TEST_POLICY"):
            data["test_policy"] = env["VINSTALL_TEST_POLICY"].strip().lower()
        if env.get("VINSTALL_JOBS"):
            data["jobs"] = env["VINSTALL_JOBS"]
        if env.get("VINSTALL_BASE"):
            data["base_dir"] = env["VINSTALL_BASE"]
        if env.get("TMPDIR"):
            data["work_root"] = env["TMPDIR"]
        if env.get("LANGUAGE"):
            data["language"] = env["LANGUAGE"]
        if env.get("LANG"):
            data["lang"] = env["LANG"]

        data.update({k: v for k, v in overrides.items() if v is not None})
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            problems = "; ".join(
                f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
            )
            raise ConfigError(f"Invalid settings: {problems}") from e
