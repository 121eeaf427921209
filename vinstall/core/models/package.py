"""
Package descriptor — everything that differs between two packages.

The pipeline itself is generic; a descriptor supplies the package's
name, where its source lives, how tags map to versions, and which
flags and targets its native build system expects.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, model_validator


class PackageDescriptor(BaseModel):
    """Per-package metadata consumed by the build pipeline.

    URL templates may reference ``{version}`` and ``{tag}``.
    """

    name: str
    description: str = ""

    # ── Source ───────────────────────────────────────────────────
    source: Literal["tarball", "git"] = "tarball"
    url: str = ""                       # archive URL template (tarball)
    signature_url: str = ""             # detached signature template, "" = unsigned
    repo: str = ""                      # clone URL (git)
    strip_components: bool = True

    # ── Versioning ───────────────────────────────────────────────
    tag_prefix: str = "v"
    tag_exclude: str | None = None      # regex, e.g. pre-release markers
    versions: list[str] = Field(default_factory=list)  # known releases (tarball)

    # ── Build ────────────────────────────────────────────────────
    bootstrap: list[str] = Field(default_factory=list)  # e.g. ["autoreconf", "-i"]
    configure_args: list[str] = Field(default_factory=list)
    optional_configure_args: list[str] = Field(default_factory=list)
    make_args: list[str] = Field(default_factory=list)
    test_target: str = "test"
    install_target: str = "install"

    # ── Install ──────────────────────────────────────────────────
    binary: str = ""                    # relative to the install dir, for the skip check

    @model_validator(mode="after")
    def _check_source(self) -> PackageDescriptor:
        if self.source == "tarball" and not self.url:
            raise ValueError("a tarball source needs a 'url'")
        if self.source == "git" and not self.repo:
            raise ValueError("a git source needs a 'repo'")
        return self

    def render(self, template: str, *, version: str, tag: str) -> str:
        """Fill ``{version}``/``{tag}`` placeholders in a URL template."""
        return template.replace("{version}", version).replace("{tag}", tag)

    def tags(self) -> list[str]:
        """Tags implied by the static version list (tarball sources)."""
        return [f"{self.tag_prefix}{v}" for v in self.versions]
