"""
Build models — what flows between the pipeline stages.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict

PipelineState = Literal[
    "resolving",
    "acquiring",
    "verifying",
    "configuring",
    "compiling",
    "testing",
    "installing",
    "done",
    "failed",
]


class ResolvedVersion(BaseModel):
    """A concrete version and the exact tag/reference it came from."""

    model_config = ConfigDict(frozen=True)

    version: str
    tag: str


class StageResult(BaseModel):
    """Exit status and log location of one build stage."""

    stage: str
    returncode: int
    log_path: Path
    duration_ms: int = 0

    @property
    def ok(self) -> bool:
        return self.returncode == 0
