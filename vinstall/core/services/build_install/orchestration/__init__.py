"""
L5 Orchestration — ``__init__.py`` re-exports the pipeline.
"""

from vinstall.core.services.build_install.orchestration.pipeline import (  # noqa: F401
    BuildPipeline,
    PipelineRun,
)
