"""
Domain models — Pydantic types for the installer.

All models are re-exported here for convenient access:

    from vinstall.core.models import PackageDescriptor, PipelineSettings, ResolvedVersion
"""

from vinstall.core.models.build import PipelineState, ResolvedVersion, StageResult
from vinstall.core.models.package import PackageDescriptor
from vinstall.core.models.settings import PipelineSettings, SymlinkPolicy

__all__ = [
    # package.py
    "PackageDescriptor",
    # settings.py
    "PipelineSettings",
    # build.py
    "PipelineState",
    "ResolvedVersion",
    "StageResult",
    "SymlinkPolicy",
]
