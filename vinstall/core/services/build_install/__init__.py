"""
Build-and-install service — package re-exports.

    from vinstall.core.services.build_install import BuildPipeline, resolve_version

Each symbol lives in its single-responsibility module inside the
appropriate layer (data → domain → resolver → detection → execution →
orchestration).
"""

# ── L0: Data ──
from vinstall.core.services.build_install.data.packages import PACKAGE_RECIPES  # noqa: F401

# ── L1: Domain ──
from vinstall.core.services.build_install.domain.version_order import (  # noqa: F401
    max_version,
    version_key,
)

# ── L2: Resolver ──
from vinstall.core.services.build_install.resolver.version_resolution import (  # noqa: F401
    resolve_version,
)

# ── L3: Detection ──
from vinstall.core.services.build_install.detection.host import core_count  # noqa: F401
from vinstall.core.services.build_install.detection.python_env import (  # noqa: F401
    find_python,
    python_lib_dir,
)

# ── L4: Execution ──
from vinstall.core.services.build_install.execution.install_tree import (  # noqa: F401
    add_default_symlink,
    ensure_install_dir,
    preserve_logs,
)
from vinstall.core.services.build_install.execution.workdir import (  # noqa: F401
    WorkingDirectory,
)

# ── L5: Orchestration ──
from vinstall.core.services.build_install.orchestration.pipeline import (  # noqa: F401
    BuildPipeline,
    PipelineRun,
)
