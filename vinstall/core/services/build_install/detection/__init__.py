"""
L3 Detection — ``__init__.py`` re-exports read-only host checks.
"""

from vinstall.core.services.build_install.detection.host import (  # noqa: F401
    core_count,
)
from vinstall.core.services.build_install.detection.python_env import (  # noqa: F401
    find_python,
    python_lib_dir,
)
