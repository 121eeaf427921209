"""
L0 Data — ``__init__.py`` re-exports all data constants.
"""

from vinstall.core.services.build_install.data.constants import (  # noqa: F401
    CLEAN_PATH,
    DEFAULT_ALIAS,
    LOG_TAIL_LINES,
    STAGE_TIMEOUTS,
)
from vinstall.core.services.build_install.data.packages import (  # noqa: F401
    PACKAGE_RECIPES,
)
