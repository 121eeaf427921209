"""
L1 Domain — ``__init__.py`` re-exports pure domain helpers.
"""

from vinstall.core.services.build_install.domain.version_order import (  # noqa: F401
    LATEST,
    is_explicit_version,
    is_latest,
    max_version,
    sort_versions,
    version_key,
)
