"""
L2 Resolver — ``__init__.py`` re-exports resolver functions.
"""

from vinstall.core.services.build_install.resolver.version_resolution import (  # noqa: F401
    filter_tags,
    resolve_version,
)
