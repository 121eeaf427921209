"""
L4 Execution — ``__init__.py`` re-exports all execution functions.

These functions WRITE to the system: downloads, extraction, build
tool processes, install-tree and symlink changes.
"""

from vinstall.core.services.build_install.execution.build_stages import (  # noqa: F401
    has_configure_opt,
    plan_stages,
    stage_command,
)
from vinstall.core.services.build_install.execution.download import (  # noqa: F401
    basename_from_package,
    basename_from_url,
    download,
)
from vinstall.core.services.build_install.execution.install_tree import (  # noqa: F401
    add_default_symlink,
    ensure_install_dir,
    is_broken_symlink,
    preserve_logs,
)
from vinstall.core.services.build_install.execution.signature import (  # noqa: F401
    find_gpg,
    gpg_verify,
)
from vinstall.core.services.build_install.execution.subprocess_runner import (  # noqa: F401
    clean_env,
    run_clean,
    tail,
)
from vinstall.core.services.build_install.execution.unpack import (  # noqa: F401
    unpack,
)
from vinstall.core.services.build_install.execution.workdir import (  # noqa: F401
    WorkingDirectory,
    make_download_dir,
    verify_private_dir,
)
