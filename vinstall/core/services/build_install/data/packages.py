"""
L0 Data — Built-in package recipes.

One entry per installable package.  Pure data, no logic; each value
validates as a ``PackageDescriptor``.  Extra or overriding entries can
be declared in ``packages.yml`` (see ``core.config.loader``).
"""

from __future__ import annotations

PACKAGE_RECIPES: dict[str, dict] = {

    # ── Interpreters ────────────────────────────────────────────

    "python": {
        "description": "CPython interpreter",
        "source": "tarball",
        "url": "https://www.python.org/ftp/python/{version}/Python-{version}.tar.xz",
        "signature_url": "https://www.python.org/ftp/python/{version}/Python-{version}.tar.xz.asc",
        "tag_prefix": "v",
        "versions": ["3.11.9", "3.11.10", "3.12.6", "3.12.7", "3.13.0"],
        "configure_args": ["--with-ensurepip=install"],
        "optional_configure_args": ["--enable-loadable-sqlite-extensions"],
        "test_target": "test",
        "binary": "bin/python3",
    },

    # ── Version control ─────────────────────────────────────────

    "git": {
        "description": "Git version control",
        "source": "git",
        "repo": "https://git.kernel.org/pub/scm/git/git.git",
        "tag_prefix": "v",
        "tag_exclude": r"-rc\d*$",
        "bootstrap": ["make", "configure"],
        "configure_args": [],
        "make_args": ["all"],
        "test_target": "test",
        "binary": "bin/git",
    },

    # ── Cryptographic toolchain ─────────────────────────────────

    "gnupg": {
        "description": "GNU Privacy Guard",
        "source": "tarball",
        "url": "https://gnupg.org/ftp/gcrypt/gnupg/gnupg-{version}.tar.bz2",
        "signature_url": "https://gnupg.org/ftp/gcrypt/gnupg/gnupg-{version}.tar.bz2.sig",
        "tag_prefix": "gnupg-",
        "versions": ["2.4.5", "2.4.6", "2.4.7"],
        "test_target": "check",
        "binary": "bin/gpg",
    },

    # ── HTTP/2 ──────────────────────────────────────────────────

    "nghttp2": {
        "description": "HTTP/2 C library",
        "source": "git",
        "repo": "https://github.com/nghttp2/nghttp2.git",
        "url": "https://github.com/nghttp2/nghttp2/releases/download/{tag}/nghttp2-{version}.tar.xz",
        "tag_prefix": "v",
        "tag_exclude": r"-(DEV|rc|alpha|beta)",
        "configure_args": ["--enable-lib-only"],
        "test_target": "check",
        "binary": "lib/libnghttp2.so",
    },

    "curl": {
        "description": "curl command line tool and libcurl",
        "source": "tarball",
        "url": "https://curl.se/download/curl-{version}.tar.xz",
        "signature_url": "https://curl.se/download/curl-{version}.tar.xz.asc",
        "tag_prefix": "curl-",
        "versions": ["8.9.1", "8.10.1", "8.11.0"],
        "configure_args": ["--with-openssl"],
        "optional_configure_args": ["--with-nghttp2"],
        "test_target": "test",
        "binary": "bin/curl",
    },

    # ── Shells ──────────────────────────────────────────────────

    "bash": {
        "description": "GNU Bourne Again SHell",
        "source": "tarball",
        "url": "https://ftp.gnu.org/gnu/bash/bash-{version}.tar.gz",
        "signature_url": "https://ftp.gnu.org/gnu/bash/bash-{version}.tar.gz.sig",
        "tag_prefix": "bash-",
        "versions": ["5.1.16", "5.2.21", "5.2.37"],
        "test_target": "tests",
        "binary": "bin/bash",
    },
}
