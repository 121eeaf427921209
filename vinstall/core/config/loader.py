"""
Configuration loader — package descriptors from code and packages.yml.

The built-in recipe table is always available.  A ``packages.yml``
(found by walking up from the cwd, or given explicitly) may add new
packages or override fields of built-in ones.  Everything is validated
into ``PackageDescriptor`` models.
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import ValidationError

from vinstall.core.errors import ConfigError
from vinstall.core.models.package import PackageDescriptor
from vinstall.core.services.build_install.data.packages import PACKAGE_RECIPES

logger = logging.getLogger(__name__)

# Default config filename
PACKAGES_CONFIG_FILE = "packages.yml"

__all__ = [
    "ConfigError",
    "PACKAGES_CONFIG_FILE",
    "find_packages_file",
    "get_descriptor",
    "load_descriptors",
]


def find_packages_file(start_dir: Path | None = None) -> Path | None:
    """Search for packages.yml starting from the given directory, walking up.

    Args:
        start_dir: Directory to start searching from (default: cwd).

    Returns:
        Path to packages.yml, or None if not found.
    """
    current = (start_dir or Path.cwd()).resolve()

    for _ in range(20):  # safety limit
        candidate = current / PACKAGES_CONFIG_FILE
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break
        current = parent

    return None


def _read_yaml(path: Path) -> dict:
    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    logger.debug("Loading package config from %s", path)
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    # Entries may sit under a "packages" key or at the top level
    packages = data.get("packages", data)
    if not isinstance(packages, dict):
        raise ConfigError(f"'packages' in {path} must be a mapping")
    return packages


def load_descriptors(path: Path | None = None, *, search: bool = True) -> dict[str, PackageDescriptor]:
    """Built-in descriptors merged with packages.yml.

    Args:
        path: Explicit packages.yml.  If None and ``search`` is set,
            searches upward from the cwd; a missing file is not an error.
        search: Whether to look for packages.yml when ``path`` is None.

    Returns:
        Descriptors keyed by package name.

    Raises:
        ConfigError: the file is unreadable or an entry is invalid.
    """
    recipes: dict[str, dict] = {name: dict(r) for name, r in PACKAGE_RECIPES.items()}

    if path is None and search:
        path = find_packages_file()
    if path is not None:
        for name, entry in _read_yaml(path).items():
            if not isinstance(entry, dict):
                raise ConfigError(f"Package '{name}' in {path} must be a mapping")
            recipes[name] = {**recipes.get(name, {}), **entry}

    descriptors: dict[str, PackageDescriptor] = {}
    for name, recipe in recipes.items():
        try:
            descriptors[name] = PackageDescriptor.model_validate({"name": name, **recipe})
        except ValidationError as e:
            raise ConfigError(f"Invalid package '{name}': {e}") from e

    logger.info("Loaded %d package descriptors", len(descriptors))
    return descriptors


def get_descriptor(name: str, descriptors: dict[str, PackageDescriptor] | None = None) -> PackageDescriptor:
    """Look up one descriptor by name.

    Raises:
        ConfigError: unknown package.
    """
    descriptors = descriptors if descriptors is not None else load_descriptors()
    try:
        return descriptors[name]
    except KeyError:
        known = ", ".join(sorted(descriptors))
        raise ConfigError(f"Unknown package '{name}'. Known: {known}") from None
