"""
Discovery and loading of installed service packages.

A service package ships a top-level module named ``cloudhub_<service>.py``
that registers its factory and configuration when imported.  At import
time :mod:`cloudhub` finds every such module among the installed
distributions and imports the ones that are not loaded yet.
"""

from __future__ import annotations

import fnmatch
import importlib.util
import os
import re
import sys
from importlib import metadata
from pathlib import Path
from typing import Any, Callable, Iterable

from packaging.version import InvalidVersion, Version

from cloudhub.base.config import Config
from cloudhub.base.defaults import configure
from cloudhub.base.logger import hub_logger
from cloudhub.base.services import ServiceRegistry, service_registry

AUTOLOAD_PATTERN = "cloudhub_*.py"

_log = hub_logger.bind("autoload")


def _canonical(path: str | os.PathLike[str]) -> str:
    return os.path.realpath(path)


def _normalize_name(name: str) -> str:
    return re.sub(r"[-_.]+", "-", name).lower()


def _latest_distributions(dists: list[Any]) -> list[Any]:
    """Keep only the newest version of each distribution name.

    Order is preserved. If any version of a name cannot be parsed, every
    distribution with that name is kept.
    """
    grouped: dict[str, list[Any]] = {}
    for dist in dists:
        meta = dist.metadata
        name = _normalize_name((meta.get("Name") if meta is not None else None) or "")
        grouped.setdefault(name, []).append(dist)

    keep: set[int] = set()
    for group in grouped.values():
        try:
            keep.add(id(max(group, key=lambda d: Version(d.version))))
        except (InvalidVersion, TypeError):
            keep.update(id(d) for d in group)
    return [d for d in dists if id(d) in keep]


def auto_load_files(pattern: str = AUTOLOAD_PATTERN, latest_only: bool = True) -> list[str]:
    """Find top-level modules matching *pattern* in installed distributions.

    Args:
        pattern: Glob matched against top-level file names.
        latest_only: Ignore older installed versions of the same distribution.

    Returns:
        Absolute paths in the order the distributions are enumerated.
    """
    dists = list(metadata.distributions())
    if latest_only:
        dists = _latest_distributions(dists)

    files: list[str] = []
    for dist in dists:
        for entry in dist.files or ():
            if len(entry.parts) == 1 and fnmatch.fnmatchcase(entry.name, pattern):
                files.append(str(dist.locate_file(entry)))
    return files


class ServiceLoader:
    """Imports service package modules, each at most once per process."""

    def __init__(
        self,
        pattern: str = AUTOLOAD_PATTERN,
        finder: Callable[[], Iterable[str]] | None = None,
        *,
        config: Config | None = None,
        services: ServiceRegistry | None = None,
    ) -> None:
        self.pattern = pattern
        self._finder = finder if finder is not None else self._find
        self._config = config
        self._services = services
        self._loaded: set[str] = set()

    @property
    def config(self) -> Config:
        return self._config if self._config is not None else configure()

    @property
    def services(self) -> ServiceRegistry:
        return self._services if self._services is not None else service_registry

    def _find(self) -> list[str]:
        return auto_load_files(self.pattern)

    def loaded_files(self) -> set[str]:
        """Canonical paths of modules already loaded in this process.

        Includes everything this loader imported and every module in
        ``sys.modules`` backed by a real file.
        """
        files = set(self._loaded)
        for module in list(sys.modules.values()):
            path = getattr(module, "__file__", None)
            if path and os.path.isfile(path):
                files.add(_canonical(path))
        return files

    def load_all(self) -> list[str]:
        """Import every discovered module not already loaded.

        Returns:
            Canonical paths of the modules imported by this call.

        Errors raised while importing a module propagate and stop the loop.
        """
        already_loaded = self.loaded_files()
        loaded: list[str] = []
        for candidate in self._finder():
            path = _canonical(candidate)
            if path in already_loaded:
                _log.debug("Service package already loaded", path=path)
                continue
            self._load(path)
            already_loaded.add(path)
            loaded.append(path)
        return loaded

    def _load(self, path: str) -> None:
        module_name = Path(path).stem
        spec = importlib.util.spec_from_file_location(module_name, path)
        if spec is None or spec.loader is None:
            raise ImportError(f"Cannot load service package from {path}")
        module = importlib.util.module_from_spec(spec)
        config, services = self.config, self.services
        known_keys = set(config.fields) | set(config.subconfigs) | set(config.aliases)
        known_services = set(services.names())
        sys.modules[module_name] = module
        try:
            spec.loader.exec_module(module)
        except BaseException:
            sys.modules.pop(module_name, None)
            self._rollback(config, known_keys, services, known_services)
            raise
        self._loaded.add(path)
        _log.info(f"Loaded service package '{module_name}'", path=path)

    @staticmethod
    def _rollback(
        config: Config,
        known_keys: set[str],
        services: ServiceRegistry,
        known_services: set[str],
    ) -> None:
        """Undo top-level config keys and services added by a failed load."""
        for name in set(services.names()) - known_services:
            services.unregister(name)
        for alias in set(config.aliases) - known_keys:
            config.delete(alias)
        for key in (set(config.fields) | set(config.subconfigs)) - known_keys:
            config.delete(key)
        _log.warning("Rolled back registrations of a failed service package")


# Module-level loader shared by the functions below
_loader = ServiceLoader()


def loaded_files() -> set[str]:
    return _loader.loaded_files()


def auto_load_packages() -> None:
    """Load all installed ``cloudhub_*`` service packages."""
    _loader.load_all()
