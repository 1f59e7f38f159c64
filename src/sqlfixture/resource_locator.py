"""Locate fixture, DDL and configuration files from an unknown calling context.

Search order, the first readable file wins:

1. ``<cwd>/<data_dir>/<name>`` (``testData`` by default),
2. next to the caller: the directory of each module, package or class passed
   as the ``caller`` hint, in the order given,
3. every directory on ``sys.path``, unscoped to any package.
"""

from __future__ import annotations

import importlib.util
import logging
import os
import sys
from collections.abc import Sequence
from pathlib import Path
from types import ModuleType
from typing import BinaryIO, TypeAlias

from sqlfixture.config.settings import FixtureSettings
from sqlfixture.exceptions import ResourceNotFound

logger = logging.getLogger(__name__)

CallerHint: TypeAlias = ModuleType | type | str | os.PathLike[str]

# Modules that are never the "caller" a test author has in mind.
_INFRASTRUCTURE_PREFIXES = ("sqlfixture.", "_pytest.", "pytest", "pluggy.", "unittest.", "importlib.")


def _is_infrastructure(module_name: str) -> bool:
    return module_name == "sqlfixture" or module_name.startswith(_INFRASTRUCTURE_PREFIXES)


def _module_directories(module_name: str) -> list[Path]:
    if _is_infrastructure(module_name):
        logger.debug("Skipping infrastructure module '%s' as a caller", module_name)
        return []

    module = sys.modules.get(module_name)
    if module is not None:
        return _loaded_module_directories(module)

    try:
        spec = importlib.util.find_spec(module_name)
    except (ImportError, ValueError) as exc:
        logger.debug("The caller module '%s' can't be resolved, skipping; cause: %s", module_name, exc)
        return []
    if spec is None:
        return []
    if spec.submodule_search_locations:
        return [Path(location) for location in spec.submodule_search_locations]
    if spec.origin and spec.has_location:
        return [Path(spec.origin).parent]
    return []


def _loaded_module_directories(module: ModuleType) -> list[Path]:
    package_path = getattr(module, "__path__", None)
    if package_path:
        return [Path(location) for location in package_path]
    module_file = getattr(module, "__file__", None)
    return [Path(module_file).parent] if module_file else []


def _looks_like_path(hint: str) -> bool:
    return os.sep in hint or "/" in hint or Path(hint).is_dir()


class ResourceLocator:
    """Find a named file in the default folder, next to the caller or on ``sys.path``."""

    def __init__(
        self,
        data_dir: str | os.PathLike[str] | None = None,
        *,
        settings: FixtureSettings | None = None,
        search_path: Sequence[str] | None = None,
    ) -> None:
        settings = settings or FixtureSettings()
        self.data_dir = Path(data_dir if data_dir is not None else settings.data_dir)
        # None means "the live sys.path", re-read on every lookup
        self._search_path = list(search_path) if search_path is not None else None

    # ------------------------------------------------------------------
    # Candidate locations
    # ------------------------------------------------------------------

    def caller_directories(self, caller: CallerHint | Sequence[CallerHint] | None) -> list[Path]:
        """Turn caller hints into the distinct directories to probe, in hint order."""
        if caller is None:
            return []
        hints: Sequence[CallerHint]
        if isinstance(caller, str | os.PathLike | ModuleType | type):
            hints = [caller]
        else:
            hints = caller

        directories: list[Path] = []
        for hint in hints:
            for directory in self._hint_directories(hint):
                if directory not in directories:
                    directories.append(directory)
        return directories

    @staticmethod
    def _hint_directories(hint: CallerHint) -> list[Path]:
        if isinstance(hint, ModuleType):
            if _is_infrastructure(hint.__name__):
                return []
            return _loaded_module_directories(hint)
        if isinstance(hint, type):
            return _module_directories(hint.__module__)
        if isinstance(hint, os.PathLike) or _looks_like_path(hint):
            path = Path(hint)
            return [path if path.is_dir() else path.parent]
        return _module_directories(hint)

    def search_path_directories(self) -> list[Path]:
        entries = self._search_path if self._search_path is not None else sys.path
        directories: list[Path] = []
        for entry in entries:
            # "" on sys.path stands for the working directory
            path = Path(entry) if entry else Path.cwd()
            if path.is_dir() and path not in directories:
                directories.append(path)
        return directories

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def find(
        self,
        name: str | os.PathLike[str],
        caller: CallerHint | Sequence[CallerHint] | None = None,
        *,
        search_path_only: bool = False,
    ) -> Path:
        """Return the path of the first readable match or raise :class:`ResourceNotFound`."""
        if name is None or str(name) == "":
            raise ValueError("The resource name may not be empty")

        relative = Path(name)
        tried: list[str] = []

        if relative.is_absolute():
            if self._is_readable(relative):
                return relative
            tried.append(str(relative))
        else:
            if not search_path_only:
                default_file = self.data_dir / relative
                tried.append(str(default_file.absolute()))
                if self._is_readable(default_file):
                    logger.info("Loading file %s (found in the default location)", default_file.absolute())
                    return default_file

                for directory in self.caller_directories(caller):
                    candidate = directory / relative
                    tried.append(str(candidate))
                    if self._is_readable(candidate):
                        logger.info("Loading file %s (found next to the caller)", candidate)
                        return candidate

            for directory in self.search_path_directories():
                candidate = directory / relative
                tried.append(str(candidate))
                if self._is_readable(candidate):
                    logger.info("Loading the file %s found on sys.path at %s", name, candidate)
                    return candidate

        callers = [] if search_path_only else [str(d) for d in self.caller_directories(caller)]
        msg = (
            f"The file '{name}' can't be found neither in the default location "
            f"{self.data_dir / relative} nor next to the callers {callers} nor on sys.path. "
            "Paths tried:\n  " + "\n  ".join(tried) + "\n"
            "Notice that the default search location is relative and thus depends on the folder "
            f"where you execute the tests from (currently {Path.cwd()}). Files other than .py "
            "files placed next to your modules must also be declared as package data, "
            "otherwise they are missing from an installed package."
        )
        logger.warning("find(%s): %s", name, msg)
        raise ResourceNotFound(msg, name=str(name), tried=tried)

    def open(
        self,
        name: str | os.PathLike[str],
        caller: CallerHint | Sequence[CallerHint] | None = None,
    ) -> BinaryIO:
        """Locate the file and open it for binary reading. The caller closes the stream."""
        return self.find(name, caller).open("rb")

    locate = open

    @staticmethod
    def _is_readable(path: Path) -> bool:
        return path.is_file() and os.access(path, os.R_OK)
