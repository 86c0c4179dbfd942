"""Hierarchical path to flat storage key mapping.

Object storage has no directories, while clients address files by
hierarchical paths. PathMapper translates a client path beneath a configured
root directory into a flat storage key, and answers directory predicates from
configuration alone:

- the root directory is always a directory;
- registered pseudo-directories are directories, and their children are
  stored flattened: "<pseudo-dir><basename>" with no separator;
- every other path maps to its relative path with "/" separators.

Paths outside the root map to None and must never reach the store.

Example (root "/models", pseudo-directory "bnc"):
    /models/bnc/data.sci  -> "bncdata.sci"
    /models/sub/file.txt  -> "sub/file.txt"
    /other/file.txt       -> None
"""

from __future__ import annotations

import logging
import ntpath
import os
import posixpath
import threading
from collections.abc import Iterable
from pathlib import PurePath, PurePosixPath, PureWindowsPath
from types import ModuleType

from blobfs.config import PathStyle

logger = logging.getLogger(__name__)

STORAGE_SEPARATOR = "/"

_PATH_FLAVOURS: dict[PathStyle, tuple[type[PurePath], ModuleType]] = {
    PathStyle.POSIX: (PurePosixPath, posixpath),
    PathStyle.WINDOWS: (PureWindowsPath, ntpath),
}


def resolve_path_style(style: PathStyle) -> PathStyle:
    """Resolve NATIVE to the concrete style of the host OS."""
    if style == PathStyle.NATIVE:
        return PathStyle.WINDOWS if os.name == "nt" else PathStyle.POSIX
    return style


class PathMapper:
    """Maps client paths beneath a root directory onto flat storage keys.

    The pseudo-directory set is copy-on-write: registrations swap in a new
    frozenset under a lock, so concurrent lookups always see a complete set.
    """

    def __init__(
        self,
        root_dir: str,
        pseudo_directories: Iterable[str] = (),
        *,
        path_style: PathStyle = PathStyle.NATIVE,
    ) -> None:
        """Initialize the mapper.

        Args:
            root_dir: Origin of the filesystem view, in client path style.
            pseudo_directories: Initial pseudo-directories, relative to root_dir.
            path_style: Separator convention of client paths.
        """
        self._path_style = resolve_path_style(path_style)
        self._path_cls, self._pathmod = _PATH_FLAVOURS[self._path_style]
        self._root = self._normalize(root_dir)
        self._pseudo_dirs: frozenset[str] = frozenset()
        self._lock = threading.Lock()

        for name in pseudo_directories:
            self.add_pseudo_directory(name)

    @property
    def root_dir(self) -> str:
        """Return the normalized root directory."""
        return str(self._root)

    @property
    def path_style(self) -> PathStyle:
        """Return the concrete client path style."""
        return self._path_style

    @property
    def pseudo_directories(self) -> frozenset[str]:
        """Return a snapshot of the registered pseudo-directories."""
        return self._pseudo_dirs

    def _normalize(self, path: str) -> PurePath:
        """Collapse "." and ".." segments and redundant separators.

        A leading "//" is collapsed to "/" for POSIX paths, as Linux does.
        """
        normalized = self._pathmod.normpath(path)
        if self._path_style == PathStyle.POSIX and normalized.startswith("//"):
            normalized = "/" + normalized.lstrip("/")
        return self._path_cls(normalized)

    def add_pseudo_directory(self, name: str) -> None:
        """Register a path, relative to the root, to be treated as a directory.

        Duplicate registration is a no-op.

        Args:
            name: Relative path in client style (e.g. "bnc" or "models\\bnc").
        """
        normalized = self._normalize(name).as_posix()
        with self._lock:
            if normalized in self._pseudo_dirs:
                return
            self._pseudo_dirs = self._pseudo_dirs | {normalized}
        logger.info("Registered pseudo-directory: %s", normalized)

    def relative_path(self, client_path: str) -> PurePath | None:
        """Return client_path relative to the root, or None if outside it.

        Relative client paths are interpreted beneath the root.
        """
        target = self._normalize(str(self._root / client_path))
        try:
            return target.relative_to(self._root)
        except ValueError:
            return None

    def convert(self, client_path: str) -> str | None:
        """Translate a client path into a storage key.

        Args:
            client_path: Hierarchical path in client style.

        Returns:
            The storage key, "" for the root itself, or None when the path
            does not lie beneath the root.
        """
        relative = self.relative_path(client_path)
        if relative is None:
            return None
        if not relative.parts:
            return ""

        parent = relative.parent.as_posix()
        if parent in self._pseudo_dirs:
            return parent + relative.name
        return relative.as_posix()

    def is_root(self, client_path: str) -> bool:
        """Return True if client_path denotes the root directory."""
        relative = self.relative_path(client_path)
        return relative is not None and not relative.parts

    def is_dir(self, client_path: str) -> bool:
        """Return True if client_path is the root or a pseudo-directory."""
        relative = self.relative_path(client_path)
        if relative is None:
            return False
        if not relative.parts:
            return True
        return relative.as_posix() in self._pseudo_dirs
