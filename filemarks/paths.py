"""Path normalization, project-root detection, and storage-form conversion.

Every path returned here uses ``/`` separators regardless of platform, so
stored marks compare equal across sessions. Relative paths are the storage
form; absolute paths are what hosts open.
"""

from __future__ import annotations

import os
import posixpath
import re
from collections.abc import Sequence

from .errors import InvalidPathError, ProjectUndetectableError

DEFAULT_PROJECT_MARKERS: tuple[str, ...] = (".git", ".hg", ".svn")

_DRIVE_PREFIX = re.compile(r"^[A-Za-z]:[/\\]")


def is_absolute(path: object) -> bool:
    """Return whether ``path`` is a rooted POSIX, UNC-ish, or drive-letter path."""
    if not isinstance(path, str) or not path:
        return False
    return path[0] in "/\\" or _DRIVE_PREFIX.match(path) is not None


def _unify_separators(path: str) -> str:
    """Rewrite native separators to ``/`` on platforms that use backslashes."""
    if os.sep == "\\":
        return path.replace("\\", "/")
    return path


def _lexical_normalize(path: str) -> str:
    """Collapse ``.``/``..`` segments and duplicate separators without touching disk."""
    return posixpath.normpath(_unify_separators(path))


def normalize_path(path: object) -> str:
    """Return canonical absolute form of ``path``.

    Relative input is anchored at the working directory. Symlinks are
    resolved when the whole path exists. Otherwise the path is normalized
    lexically, which keeps not-yet-created targets usable.
    """
    if not isinstance(path, str) or not path or "\x00" in path:
        raise InvalidPathError(f"invalid path: {path!r}")
    if not is_absolute(path):
        path = f"{_current_directory().rstrip('/')}/{path}"
    try:
        resolved = os.path.realpath(path, strict=True)
    except OSError:
        return _lexical_normalize(path)
    return _lexical_normalize(resolved)


def _current_directory() -> str:
    try:
        return os.getcwd()
    except OSError as exc:
        raise ProjectUndetectableError("unable to determine project directory") from exc


def _search_start(path_hint: str | None) -> str:
    """Return the directory ancestor search begins from."""
    if not path_hint:
        return _current_directory()
    expanded = os.path.expanduser(path_hint)
    if not is_absolute(expanded):
        expanded = os.path.join(_current_directory(), expanded)
    expanded = os.path.normpath(expanded)
    if os.path.isdir(expanded):
        return expanded
    return os.path.dirname(expanded)


def detect_project(
    path_hint: str | None = None,
    markers: Sequence[str] = DEFAULT_PROJECT_MARKERS,
) -> str:
    """Return the nearest ancestor of ``path_hint`` containing a marker.

    Search starts at ``path_hint`` itself when it is a directory, else at its
    parent; without a hint it starts at the working directory. When no ancestor
    holds a marker the normalized working directory is returned (or the search
    start, if the working directory no longer exists).
    """
    start = _search_start(path_hint)
    current = start
    while True:
        if any(os.path.exists(os.path.join(current, marker)) for marker in markers):
            return normalize_path(current)
        parent = os.path.dirname(current)
        if parent == current:
            break
        current = parent

    try:
        return normalize_path(_current_directory())
    except ProjectUndetectableError:
        if path_hint:
            return normalize_path(start)
        raise


def relativize(path: str, project_root: str) -> str:
    """Convert an absolute ``path`` into storage form relative to ``project_root``.

    Paths outside the root keep their absolute form. Non-absolute input is
    assumed to already be in storage form and returned unchanged.
    """
    if not is_absolute(path):
        return path
    root = project_root.rstrip("/") or "/"
    if path == project_root or path == root:
        return "."
    prefix = root if root.endswith("/") else root + "/"
    if path.startswith(prefix):
        return path[len(prefix):].lstrip("/") or "."

    try:
        relative = _unify_separators(os.path.relpath(path, project_root))
    except (OSError, ValueError):
        return path
    if relative.startswith(".."):
        return path
    return relative


def resolve_project_path(
    path: object,
    project_root: str | None = None,
    markers: Sequence[str] = DEFAULT_PROJECT_MARKERS,
) -> str:
    """Resolve a stored or user-typed path to its canonical absolute form.

    Leading ``~`` expands to the home directory. Relative paths are joined
    onto ``project_root``, detecting the project from the working directory
    when no root is given.
    """
    if not isinstance(path, str):
        raise InvalidPathError(f"invalid path: {path!r}")
    trimmed = path.strip()
    if not trimmed:
        raise InvalidPathError("empty path")

    if trimmed.startswith("~"):
        expanded = os.path.expanduser(trimmed)
        if expanded == trimmed:
            raise InvalidPathError(f"cannot expand {trimmed!r}")
        trimmed = expanded
    if not is_absolute(trimmed):
        base = project_root or detect_project(markers=markers)
        trimmed = f"{base.rstrip('/')}/{trimmed}"
    return normalize_path(trimmed)


def absolute_path(path: object) -> str:
    """Resolve user-typed ``path`` against the working directory, not a project."""
    if isinstance(path, str) and is_absolute(path.strip()):
        return resolve_project_path(path)
    return resolve_project_path(path, _current_directory())
