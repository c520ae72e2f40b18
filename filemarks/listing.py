"""Line-oriented text listing of one project's marks, for bulk editing.

A listing is a comment header followed by ``<key> <path>`` rows sorted by
key. Parsing a listing yields a complete replacement mapping: keys missing
from the text are dropped from the project.
"""

from __future__ import annotations

import os
import re
from collections.abc import Iterable, Mapping, Sequence

from .errors import InvalidPathError, LineError
from .paths import DEFAULT_PROJECT_MARKERS, relativize, resolve_project_path

_ROW_PATTERN = re.compile(r"^(\S+)\s+(.+)$")

HEADER_TEMPLATE = (
    "# Filemarks for {project}",
    "# Format: <key><space><path>. Lines starting with # are ignored.",
    "# Delete a line to remove it. Save to persist changes.",
    "",
)


def display_path(
    stored_path: str,
    project: str,
    markers: Sequence[str] = DEFAULT_PROJECT_MARKERS,
) -> str:
    """Return the listing form of a stored path.

    Existing directories get a trailing ``/``. Paths that no longer resolve
    are shown verbatim so the row survives a save untouched.
    """
    try:
        resolved = resolve_project_path(stored_path, project, markers)
    except InvalidPathError:
        return stored_path
    shown = relativize(resolved, project)
    if os.path.isdir(resolved) and not shown.endswith("/"):
        shown += "/"
    return shown


def render_listing(
    project: str,
    marks: Mapping[str, str],
    markers: Sequence[str] = DEFAULT_PROJECT_MARKERS,
) -> list[str]:
    """Render header plus one ``<key> <path>`` row per mark, sorted by key."""
    lines = [line.format(project=project) for line in HEADER_TEMPLATE]
    for key in sorted(marks):
        lines.append(f"{key} {display_path(marks[key], project, markers)}")
    return lines


def _is_skipped(stripped: str) -> bool:
    return not stripped or stripped.startswith("#")


def parse_listing(
    lines: str | Iterable[str],
    project: str,
    markers: Sequence[str] = DEFAULT_PROJECT_MARKERS,
) -> dict[str, str]:
    """Parse an edited listing into a ``key -> storage path`` mapping.

    Raises ``LineError`` on the first malformed row, duplicate key, or
    unresolvable path; nothing is returned for partially valid input.
    """
    if isinstance(lines, str):
        lines = lines.splitlines()

    parsed: dict[str, str] = {}
    for line_number, line in enumerate(lines, start=1):
        stripped = line.strip()
        if _is_skipped(stripped):
            continue
        match = _ROW_PATTERN.match(stripped)
        if match is None:
            raise LineError(line_number, "missing path")
        key, path = match.group(1), match.group(2)
        if key in parsed:
            raise LineError(line_number, f"duplicate key '{key}'")
        try:
            resolved = resolve_project_path(path, project, markers)
        except InvalidPathError as exc:
            raise LineError(line_number, "unresolvable path") from exc
        parsed[key] = relativize(resolved, project)
    return parsed
