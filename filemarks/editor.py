"""Bulk-edit the active project's marks in an external editor.

The listing is written to a temporary file, handed to the configured opener
(or ``$EDITOR``), read back, and committed when its text changed.
"""

from __future__ import annotations

import logging
import os
import shlex
import subprocess
import tempfile
from collections.abc import Callable
from pathlib import Path

from .config import ListOpener
from .service import ActionResult, Filemarks, ResultStatus

logger = logging.getLogger(__name__)


def launch_editor(target: Path, opener: ListOpener | None = None) -> str | None:
    """Run ``opener`` (command string or callable) on ``target``.

    Falls back to ``$EDITOR``. Returns an error message string instead of
    raising.
    """
    if callable(opener):
        try:
            opener(target)
        except Exception as exc:
            return f"Failed to open listing: {exc}"
        return None

    command = opener if isinstance(opener, str) else os.environ.get("EDITOR", "")
    command = command.strip()
    if not command:
        return "Cannot edit: $EDITOR is not set."
    cmd = shlex.split(command)
    if not cmd:
        return "Cannot edit: $EDITOR is empty."

    try:
        subprocess.run([*cmd, str(target)], check=False)
    except Exception as exc:
        return f"Failed to launch editor: {exc}"
    return None


def edit_listing(
    service: Filemarks,
    path_hint: str | None = None,
    opener: ListOpener | None = None,
    launch: Callable[[Path, ListOpener | None], str | None] = launch_editor,
) -> ActionResult:
    """Round-trip the active project's listing through an editor and commit it."""
    project, lines = service.listing(path_hint)
    original = "\n".join(lines) + "\n"
    if opener is None:
        opener = service.config.list_opener

    with tempfile.TemporaryDirectory(prefix="filemarks-") as tmp:
        listing_path = Path(tmp) / "filemarks.txt"
        listing_path.write_text(original, encoding="utf-8")
        error = launch(listing_path, opener)
        if error is not None:
            logger.error(error)
            return ActionResult(ResultStatus.ERROR, error, logging.ERROR)
        edited = listing_path.read_text(encoding="utf-8")

    if edited == original:
        return ActionResult(ResultStatus.UNCHANGED, "no changes")
    return service.commit(project, edited)
