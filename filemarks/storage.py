"""Persistent JSON storage for the project -> key -> path mark table.

Reads are defensive: a missing, empty, or malformed file loads as an empty
table. Writes replace the whole file and raise ``PersistenceWriteError`` so
the caller can report the failure and keep its in-memory copy.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from .errors import PersistenceWriteError

logger = logging.getLogger(__name__)


class MarkStorage:
    """Whole-file JSON reader/writer bound to one storage path."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)

    def read(self) -> dict[str, object]:
        """Return the decoded top-level object, or ``{}`` when unusable."""
        try:
            text = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except (OSError, UnicodeDecodeError) as exc:
            logger.debug("Unable to read %s: %s", self.path, exc)
            return {}
        if not text.strip():
            return {}
        try:
            data = json.loads(text)
        except ValueError as exc:
            logger.debug("Discarding malformed mark storage %s: %s", self.path, exc)
            return {}
        return data if isinstance(data, dict) else {}

    def write(self, data: dict[str, dict[str, str]]) -> None:
        """Overwrite the storage file with ``data`` as pretty-printed JSON."""
        try:
            encoded = json.dumps(data, indent=2, sort_keys=True) + "\n"
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(encoded, encoding="utf-8")
        except (OSError, TypeError, ValueError) as exc:
            raise PersistenceWriteError(f"failed to save - {exc}") from exc
