"""Typed configuration with validated field-by-field overrides.

Defaults mirror what an interactive editor host expects: ``<leader>`` style
prefixes, a state-directory storage file, and VCS directories as markers.
User overrides may also come from a JSON config file, read defensively.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Union

from platformdirs import user_config_dir, user_state_dir

from .errors import ConfigError
from .paths import DEFAULT_PROJECT_MARKERS

logger = logging.getLogger(__name__)

APP_NAME = "filemarks"
STORAGE_FILENAME = "filemarks.json"
CONFIG_FILENAME = "config.json"
DEFAULT_STORAGE_PATH = Path(user_state_dir(APP_NAME, appauthor=False)) / STORAGE_FILENAME
DEFAULT_CONFIG_PATH = Path(user_config_dir(APP_NAME, appauthor=False)) / CONFIG_FILENAME

ListOpener = Union[str, Callable[[Path], object]]


@dataclass(frozen=True)
class FilemarksConfig:
    """Settings consumed by the facade and key-binding registry.

    ``goto_prefix`` precedes each mark key in jump bindings and
    ``action_prefix`` precedes the add/remove/list action bindings; an empty
    prefix disables that group. ``list_opener`` is a shell command or a
    callable receiving the listing file path; ``None`` falls back to
    ``$EDITOR``.
    """

    goto_prefix: str = "<leader>m"
    action_prefix: str = "<leader>M"
    storage_path: Path = DEFAULT_STORAGE_PATH
    project_markers: tuple[str, ...] = field(default=DEFAULT_PROJECT_MARKERS)
    list_opener: ListOpener | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.goto_prefix, str):
            raise ConfigError("goto_prefix must be a string")
        if not isinstance(self.action_prefix, str):
            raise ConfigError("action_prefix must be a string")
        if isinstance(self.storage_path, str):
            if not self.storage_path.strip():
                raise ConfigError("storage_path must not be empty")
            object.__setattr__(self, "storage_path", Path(self.storage_path).expanduser())
        elif not isinstance(self.storage_path, Path):
            raise ConfigError("storage_path must be a path")

        markers = self.project_markers
        if isinstance(markers, str) or not isinstance(markers, (list, tuple)):
            raise ConfigError("project_markers must be a sequence of names")
        if not all(isinstance(marker, str) and marker for marker in markers):
            raise ConfigError("project_markers must contain non-empty strings")
        object.__setattr__(self, "project_markers", tuple(markers))

        opener = self.list_opener
        if opener is not None and not isinstance(opener, str) and not callable(opener):
            raise ConfigError("list_opener must be a command string or callable")

    @classmethod
    def from_mapping(cls, overrides: Mapping[str, object] | None = None) -> FilemarksConfig:
        """Build a config from defaults plus ``overrides``, rejecting unknown fields."""
        return cls().with_overrides(**dict(overrides or {}))

    def with_overrides(self, **overrides: object) -> FilemarksConfig:
        """Return a copy with named fields replaced and re-validated."""
        known = {item.name for item in fields(self)}
        unknown = sorted(set(overrides) - known)
        if unknown:
            raise ConfigError(f"unknown config option(s): {', '.join(unknown)}")
        return replace(self, **overrides)


def load_user_config(path: Path | None = None) -> dict[str, object]:
    """Load config overrides from JSON.

    Returns an empty dict when the file is missing, unreadable, malformed, or
    does not decode to a top-level JSON object.
    """
    config_path = DEFAULT_CONFIG_PATH if path is None else path
    try:
        data = json.loads(config_path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return {}
    except Exception as exc:
        logger.warning("Ignoring unreadable config %s: %s", config_path, exc)
        return {}
    return data if isinstance(data, dict) else {}
