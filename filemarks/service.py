"""Host-facing facade over the mark store, listing format, and key bindings.

Every mutating operation returns an ``ActionResult`` carrying a status and a
human-readable message instead of raising, so hosts can show it directly.
Adding a mark over a different existing target is two-phase: ``propose_add``
leaves a ``PendingConflict`` that the host settles with ``resolve_conflict``
once its own UI has an answer.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from enum import Enum

from .config import FilemarksConfig
from .errors import FilemarksError, InvalidPathError, LineError, MarkNotFoundError, PersistenceWriteError
from .keymaps import ActionSpec, KeyBinding, KeyBindingRegistry
from .listing import parse_listing, render_listing
from .paths import absolute_path, detect_project, normalize_path, relativize
from .storage import MarkStorage
from .store import MarkStore, validate_key

logger = logging.getLogger(__name__)


class ResultStatus(Enum):
    APPLIED = "applied"
    UNCHANGED = "unchanged"
    CONFLICT = "conflict"
    NOT_FOUND = "not_found"
    CANCELLED = "cancelled"
    ERROR = "error"


@dataclass(frozen=True)
class ActionResult:
    """Outcome of one facade operation plus the message shown to the user."""

    status: ResultStatus
    message: str
    level: int = logging.INFO

    @property
    def ok(self) -> bool:
        return self.status in (ResultStatus.APPLIED, ResultStatus.UNCHANGED)


@dataclass(frozen=True)
class PendingConflict:
    """Add request waiting on a yes/no decision to overwrite ``current_target``."""

    key: str
    project: str
    stored_path: str
    current_target: str
    new_target: str


@dataclass(frozen=True)
class OpenTarget:
    """Resolved mark target handed to the host for display."""

    path: str
    is_directory: bool


ConfirmOverwrite = Callable[[str, str, str], bool]


class Filemarks:
    """Project-scoped file and directory bookmarks.

    ``prompt`` asks the host for a key when an operation is called without
    one. ``current_path`` reports the host's active file and serves as the
    default path hint. ``on_jump``, ``on_list``, ``on_bind``, and
    ``on_unbind`` let the host react to bindings and their actions.
    """

    def __init__(
        self,
        config: FilemarksConfig | None = None,
        *,
        prompt: Callable[[str], str | None] | None = None,
        current_path: Callable[[], str | None] | None = None,
        on_jump: Callable[[OpenTarget], object] | None = None,
        on_list: Callable[[str, list[str]], object] | None = None,
        on_bind: Callable[[KeyBinding], None] | None = None,
        on_unbind: Callable[[str], None] | None = None,
    ) -> None:
        self._prompt = prompt
        self._current_path = current_path
        self._on_jump = on_jump
        self._on_list = on_list
        self._on_bind = on_bind
        self._on_unbind = on_unbind
        self.pending_conflict: PendingConflict | None = None
        self.config = config if config is not None else FilemarksConfig()
        self.store = MarkStore(MarkStorage(self.config.storage_path), self.config.project_markers)
        self.bindings = self._new_bindings()

    def _new_bindings(self) -> KeyBindingRegistry:
        return KeyBindingRegistry(
            self.config.goto_prefix,
            self.jump,
            on_bind=self._on_bind,
            on_unbind=self._on_unbind,
        )

    def configure(self, config: FilemarksConfig | None = None) -> None:
        """Apply ``config``, reload marks from its storage path, and reinstall bindings."""
        self.bindings.reset()
        if config is not None:
            self.config = config
        self.pending_conflict = None
        self.store = MarkStore(MarkStorage(self.config.storage_path), self.config.project_markers)
        self.bindings = self._new_bindings()
        self._ensure_loaded()
        self.bindings.install_actions(
            self.config.action_prefix,
            (
                ActionSpec("a", self.add, "Add filemark"),
                ActionSpec("r", self.remove, "Remove filemark"),
                ActionSpec("l", self.show_listing, "Edit filemarks"),
            ),
        )

    def _ensure_loaded(self) -> None:
        if self.store.loaded:
            return
        self.store.ensure_loaded()
        self.bindings.rebuild(self.store.keys_in_use())

    def _result(self, status: ResultStatus, message: str, level: int = logging.INFO) -> ActionResult:
        logger.debug("%s: %s", status.value, message)
        return ActionResult(status, message, level)

    def _persist(self) -> str | None:
        """Save the store, returning the failure message instead of raising."""
        try:
            self.store.save()
        except PersistenceWriteError as exc:
            return str(exc)
        return None

    def _obtain_key(self, key: str | None, prompt_text: str) -> str | None:
        if key is None and self._prompt is not None:
            key = self._prompt(prompt_text)
        return key or None

    def _path_hint(self, path_hint: str | None) -> str | None:
        if path_hint:
            return path_hint
        if self._current_path is not None:
            return self._current_path() or None
        return None

    def project_for(self, path_hint: str | None = None) -> str:
        """Detect the active project from ``path_hint`` or the host's current path."""
        return detect_project(self._path_hint(path_hint), self.config.project_markers)

    def propose_add(
        self,
        key: str | None = None,
        path_hint: str | None = None,
        *,
        directory: bool = False,
    ) -> ActionResult:
        """First phase of add: apply, report no-op, or leave a pending conflict."""
        self._ensure_loaded()
        self.pending_conflict = None
        key = self._obtain_key(key, "Add mark key: ")
        if key is None:
            return self._result(ResultStatus.CANCELLED, "no key given")

        try:
            validate_key(key)
            target = self._add_target(path_hint, directory)
            project = detect_project(target, self.config.project_markers)
        except FilemarksError as exc:
            return self._result(ResultStatus.ERROR, str(exc), logging.WARNING)
        stored = relativize(target, project)

        existing = self.store.marks_for(project).get(key)
        if existing is not None:
            try:
                current = self.store.resolve(existing, project)
            except InvalidPathError:
                current = existing
            if current == target:
                return self._result(ResultStatus.UNCHANGED, f"{key} already points to {target}")
            self.pending_conflict = PendingConflict(key, project, stored, current, target)
            return self._result(
                ResultStatus.CONFLICT,
                f"{key} already points to {current}; overwrite with {target}?",
                logging.WARNING,
            )
        return self._apply_add(key, project, stored, target)

    def _add_target(self, path_hint: str | None, directory: bool) -> str:
        hint = self._path_hint(path_hint)
        if not directory:
            if hint is None:
                raise InvalidPathError("unable to determine file path")
            return absolute_path(hint)

        target = absolute_path(hint or ".")
        if os.path.isfile(target):
            target = normalize_path(os.path.dirname(target))
        if not os.path.isdir(target):
            raise InvalidPathError(f"{target} is not a directory")
        return target

    def _apply_add(self, key: str, project: str, stored: str, target: str) -> ActionResult:
        self.store.set_mark(project, key, stored)
        error = self._persist()
        self.bindings.ensure(key)
        if error is not None:
            return self._result(ResultStatus.ERROR, error, logging.ERROR)
        return self._result(ResultStatus.APPLIED, f"added {key} -> {target}")

    def resolve_conflict(self, accept: bool) -> ActionResult:
        """Second phase of add: overwrite when ``accept`` is true, else keep the old mark."""
        pending = self.pending_conflict
        self.pending_conflict = None
        if pending is None:
            return self._result(ResultStatus.ERROR, "no pending overwrite to resolve", logging.WARNING)
        if not accept:
            return self._result(
                ResultStatus.CANCELLED,
                f"kept {pending.key} -> {pending.current_target}",
            )
        return self._apply_add(pending.key, pending.project, pending.stored_path, pending.new_target)

    def _add_with_confirm(
        self,
        key: str | None,
        path_hint: str | None,
        confirm: ConfirmOverwrite | None,
        directory: bool,
    ) -> ActionResult:
        result = self.propose_add(key, path_hint, directory=directory)
        pending = self.pending_conflict
        if result.status is not ResultStatus.CONFLICT or confirm is None or pending is None:
            return result
        return self.resolve_conflict(bool(confirm(pending.key, pending.current_target, pending.new_target)))

    def add(
        self,
        key: str | None = None,
        path_hint: str | None = None,
        confirm: ConfirmOverwrite | None = None,
    ) -> ActionResult:
        """Mark a file; ``confirm(key, current, new)`` settles overwrites inline."""
        return self._add_with_confirm(key, path_hint, confirm, directory=False)

    def add_directory(
        self,
        key: str | None = None,
        dir_hint: str | None = None,
        confirm: ConfirmOverwrite | None = None,
    ) -> ActionResult:
        """Mark a directory; a file hint marks its containing directory."""
        return self._add_with_confirm(key, dir_hint, confirm, directory=True)

    def remove(self, key: str | None = None, path_hint: str | None = None) -> ActionResult:
        """Delete ``key`` from the active project and drop its binding if unused."""
        self._ensure_loaded()
        key = self._obtain_key(key, "Remove mark key: ")
        if key is None:
            return self._result(ResultStatus.CANCELLED, "no key given")
        try:
            self.store.delete_mark(self.project_for(path_hint), key)
        except MarkNotFoundError as exc:
            return self._result(ResultStatus.NOT_FOUND, str(exc), logging.WARNING)
        except FilemarksError as exc:
            return self._result(ResultStatus.ERROR, str(exc), logging.ERROR)

        error = self._persist()
        if not self.store.key_in_use(key):
            self.bindings.clear(key)
        if error is not None:
            return self._result(ResultStatus.ERROR, error, logging.ERROR)
        return self._result(ResultStatus.APPLIED, f"removed {key}")

    def lookup(self, key: str, path_hint: str | None = None) -> str:
        """Return the stored path for ``key`` in the active project."""
        self._ensure_loaded()
        return self.store.lookup(key, self.project_for(path_hint))

    def open(self, key: str, path_hint: str | None = None) -> OpenTarget:
        """Resolve ``key`` to an absolute target and whether it is a directory."""
        self._ensure_loaded()
        project = self.project_for(path_hint)
        target = self.store.resolve(self.store.lookup(key, project), project)
        return OpenTarget(path=target, is_directory=os.path.isdir(target))

    def jump(self, key: str) -> ActionResult:
        """Open ``key`` and hand the target to the host's ``on_jump`` callback."""
        try:
            target = self.open(key)
        except MarkNotFoundError:
            return self._result(ResultStatus.NOT_FOUND, f"{key} not set for this project", logging.WARNING)
        except FilemarksError as exc:
            return self._result(ResultStatus.ERROR, f"invalid path for {key}: {exc}", logging.ERROR)
        if self._on_jump is not None:
            self._on_jump(target)
        return self._result(ResultStatus.APPLIED, f"opened {target.path}", logging.DEBUG)

    def listing(self, path_hint: str | None = None) -> tuple[str, list[str]]:
        """Return the active project and its editable listing lines."""
        self._ensure_loaded()
        project = self.project_for(path_hint)
        lines = render_listing(project, self.store.marks_for(project), self.config.project_markers)
        return project, lines

    def show_listing(self) -> ActionResult:
        """Render the active project's listing and pass it to ``on_list``."""
        try:
            project, lines = self.listing()
        except FilemarksError as exc:
            return self._result(ResultStatus.ERROR, str(exc), logging.ERROR)
        if self._on_list is not None:
            self._on_list(project, lines)
        return self._result(ResultStatus.APPLIED, f"listed {project}", logging.DEBUG)

    def commit(self, project: str, text: str | Iterable[str]) -> ActionResult:
        """Replace ``project``'s marks with an edited listing, all or nothing."""
        self._ensure_loaded()
        try:
            parsed = parse_listing(text, project, self.config.project_markers)
        except LineError as exc:
            return self._result(ResultStatus.ERROR, str(exc), logging.ERROR)

        self.store.replace_project(project, parsed)
        error = self._persist()
        self.bindings.rebuild(self.store.keys_in_use())
        if error is not None:
            return self._result(ResultStatus.ERROR, error, logging.ERROR)
        return self._result(ResultStatus.APPLIED, "saved changes")

    def keys_in_use(self) -> set[str]:
        """Return the global key set across all projects."""
        self._ensure_loaded()
        return self.store.keys_in_use()
