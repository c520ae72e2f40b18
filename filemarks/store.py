"""In-memory mark table keyed by project root, with lazy load and write-back.

Stored paths are kept in storage form: relative to their project root when
the target lives inside it, absolute otherwise. Projects never linger empty.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence

from .errors import InvalidKeyError, InvalidPathError, MarkNotFoundError, PersistenceWriteError
from .paths import DEFAULT_PROJECT_MARKERS, is_absolute, normalize_path, relativize, resolve_project_path
from .storage import MarkStorage

logger = logging.getLogger(__name__)


def is_mark_key(key: object) -> bool:
    """Return whether ``key`` is a non-empty string without whitespace.

    A leading ``#`` is refused too: listing rows starting with it read back as
    comments.
    """
    if not isinstance(key, str) or not key or key.startswith("#"):
        return False
    return not any(char.isspace() for char in key)


def validate_key(key: object) -> None:
    """Raise ``InvalidKeyError`` unless ``key`` is a usable mark key."""
    if not is_mark_key(key):
        raise InvalidKeyError(f"invalid mark key: {key!r}")


class MarkStore:
    """Project-scoped marks backed by a ``MarkStorage`` file.

    The table is read on first access and canonicalized once; legacy or
    non-canonical entries found at that point are rewritten and persisted
    immediately. Mutators only touch memory; callers persist with ``save``.
    """

    def __init__(
        self,
        storage: MarkStorage,
        markers: Sequence[str] = DEFAULT_PROJECT_MARKERS,
    ) -> None:
        self.storage = storage
        self.markers = tuple(markers)
        self.data: dict[str, dict[str, str]] = {}
        self.loaded = False

    def ensure_loaded(self) -> None:
        """Load and canonicalize the storage file once per store lifetime."""
        if self.loaded:
            return
        self.data, changed = self.canonicalize(self.storage.read())
        self.loaded = True
        if changed:
            logger.debug("Rewriting canonicalized marks to %s", self.storage.path)
            try:
                self.save()
            except PersistenceWriteError as exc:
                logger.warning("Unable to persist canonicalized marks: %s", exc)

    def resolve(self, stored_path: str, project: str) -> str:
        """Return absolute canonical target for a stored path."""
        return resolve_project_path(stored_path, project, self.markers)

    def storage_form(self, path: str, project: str) -> str:
        """Return the canonical storage form of ``path`` within ``project``."""
        return relativize(self.resolve(path, project), project)

    def canonicalize(self, raw: Mapping[str, object]) -> tuple[dict[str, dict[str, str]], bool]:
        """Return the canonical table for ``raw`` and whether anything changed.

        Entries with invalid keys, unusable paths, or an unusable root are
        dropped. Roots that normalize to the same directory are merged, with
        the first-seen mark winning per key.
        """
        changed = False
        canonical: dict[str, dict[str, str]] = {}
        for raw_project, raw_marks in raw.items():
            if not is_absolute(raw_project) or not isinstance(raw_marks, Mapping):
                changed = True
                continue
            try:
                project = normalize_path(raw_project)
            except InvalidPathError:
                changed = True
                continue
            if project != raw_project:
                changed = True
            marks = canonical.setdefault(project, {})
            for key, stored in raw_marks.items():
                if not is_mark_key(key) or key in marks:
                    changed = True
                    continue
                try:
                    canonical_path = self.storage_form(stored, project)
                except InvalidPathError:
                    changed = True
                    continue
                if canonical_path != stored:
                    changed = True
                marks[key] = canonical_path

        for project in [project for project, marks in canonical.items() if not marks]:
            del canonical[project]
            changed = True
        return canonical, changed

    def projects(self) -> list[str]:
        self.ensure_loaded()
        return sorted(self.data)

    def marks_for(self, project: str) -> dict[str, str]:
        """Return a copy of the marks registered for ``project`` (possibly empty)."""
        self.ensure_loaded()
        return dict(self.data.get(project, {}))

    def get_or_create_marks(self, project: str) -> dict[str, str]:
        """Return the live mapping for ``project``, registering an empty one if needed."""
        self.ensure_loaded()
        return self.data.setdefault(project, {})

    def lookup(self, key: str, project: str) -> str:
        """Return the stored path for ``key`` in ``project``."""
        self.ensure_loaded()
        stored = self.data.get(project, {}).get(key)
        if stored is None:
            raise MarkNotFoundError(key, project)
        return stored

    def set_mark(self, project: str, key: str, stored_path: str) -> None:
        validate_key(key)
        self.get_or_create_marks(project)[key] = stored_path

    def delete_mark(self, project: str, key: str) -> None:
        """Remove ``key`` from ``project``, dropping the project once it is empty."""
        self.ensure_loaded()
        marks = self.data.get(project)
        if not marks or key not in marks:
            raise MarkNotFoundError(key, project)
        del marks[key]
        if not marks:
            del self.data[project]

    def replace_project(self, project: str, marks: Mapping[str, str]) -> None:
        """Swap in ``marks`` wholesale; an empty mapping removes the project."""
        self.ensure_loaded()
        for key in marks:
            validate_key(key)
        if marks:
            self.data[project] = dict(marks)
        else:
            self.data.pop(project, None)

    def keys_in_use(self) -> set[str]:
        """Return every key bound in any project."""
        self.ensure_loaded()
        return {key for marks in self.data.values() for key in marks}

    def key_in_use(self, key: str) -> bool:
        self.ensure_loaded()
        return any(key in marks for marks in self.data.values())

    def save(self) -> None:
        """Write the full table to storage, omitting empty projects."""
        self.storage.write({project: dict(marks) for project, marks in self.data.items() if marks})
