"""Jump and action key-binding registry kept in sync with the mark table.

Hosts either feed key sequences to ``dispatch`` or mirror bindings into their
own keymap through the ``on_bind``/``on_unbind`` hooks.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class KeyBinding:
    """Mapping from one key sequence to a single action callback."""

    lhs: str
    handler: Callable[[], object]
    description: str = ""


@dataclass(frozen=True)
class ActionSpec:
    """Action suffix appended to the action prefix, e.g. ``a`` for add."""

    suffix: str
    handler: Callable[[], object]
    description: str


class KeyBindingRegistry:
    """One jump binding per mark key in use, plus optional action bindings.

    Jump bindings are ``goto_prefix + key`` and call ``jump(key)``. A key bound
    in several projects still gets a single binding.
    """

    def __init__(
        self,
        goto_prefix: str,
        jump: Callable[[str], object],
        on_bind: Callable[[KeyBinding], None] | None = None,
        on_unbind: Callable[[str], None] | None = None,
    ) -> None:
        self.goto_prefix = goto_prefix
        self._jump = jump
        self._on_bind = on_bind
        self._on_unbind = on_unbind
        self._jump_bindings: dict[str, KeyBinding] = {}
        self._action_bindings: list[KeyBinding] = []

    def _bind(self, binding: KeyBinding) -> None:
        if self._on_bind is not None:
            self._on_bind(binding)

    def _unbind(self, lhs: str) -> None:
        if self._on_unbind is None:
            return
        try:
            self._on_unbind(lhs)
        except Exception as exc:
            logger.debug("Host failed to unbind %s: %s", lhs, exc)

    def ensure(self, key: str) -> KeyBinding | None:
        """Bind ``key`` unless already bound or jump bindings are disabled."""
        existing = self._jump_bindings.get(key)
        if existing is not None:
            return existing
        if not self.goto_prefix:
            return None
        binding = KeyBinding(
            lhs=self.goto_prefix + key,
            handler=lambda: self._jump(key),
            description=f"Filemarks: jump to {key}",
        )
        self._jump_bindings[key] = binding
        self._bind(binding)
        return binding

    def clear(self, key: str) -> None:
        """Drop the jump binding for ``key`` if present."""
        binding = self._jump_bindings.pop(key, None)
        if binding is not None:
            self._unbind(binding.lhs)

    def rebuild(self, keys: Iterable[str]) -> None:
        """Replace all jump bindings with one per key in ``keys``."""
        for key in list(self._jump_bindings):
            self.clear(key)
        for key in sorted(set(keys)):
            self.ensure(key)

    def install_actions(self, action_prefix: str, actions: Iterable[ActionSpec]) -> None:
        """Bind ``action_prefix + suffix`` for each action; empty prefix disables."""
        self.clear_actions()
        if not action_prefix:
            return
        for action in actions:
            binding = KeyBinding(
                lhs=action_prefix + action.suffix,
                handler=action.handler,
                description=f"Filemarks: {action.description}",
            )
            self._action_bindings.append(binding)
            self._bind(binding)

    def clear_actions(self) -> None:
        for binding in self._action_bindings:
            self._unbind(binding.lhs)
        self._action_bindings = []

    def reset(self) -> None:
        """Remove every jump and action binding."""
        for key in list(self._jump_bindings):
            self.clear(key)
        self.clear_actions()

    def bound_keys(self) -> set[str]:
        return set(self._jump_bindings)

    def bindings(self) -> list[KeyBinding]:
        """Return all active bindings, jump bindings first in key order."""
        jump = [self._jump_bindings[key] for key in sorted(self._jump_bindings)]
        return [*jump, *self._action_bindings]

    def dispatch(self, lhs: str) -> bool:
        """Invoke the handler bound to ``lhs``; return whether one was found."""
        for binding in self.bindings():
            if binding.lhs == lhs:
                binding.handler()
                return True
        return False
