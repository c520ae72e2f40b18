"""Key-binding registry tests for jump and action bindings."""

from __future__ import annotations

import unittest

from filemarks.keymaps import ActionSpec, KeyBinding, KeyBindingRegistry


class KeyBindingRegistryTests(unittest.TestCase):
    def setUp(self) -> None:
        self.jumped: list[str] = []
        self.bound: list[str] = []
        self.unbound: list[str] = []

    def _registry(self, prefix: str = "<leader>m") -> KeyBindingRegistry:
        def record_bind(binding: KeyBinding) -> None:
            self.bound.append(binding.lhs)

        return KeyBindingRegistry(
            prefix,
            self.jumped.append,
            on_bind=record_bind,
            on_unbind=self.unbound.append,
        )

    def test_ensure_binds_each_key_once(self) -> None:
        registry = self._registry()

        first = registry.ensure("m")
        second = registry.ensure("m")

        self.assertIs(first, second)
        self.assertEqual(self.bound, ["<leader>mm"])
        self.assertEqual(first.description, "Filemarks: jump to m")

    def test_dispatch_invokes_jump_with_key(self) -> None:
        registry = self._registry()
        registry.ensure("d")

        self.assertTrue(registry.dispatch("<leader>md"))
        self.assertFalse(registry.dispatch("<leader>mx"))
        self.assertEqual(self.jumped, ["d"])

    def test_empty_prefix_disables_jump_bindings(self) -> None:
        registry = self._registry(prefix="")

        self.assertIsNone(registry.ensure("m"))
        self.assertEqual(registry.bound_keys(), set())
        self.assertEqual(self.bound, [])

    def test_clear_unbinds_and_ignores_unknown_keys(self) -> None:
        registry = self._registry()
        registry.ensure("m")

        registry.clear("m")
        registry.clear("never-bound")

        self.assertEqual(self.unbound, ["<leader>mm"])
        self.assertEqual(registry.bound_keys(), set())

    def test_rebuild_matches_key_set(self) -> None:
        registry = self._registry()
        registry.ensure("old")
        registry.ensure("keep")

        registry.rebuild({"keep", "new"})

        self.assertEqual(registry.bound_keys(), {"keep", "new"})
        self.assertIn("<leader>mold", self.unbound)

    def test_install_actions_uses_action_prefix(self) -> None:
        calls: list[str] = []
        registry = self._registry()

        registry.install_actions(
            "<leader>M",
            (
                ActionSpec("a", lambda: calls.append("add"), "Add filemark"),
                ActionSpec("r", lambda: calls.append("remove"), "Remove filemark"),
            ),
        )
        registry.dispatch("<leader>Mr")

        self.assertEqual(self.bound, ["<leader>Ma", "<leader>Mr"])
        self.assertEqual(calls, ["remove"])

    def test_install_actions_with_empty_prefix_binds_nothing(self) -> None:
        registry = self._registry()

        registry.install_actions("", (ActionSpec("a", lambda: None, "Add filemark"),))

        self.assertEqual(registry.bindings(), [])

    def test_reset_removes_everything_even_if_host_unbind_fails(self) -> None:
        def failing_unbind(lhs: str) -> None:
            raise RuntimeError(f"no mapping for {lhs}")

        registry = KeyBindingRegistry("<leader>m", lambda key: None, on_unbind=failing_unbind)
        registry.ensure("m")
        registry.install_actions("<leader>M", (ActionSpec("l", lambda: None, "Edit filemarks"),))

        registry.reset()

        self.assertEqual(registry.bindings(), [])


if __name__ == "__main__":
    unittest.main()
