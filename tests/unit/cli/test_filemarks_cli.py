"""CLI subcommand behavior and exit-status tests.

Each test points ``--storage`` and ``--config`` into a temp dir so the user's
real state and config files are never touched.
"""

from __future__ import annotations

import contextlib
import io
import json
import tempfile
import unittest
from pathlib import Path
from unittest import mock

import filemarks
from filemarks import cli


class CliTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.base = Path(self._tmp.name).resolve()
        self.proj = self.base / "proj"
        (self.proj / ".git").mkdir(parents=True)
        self.storage = self.base / "state" / "filemarks.json"

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def _run(self, *args: str) -> str:
        stdout = io.StringIO()
        argv = ["--storage", str(self.storage), "--config", str(self.base / "none.json"), *args]
        with contextlib.redirect_stdout(stdout):
            cli.main(argv)
        return stdout.getvalue()

    def test_add_then_open_prints_resolved_path(self) -> None:
        target = f"{self.proj}/src/main.go"

        out = self._run("add", "m", target)
        opened = self._run("--from", str(self.proj), "open", "m")

        self.assertEqual(out.strip(), f"added m -> {target}")
        self.assertEqual(opened.strip(), target)
        self.assertEqual(json.loads(self.storage.read_text(encoding="utf-8")), {str(self.proj): {"m": "src/main.go"}})

    def test_package_main_runs_cli(self) -> None:
        self._run("add", "m", f"{self.proj}/a.go")
        stdout = io.StringIO()
        argv = ["--storage", str(self.storage), "--config", str(self.base / "none.json"), "keys"]
        with contextlib.redirect_stdout(stdout):
            filemarks.main(argv)

        self.assertEqual(stdout.getvalue(), "m\n")

    def test_open_kind_reports_directory(self) -> None:
        (self.proj / "docs").mkdir()
        self._run("add-dir", "d", str(self.proj / "docs"))

        out = self._run("--from", str(self.proj), "open", "--kind", "d")

        self.assertEqual(out.strip(), f"directory\t{self.proj}/docs")

    def test_open_unknown_key_exits_with_message(self) -> None:
        with self.assertRaises(SystemExit) as ctx:
            self._run("--from", str(self.proj), "open", "nope")

        self.assertEqual(str(ctx.exception.code), "nope not defined for this project")

    def test_remove_unknown_key_exits_nonzero(self) -> None:
        stderr = io.StringIO()
        with contextlib.redirect_stderr(stderr), self.assertRaises(SystemExit) as ctx:
            self._run("--from", str(self.proj), "remove", "nope")

        self.assertEqual(ctx.exception.code, 1)
        self.assertIn("nope not defined", stderr.getvalue())

    def test_conflict_prompts_on_stdin(self) -> None:
        self._run("add", "m", f"{self.proj}/a.go")

        with mock.patch("builtins.input", return_value="y") as prompt:
            out = self._run("add", "m", f"{self.proj}/b.go")

        prompt.assert_called_once()
        self.assertEqual(out.strip(), f"added m -> {self.proj}/b.go")

    def test_conflict_with_no_input_fails(self) -> None:
        self._run("add", "m", f"{self.proj}/a.go")

        with contextlib.redirect_stderr(io.StringIO()), self.assertRaises(SystemExit) as ctx:
            self._run("add", "--no-input", "m", f"{self.proj}/b.go")

        self.assertEqual(ctx.exception.code, 1)

    def test_force_overwrites_without_prompt(self) -> None:
        self._run("add", "m", f"{self.proj}/a.go")

        with mock.patch("builtins.input") as prompt:
            self._run("add", "--force", "m", f"{self.proj}/b.go")

        prompt.assert_not_called()
        self.assertEqual(json.loads(self.storage.read_text(encoding="utf-8")), {str(self.proj): {"m": "b.go"}})

    def test_list_and_keys(self) -> None:
        other = self.base / "other"
        (other / ".git").mkdir(parents=True)
        self._run("add", "m", f"{self.proj}/a.go")
        self._run("add", "x", f"{other}/b.go")

        listing = self._run("--from", str(self.proj), "list").splitlines()
        keys = self._run("keys").splitlines()

        self.assertEqual(listing[0], f"# Filemarks for {self.proj}")
        self.assertEqual(listing[-1], "m a.go")
        self.assertEqual(keys, ["m", "x"])

    def test_invalid_config_file_option_exits(self) -> None:
        config_path = self.base / "config.json"
        config_path.write_text('{"no_such_option": 1}', encoding="utf-8")

        with self.assertRaises(SystemExit) as ctx:
            cli.main(["--config", str(config_path), "keys"])

        self.assertIn("no_such_option", str(ctx.exception.code))


if __name__ == "__main__":
    unittest.main()
