"""Tests for whole-file JSON mark storage.

Malformed or missing files must load as an empty table without raising.
"""

from __future__ import annotations

import json
import tempfile
import unittest
from pathlib import Path

from filemarks.errors import PersistenceWriteError
from filemarks.storage import MarkStorage


class MarkStorageReadTests(unittest.TestCase):
    def test_missing_file_reads_as_empty(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            self.assertEqual(MarkStorage(Path(tmp) / "absent.json").read(), {})

    def test_empty_and_blank_files_read_as_empty(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "marks.json"
            for content in ("", "  \n"):
                with self.subTest(content=content):
                    path.write_text(content, encoding="utf-8")
                    self.assertEqual(MarkStorage(path).read(), {})

    def test_corrupt_json_reads_as_empty(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "marks.json"
            path.write_text('{"/proj": {"m": ', encoding="utf-8")

            self.assertEqual(MarkStorage(path).read(), {})

    def test_non_object_document_reads_as_empty(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "marks.json"
            path.write_text('["/proj", "m"]\n', encoding="utf-8")

            self.assertEqual(MarkStorage(path).read(), {})

    def test_invalid_utf8_reads_as_empty(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "marks.json"
            path.write_bytes(b"\xff\xfe\x00garbage")

            self.assertEqual(MarkStorage(path).read(), {})


class MarkStorageWriteTests(unittest.TestCase):
    def test_write_creates_parent_directories_and_round_trips(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "state" / "nested" / "filemarks.json"
            data = {"/proj": {"m": "src/main.go", "d": "tests"}}

            MarkStorage(path).write(data)

            self.assertTrue(path.is_file())
            self.assertEqual(json.loads(path.read_text(encoding="utf-8")), data)
            self.assertEqual(MarkStorage(path).read(), data)

    def test_write_overwrites_previous_content(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "filemarks.json"
            storage = MarkStorage(path)
            storage.write({"/a": {"x": "one"}})
            storage.write({"/b": {"y": "two"}})

            self.assertEqual(storage.read(), {"/b": {"y": "two"}})

    def test_write_failure_raises_persistence_error(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            blocker = Path(tmp) / "not-a-dir"
            blocker.write_text("", encoding="utf-8")

            with self.assertRaises(PersistenceWriteError):
                MarkStorage(blocker / "filemarks.json").write({"/proj": {"m": "a"}})


if __name__ == "__main__":
    unittest.main()
