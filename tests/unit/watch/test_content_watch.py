"""Stat snapshots, watch signatures and snapshot diffs."""

from __future__ import annotations

import tempfile
import unittest
from pathlib import Path

from vellum.watch import ContentChange, build_content_watch_signature, diff_content_stats, scan_content_stats


class ScanContentStatsTests(unittest.TestCase):
    def test_scan_keeps_visible_content_files_only(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            (root / "sub").mkdir()
            (root / ".hidden").mkdir()
            (root / "drafts").mkdir()
            (root / "a.md").write_text("a", encoding="utf-8")
            (root / "notes.txt").write_text("n", encoding="utf-8")
            (root / "sub" / "c.png").write_bytes(b"png")
            (root / ".hidden" / "x.md").write_text("x", encoding="utf-8")
            (root / "drafts" / "wip.md").write_text("w", encoding="utf-8")
            (root / ".running").write_text("", encoding="utf-8")

            stats = scan_content_stats(root, ignore=("drafts",), extra_names=(".running",))

        self.assertEqual(sorted(stats), [".running", "a.md", "sub/c.png"])
        self.assertEqual(stats["a.md"][1], 1)

    def test_missing_extra_name_is_not_reported(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            self.assertEqual(scan_content_stats(Path(tmp), extra_names=(".running",)), {})

    def test_unreadable_root_raises(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            with self.assertRaises(OSError):
                scan_content_stats(Path(tmp) / "missing")


class SignatureAndDiffTests(unittest.TestCase):
    def test_signature_tracks_snapshot_contents(self) -> None:
        first = {"a.md": (1, 10, 0o644), "b.md": (2, 20, 0o644)}
        same = {"b.md": (2, 20, 0o644), "a.md": (1, 10, 0o644)}
        changed = {"a.md": (3, 10, 0o644), "b.md": (2, 20, 0o644)}

        self.assertEqual(build_content_watch_signature(first), build_content_watch_signature(same))
        self.assertNotEqual(build_content_watch_signature(first), build_content_watch_signature(changed))

    def test_diff_reports_added_removed_and_modified(self) -> None:
        previous = {"a.md": (1, 1, 1), "b.md": (1, 1, 1), "same.md": (5, 5, 5)}
        current = {"a.md": (2, 1, 1), "c.md": (1, 1, 1), "same.md": (5, 5, 5)}

        self.assertEqual(
            diff_content_stats(previous, current),
            [
                ContentChange("a.md", "modified"),
                ContentChange("b.md", "removed"),
                ContentChange("c.md", "added"),
            ],
        )
