"""CLI command tests against a temporary content root."""

from __future__ import annotations

import io
import json
import os
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from vellum import cli
from vellum.frontmatter.extract import clear_metadata_cache


def _make_site(root: Path) -> None:
    (root / "a" / "b").mkdir(parents=True)
    (root / "a" / "index.mdx").write_text("---\ntitle: Section A\n---\n# A\n", encoding="utf-8")
    (root / "a" / "b" / "README.md").write_text("# B\n", encoding="utf-8")
    (root / "c.mdx").write_text("---\ntitle: C\ndate: 2024-01-15\n---\nbody\n", encoding="utf-8")


class CliTests(unittest.TestCase):
    def setUp(self) -> None:
        clear_metadata_cache()
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name).resolve()
        _make_site(self.root)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def _run(self, *argv: str) -> str:
        stdout = io.StringIO()
        with mock.patch("sys.stdout", stdout), mock.patch("vellum.config.CONFIG_PATH", self.root / "no-user.json"):
            cli.main(["--dir", str(self.root), *argv])
        return stdout.getvalue()

    def test_tree_prints_entries_with_titles(self) -> None:
        output = self._run("tree")
        self.assertIn("  a/\n", output)
        self.assertIn("    index.mdx  [Section A]\n", output)
        self.assertIn("  c.mdx  [C]\n", output)

    def test_resolve_folder_and_missing_path(self) -> None:
        self.assertEqual(self._run("resolve", "a/b"), "directory: a/b\nfile: -\n")
        self.assertEqual(self._run("resolve", "a/index.mdx"), "directory: a\nfile: a/index.mdx\n")
        with self.assertRaises(SystemExit) as ctx:
            self._run("resolve", "zzz")
        self.assertEqual(ctx.exception.code, "Path not found: zzz")

    def test_locate_prints_matched_address(self) -> None:
        self.assertEqual(self._run("locate", "a/b"), "@content/a/b/README.md\n")
        with self.assertRaises(SystemExit):
            self._run("locate", "a", "--kind", "slides")

    def test_frontmatter_prints_json(self) -> None:
        output = self._run("frontmatter", str(self.root / "c.mdx"))
        self.assertEqual(json.loads(output), {"title": "C", "date": "2024-01-15"})

    def test_posts_lists_visible_posts(self) -> None:
        output = self._run("posts")
        self.assertEqual(output, "c.mdx\tC\t2024-01-15\na/index.mdx\tSection A\n")

    def test_cat_prints_plain_source_without_tty(self) -> None:
        self.assertEqual(self._run("cat", "a", "--no-color"), "---\ntitle: Section A\n---\n# A\n")

    def test_missing_root_exits_with_message(self) -> None:
        with self.assertRaises(SystemExit) as ctx:
            cli.main(["--dir", str(self.root / "missing"), "tree"])
        self.assertIn("does not exist", str(ctx.exception.code))

    def test_dir_defaults_to_current_working_directory(self) -> None:
        previous_cwd = Path.cwd()
        stdout = io.StringIO()
        try:
            os.chdir(self.root)
            with mock.patch("sys.stdout", stdout), mock.patch("vellum.config.CONFIG_PATH", self.root / "no-user.json"):
                cli.main(["locate", "a"])
        finally:
            os.chdir(previous_cwd)
        self.assertEqual(stdout.getvalue(), "@content/a/index.mdx\n")
