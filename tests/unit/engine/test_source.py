"""Filesystem content source tests."""

from __future__ import annotations

import tempfile
import unittest
from pathlib import Path

from vellum.config import VellumConfig
from vellum.errors import ConfigurationMissing
from vellum.frontmatter.extract import clear_metadata_cache
from vellum.source import FilesystemContentSource


class FilesystemContentSourceTests(unittest.TestCase):
    def setUp(self) -> None:
        clear_metadata_cache()

    def test_missing_or_file_root_raises_configuration_missing(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            with self.assertRaises(ConfigurationMissing):
                FilesystemContentSource(root / "missing")
            (root / "file.md").write_text("x", encoding="utf-8")
            with self.assertRaises(ConfigurationMissing) as ctx:
                FilesystemContentSource(root / "file.md")
            self.assertIn("not a directory", str(ctx.exception))

    def test_scan_builds_addresses_loaders_and_metadata(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            (root / "a" / "b").mkdir(parents=True)
            (root / "drafts").mkdir()
            (root / "a" / "index.mdx").write_text("---\ntitle: A\n---\n", encoding="utf-8")
            (root / "a" / "b" / "README.md").write_text("# B\n", encoding="utf-8")
            (root / "a" / "logo.png").write_bytes(b"\x89PNG")
            (root / "c.tsx").write_text('export const frontmatter = { title: "C" }\n', encoding="utf-8")
            (root / "drafts" / "wip.md").write_text("w", encoding="utf-8")
            (root / ".running").write_text("", encoding="utf-8")

            source = FilesystemContentSource(root, VellumConfig(ignore=("drafts",)))
            snapshot = source.scan()

            self.assertEqual(
                snapshot.addresses,
                ("@content/a/b/README.md", "@content/a/index.mdx", "@content/a/logo.png", "@content/c.tsx"),
            )
            self.assertEqual(snapshot.loaders["@content/a/b/README.md"](), "# B\n")
            self.assertEqual(snapshot.loaders["@content/a/logo.png"](), b"\x89PNG")
            self.assertEqual(snapshot.metadata["@content/a/index.mdx"].title, "A")
            self.assertEqual(snapshot.metadata["@content/c.tsx"].title, "C")
            self.assertTrue(snapshot.metadata["@content/a/b/README.md"].is_empty())
            self.assertEqual(snapshot.sizes["a/logo.png"], 4)
            self.assertTrue(source.marker_present())
            self.assertIn(".running", source.scan_stats())
