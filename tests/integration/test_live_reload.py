"""End-to-end live reload: filesystem edits to rebuilt generation and broadcast."""

from __future__ import annotations

import tempfile
import unittest
from pathlib import Path

from vellum.config import VellumConfig
from vellum.content_model.types import PathNotFound
from vellum.engine import ContentEngine
from vellum.frontmatter.extract import clear_metadata_cache
from vellum.invalidation import InvalidationCoordinator, WatchLoop, create_watch_loop
from vellum.source import FilesystemContentSource


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


class LiveReloadTests(unittest.TestCase):
    def setUp(self) -> None:
        clear_metadata_cache()
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)
        (self.root / "a").mkdir()
        (self.root / "a" / "index.mdx").write_text("---\ntitle: A\n---\n", encoding="utf-8")

        self.source = FilesystemContentSource(self.root, VellumConfig())
        self.engine = ContentEngine(self.source)
        self.engine.rebuild()
        self.broadcasts: list[int] = []
        self.engine.subscribe(lambda: self.broadcasts.append(self.engine.generation.number))

        self.clock = FakeClock()
        self.coordinator = InvalidationCoordinator(
            self.engine.rebuild,
            self.engine.broadcast,
            debounce_seconds=1.0,
            marker_name=".running",
            monotonic=self.clock,
        )
        self.loop = WatchLoop(self.source.scan_stats, self.coordinator)
        self.loop.prime()

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_added_file_appears_after_debounced_rebuild(self) -> None:
        self.assertIsInstance(self.engine.navigate("guide"), PathNotFound)

        (self.root / "guide").mkdir()
        (self.root / "guide" / "README.md").write_text("---\ntitle: Guide\n---\n", encoding="utf-8")
        (self.root / "guide" / "notes.txt").write_text("ignored", encoding="utf-8")

        self.assertEqual(self.loop.poll_once(), 1)
        self.assertFalse(self.coordinator.tick())
        self.assertIsInstance(self.engine.navigate("guide"), PathNotFound)

        self.clock.now = 1.0
        self.assertTrue(self.loop.step())

        self.assertEqual(self.broadcasts, [2])
        self.assertEqual(self.engine.locate_key("guide", "document"), "@content/guide/README.md")
        readme = self.engine.navigate("guide/README.md").file
        self.assertEqual(readme.metadata.title, "Guide")

    def test_marker_file_holds_broadcasts_until_removed(self) -> None:
        marker = self.root / ".running"
        marker.write_text("", encoding="utf-8")
        self.loop.poll_once()
        self.assertTrue(self.coordinator.marker_active)

        (self.root / "b.md").write_text("# b\n", encoding="utf-8")
        self.loop.poll_once()
        self.clock.now = 1.0
        self.assertTrue(self.coordinator.tick())
        self.assertEqual(self.broadcasts, [])
        self.assertEqual(self.engine.locate_key("b", "document"), "@content/b.md")

        marker.unlink()
        self.loop.poll_once()
        self.clock.now = 2.0
        self.assertTrue(self.coordinator.tick())
        self.assertEqual(self.broadcasts, [3])

    def test_create_watch_loop_reads_marker_state_and_config(self) -> None:
        (self.root / ".running").write_text("", encoding="utf-8")
        loop = create_watch_loop(self.engine, self.source)
        self.assertTrue(loop.coordinator.marker_active)
        self.assertEqual(loop.coordinator.debounce_seconds, 1.0)
        self.assertEqual(loop.poll_seconds, 0.5)
