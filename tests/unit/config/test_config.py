"""Config loading tests: layering, defaults and input sanitization."""

from __future__ import annotations

import json
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from vellum import config


class LoadConfigTests(unittest.TestCase):
    def _write(self, path: Path, data: object) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(data), encoding="utf-8")

    def test_defaults_when_no_config_exists(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            with mock.patch("vellum.config.CONFIG_PATH", root / "user" / "config.json"):
                loaded = config.load_config(root)

        self.assertEqual(loaded, config.VellumConfig())
        self.assertEqual(loaded.site.name, "vellum")
        self.assertTrue(loaded.slides.scroll_snap)
        self.assertEqual(loaded.posts.sort, "alpha")
        self.assertEqual(loaded.debounce_seconds, 1.0)
        self.assertEqual(loaded.marker, ".running")

    def test_project_config_overrides_user_config(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            user_path = root / "user" / "config.json"
            self._write(user_path, {"site": {"name": "User", "github": "me/site"}, "debounce_seconds": 2})
            self._write(
                root / "content" / "vellum.json",
                {"site": {"name": "Project"}, "posts": {"sort": "date"}, "ignore": ["drafts/*", ""]},
            )
            with mock.patch("vellum.config.CONFIG_PATH", user_path), self.assertLogs("vellum.config", "WARNING"):
                loaded = config.load_config(root / "content")

        self.assertEqual(loaded.site.name, "Project")
        self.assertEqual(loaded.site.github, "me/site")
        self.assertEqual(loaded.debounce_seconds, 2.0)
        self.assertEqual(loaded.posts.sort, "date")
        self.assertEqual(loaded.ignore, ("drafts/*",))

    def test_malformed_json_falls_back_to_defaults(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            (root / "vellum.json").write_text("{not json", encoding="utf-8")
            with mock.patch("vellum.config.CONFIG_PATH", root / "missing.json"):
                with self.assertLogs("vellum.config", "WARNING"):
                    loaded = config.load_config(root)

        self.assertEqual(loaded, config.VellumConfig())

    def test_non_object_top_level_is_ignored(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "config.json"
            path.write_text("[1, 2]", encoding="utf-8")
            with self.assertLogs("vellum.config", "WARNING"):
                self.assertEqual(config.read_json_object(path), {})

    def test_invalid_values_keep_defaults(self) -> None:
        raw = {
            "site": "not an object",
            "slides": {"scroll_snap": "yes"},
            "posts": {"sort": "random"},
            "debounce_seconds": -1,
            "watch_poll_seconds": True,
            "marker": "nested/marker",
            "ignore": "drafts",
        }
        with self.assertLogs("vellum.config", "WARNING") as logs:
            loaded = config.config_from_mapping(raw)

        self.assertEqual(loaded, config.VellumConfig())
        self.assertGreaterEqual(len(logs.output), 7)

    def test_merge_config_merges_sections_one_level(self) -> None:
        merged = config.merge_config(
            {"site": {"name": "a", "github": "g"}, "ignore": ["x"]},
            {"site": {"name": "b"}, "ignore": ["y"]},
        )
        self.assertEqual(merged, {"site": {"name": "b", "github": "g"}, "ignore": ["y"]})
