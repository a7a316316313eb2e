"""Terminal highlighting and sanitization tests."""

from __future__ import annotations

import unittest
from pathlib import Path

from pygments.lexers import TextLexer

from vellum.highlight import colorize_source, lexer_for_path, normalize_style, sanitize_terminal_text


class HighlightTests(unittest.TestCase):
    def test_sanitize_escapes_control_bytes_but_keeps_whitespace(self) -> None:
        self.assertEqual(sanitize_terminal_text("a\x07b\tc\n"), "a\\x07b\tc\n")
        self.assertEqual(sanitize_terminal_text("plain"), "plain")

    def test_colorize_source_emits_ansi_for_known_languages(self) -> None:
        rendered = colorize_source("const x = 1;\n", Path("widget.ts"))
        self.assertIn("\x1b[", rendered)

    def test_mdx_uses_markdown_lexer_and_unknown_files_fall_back_to_text(self) -> None:
        self.assertEqual(lexer_for_path(Path("page.mdx")).name, "Markdown")
        self.assertIsInstance(lexer_for_path(Path("notes.unknown-ext")), TextLexer)

    def test_invalid_style_falls_back_to_monokai(self) -> None:
        self.assertEqual(normalize_style("definitely-not-a-style"), "monokai")
        self.assertEqual(normalize_style("default"), "default")
