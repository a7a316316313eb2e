"""Sanitization and syntax highlighting for terminal output.

Neutralizes terminal control bytes before anything is printed.
"""

from __future__ import annotations

import re
from pathlib import Path

from pygments import highlight as pygments_highlight
from pygments.formatters import TerminalFormatter
from pygments.lexers import TextLexer, get_lexer_by_name, get_lexer_for_filename
from pygments.styles import get_style_by_name
from pygments.util import ClassNotFound

DEFAULT_STYLE = "monokai"

_CONTROL_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f-\x9f]")
# Extensions Pygments does not map by file name.
_LEXER_ALIASES = {".mdx": "markdown"}
_FORMATTERS: dict[str, TerminalFormatter] = {}
_VALID_STYLES: set[str] = set()
_INVALID_STYLES: set[str] = set()


def sanitize_terminal_text(source: str) -> str:
    """Escape terminal control bytes to avoid side effects (bell, cursor moves, etc.)."""
    if _CONTROL_RE.search(source) is None:
        return source

    out: list[str] = []
    for ch in source:
        code = ord(ch)
        if ch in {"\n", "\r", "\t"}:
            out.append(ch)
            continue
        # C0 controls + DEL + C1 controls.
        if code < 32 or code == 127 or 0x80 <= code <= 0x9F:
            out.append(f"\\x{code:02x}")
            continue
        out.append(ch)
    return "".join(out)


def normalize_style(style: str) -> str:
    if style in _VALID_STYLES:
        return style
    if style in _INVALID_STYLES:
        return DEFAULT_STYLE

    try:
        get_style_by_name(style)
    except ClassNotFound:
        _INVALID_STYLES.add(style)
        return DEFAULT_STYLE
    _VALID_STYLES.add(style)
    return style


def _formatter_for_style(style: str) -> TerminalFormatter:
    formatter = _FORMATTERS.get(style)
    if formatter is not None:
        return formatter
    formatter = TerminalFormatter(style=style)
    _FORMATTERS[style] = formatter
    return formatter


def lexer_for_path(path: Path, source: str = ""):
    alias = _LEXER_ALIASES.get(path.suffix.lower())
    if alias is not None:
        return get_lexer_by_name(alias)
    try:
        return get_lexer_for_filename(path.name, source)
    except ClassNotFound:
        return TextLexer()


def colorize_source(source: str, path: Path, style: str = DEFAULT_STYLE) -> str:
    """Sanitized ``source`` with ANSI highlighting chosen by file name."""
    safe = sanitize_terminal_text(source)
    formatter = _formatter_for_style(normalize_style(style))
    return pygments_highlight(safe, lexer_for_path(path, safe), formatter)


__all__ = [
    "DEFAULT_STYLE",
    "sanitize_terminal_text",
    "normalize_style",
    "lexer_for_path",
    "colorize_source",
]
