"""Leading ``---`` header blocks of markup documents."""

from __future__ import annotations

import yaml

HEADER_FENCE = "---"


class HeaderParseError(ValueError):
    """The header block exists but is not valid YAML."""


def split_header(text: str) -> tuple[str | None, str]:
    """Split ``text`` into ``(header, body)``.

    ``header`` is ``None`` when the document does not open with a fence line or
    the block is never closed; the body is then the whole text.
    """
    if text.startswith("\ufeff"):
        text = text[1:]
    lines = text.splitlines(keepends=True)
    if not lines or lines[0].strip() != HEADER_FENCE:
        return None, text

    for idx in range(1, len(lines)):
        if lines[idx].strip() == HEADER_FENCE:
            return "".join(lines[1:idx]), "".join(lines[idx + 1 :])
    return None, text


def parse_header(text: str) -> dict[str, object]:
    """Mapping held by the document's header block, ``{}`` when there is none.

    Raises ``HeaderParseError`` when the block is malformed.
    """
    header, _body = split_header(text)
    if header is None or not header.strip():
        return {}
    try:
        loaded = yaml.safe_load(header)
    except (yaml.YAMLError, ValueError, TypeError) as exc:
        # Out-of-range timestamps raise plain ValueError from the constructor.
        raise HeaderParseError(str(exc)) from exc
    if not isinstance(loaded, dict):
        return {}
    return {str(key): value for key, value in loaded.items()}


__all__ = ["HEADER_FENCE", "HeaderParseError", "split_header", "parse_header"]
