"""Per-file frontmatter extraction with a small metadata cache."""

from __future__ import annotations

import logging
import threading
from collections import OrderedDict
from collections.abc import Callable, Iterable
from pathlib import Path
from typing import Literal

from ..content_model.paths import CONTENT_ALIAS, DOCUMENT_EXTENSIONS, SCRIPT_EXTENSIONS, extension_of
from ..content_model.types import Metadata
from ..errors import ExtractionSkipped
from .markup import HeaderParseError, parse_header
from .script import extract_script_frontmatter

logger = logging.getLogger(__name__)

SourceKind = Literal["markup", "script"]

METADATA_MAX_FILE_BYTES = 2 * 1024 * 1024
METADATA_CACHE_MAX = 4_096

_METADATA_CACHE: OrderedDict[tuple[str, int, int], Metadata] = OrderedDict()
_METADATA_CACHE_LOCK = threading.RLock()


def kind_for_path(path: str | Path) -> SourceKind | None:
    """Frontmatter syntax used by a file, or ``None`` when it carries none."""
    ext = extension_of(str(path))
    if ext in DOCUMENT_EXTENSIONS:
        return "markup"
    if ext in SCRIPT_EXTENSIONS:
        return "script"
    return None


def parse_frontmatter(contents: str, kind: SourceKind) -> dict[str, object]:
    """Raw frontmatter mapping; raises ``HeaderParseError`` on a broken header."""
    if kind == "markup":
        return parse_header(contents)
    if kind == "script":
        return extract_script_frontmatter(contents)
    raise ValueError(f"unknown frontmatter kind: {kind!r}")


def extract_metadata(contents: str, kind: SourceKind) -> Metadata:
    """Metadata declared by ``contents``.

    Never raises for malformed input: an absent, unreadable or broken header
    gives empty metadata.
    """
    try:
        raw = parse_frontmatter(contents, kind)
    except HeaderParseError as exc:
        logger.debug("malformed %s frontmatter: %s", kind, exc)
        return Metadata()
    return Metadata.from_mapping(raw)


def read_file_metadata(path: Path, kind: SourceKind | None = None) -> Metadata:
    """Extract metadata from one file on disk.

    Raises ``ExtractionSkipped`` when the file cannot be read or decoded, or
    its header is malformed.
    """
    kind = kind if kind is not None else kind_for_path(path)
    if kind is None:
        return Metadata()
    try:
        size = path.stat().st_size
        if size > METADATA_MAX_FILE_BYTES:
            raise ExtractionSkipped(path, f"file larger than {METADATA_MAX_FILE_BYTES} bytes")
        contents = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ExtractionSkipped(path, f"unreadable: {exc}") from exc
    except UnicodeDecodeError as exc:
        raise ExtractionSkipped(path, "not valid UTF-8") from exc

    try:
        raw = parse_frontmatter(contents, kind)
    except HeaderParseError as exc:
        raise ExtractionSkipped(path, f"malformed header: {exc}") from exc
    return Metadata.from_mapping(raw)


def _metadata_cache_key(path: Path) -> tuple[str, int, int] | None:
    """Build cache key from resolved path, mtime, and size."""
    try:
        resolved = path.resolve()
        stat = resolved.stat()
    except OSError:
        return None
    return str(resolved), int(stat.st_mtime_ns), int(stat.st_size)


def cached_file_metadata(path: Path, kind: SourceKind | None = None) -> Metadata:
    """Return cached metadata for ``path`` when its stat signature is unchanged."""
    cache_key = _metadata_cache_key(path)
    if cache_key is not None:
        with _METADATA_CACHE_LOCK:
            cached = _METADATA_CACHE.get(cache_key)
            if cached is not None:
                _METADATA_CACHE.move_to_end(cache_key)
                return cached

    metadata = read_file_metadata(path, kind)

    if cache_key is not None:
        with _METADATA_CACHE_LOCK:
            _METADATA_CACHE[cache_key] = metadata
            _METADATA_CACHE.move_to_end(cache_key)
            while len(_METADATA_CACHE) > METADATA_CACHE_MAX:
                _METADATA_CACHE.popitem(last=False)

    return metadata


def clear_metadata_cache() -> None:
    """Clear in-memory per-file metadata cache."""
    with _METADATA_CACHE_LOCK:
        _METADATA_CACHE.clear()


def _alias_key(relative_path: str) -> str:
    return f"{CONTENT_ALIAS}/{relative_path}"


def extract_directory_metadata(
    root: Path,
    relative_paths: Iterable[str],
    key_for: Callable[[str], str] = _alias_key,
    reader: Callable[[Path], Metadata] = cached_file_metadata,
) -> dict[str, Metadata]:
    """Metadata for every frontmatter-bearing file under ``root``.

    A file that fails extraction is logged and kept with empty metadata; one
    bad file never aborts the batch.
    """
    out: dict[str, Metadata] = {}
    skipped = 0
    for relative_path in relative_paths:
        if kind_for_path(relative_path) is None:
            continue
        try:
            metadata = reader(root / relative_path)
        except ExtractionSkipped as exc:
            logger.warning("%s", exc)
            skipped += 1
            metadata = Metadata()
        out[key_for(relative_path)] = metadata
    if skipped:
        logger.info("frontmatter skipped for %d file(s)", skipped)
    return out


__all__ = [
    "SourceKind",
    "METADATA_MAX_FILE_BYTES",
    "kind_for_path",
    "parse_frontmatter",
    "extract_metadata",
    "read_file_metadata",
    "cached_file_metadata",
    "clear_metadata_cache",
    "extract_directory_metadata",
]
