"""Poll-based change detection for a content root.

A stat snapshot of every content file is hashed into a cheap signature;
when the signature moves, the snapshot is diffed against the previous one
to produce per-path change events.
"""

from __future__ import annotations

import hashlib
import os
from collections.abc import Collection, Iterable, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from .content_model.build import is_ignored_path
from .content_model.paths import CONTENT_EXTENSIONS, extension_of

ChangeKind = Literal["added", "removed", "modified"]
StatSignature = tuple[int, int, int]


@dataclass(frozen=True)
class ContentChange:
    """One file-level change between two snapshots."""

    path: str
    change: ChangeKind


def _update_digest(digest, token: str) -> None:
    """Append a token plus separator byte to a hash digest."""
    digest.update(token.encode("utf-8", errors="surrogateescape"))
    digest.update(b"\0")


def scan_content_stats(
    root: Path,
    *,
    extensions: Collection[str] = CONTENT_EXTENSIONS,
    ignore: Iterable[str] = (),
    extra_names: Collection[str] = (),
) -> dict[str, StatSignature]:
    """Stat every visible content file under ``root``.

    Keys are content-relative paths. ``extra_names`` are root-level file names
    tracked regardless of extension or dot prefix (the rebuild marker).
    Unreadable subdirectories are skipped; an unreadable root raises ``OSError``.
    """
    ignore_patterns = tuple(ignore)
    stats: dict[str, StatSignature] = {}

    for name in extra_names:
        try:
            st = (root / name).stat()
        except OSError:
            continue
        stats[name] = (st.st_mtime_ns, st.st_size, st.st_mode)

    pending: list[tuple[Path, str]] = [(root, "")]
    while pending:
        directory, prefix = pending.pop()
        try:
            with os.scandir(directory) as entries:
                children = list(entries)
        except OSError:
            if not prefix:
                raise
            continue

        for child in children:
            name = child.name
            if name.startswith("."):
                continue
            rel = f"{prefix}{name}"
            if ignore_patterns and is_ignored_path(rel, ignore_patterns):
                continue
            try:
                is_dir = child.is_dir(follow_symlinks=False)
            except OSError:
                is_dir = False
            if is_dir:
                pending.append((Path(child.path), f"{rel}/"))
                continue
            if extension_of(name) not in extensions:
                continue
            try:
                st = child.stat()
            except OSError:
                continue
            stats[rel] = (st.st_mtime_ns, st.st_size, st.st_mode)
    return stats


def build_content_watch_signature(stats: Mapping[str, StatSignature]) -> str:
    """Digest over a stat snapshot; equal snapshots give equal signatures."""
    digest = hashlib.blake2b(digest_size=20)
    for rel in sorted(stats):
        mtime_ns, size, mode = stats[rel]
        _update_digest(digest, f"file:{rel}:{mtime_ns}:{size}:{mode}")
    return digest.hexdigest()


def diff_content_stats(
    previous: Mapping[str, StatSignature],
    current: Mapping[str, StatSignature],
) -> list[ContentChange]:
    """Per-path events turning ``previous`` into ``current``, sorted by path."""
    changes: list[ContentChange] = []
    for rel in sorted(set(previous) | set(current)):
        before = previous.get(rel)
        after = current.get(rel)
        if before is None:
            changes.append(ContentChange(rel, "added"))
        elif after is None:
            changes.append(ContentChange(rel, "removed"))
        elif before != after:
            changes.append(ContentChange(rel, "modified"))
    return changes


__all__ = [
    "ChangeKind",
    "StatSignature",
    "ContentChange",
    "scan_content_stats",
    "build_content_watch_signature",
    "diff_content_stats",
]
