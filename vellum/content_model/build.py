"""Content-tree construction from a flat snapshot of addresses."""

from __future__ import annotations

import fnmatch
import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from .paths import CONTENT_ALIAS, ROOT_PATH, PathNormalizer
from .types import DirectoryEntry, FileEntry, Metadata

logger = logging.getLogger(__name__)


def is_hidden_path(relative_path: str) -> bool:
    """Whether any segment of a content-relative path is dot-prefixed."""
    return any(segment.startswith(".") for segment in relative_path.split("/") if segment)


def is_ignored_path(relative_path: str, ignore: Iterable[str]) -> bool:
    """Match ignore globs against the whole relative path and each segment."""
    segments = relative_path.split("/")
    for pattern in ignore:
        if fnmatch.fnmatchcase(relative_path, pattern):
            return True
        if any(fnmatch.fnmatchcase(segment, pattern) for segment in segments):
            return True
    return False


def lookup_metadata(
    metadata_by_path: Mapping[str, object] | None,
    key: str,
    relative_path: str,
) -> Metadata | None:
    """Find metadata for ``key``: exact key, then alias form, then without a leading slash."""
    if not metadata_by_path:
        return None
    candidates = (key, f"{CONTENT_ALIAS}/{relative_path}", key[1:] if key.startswith("/") else None)
    for candidate in candidates:
        if candidate is None:
            continue
        found = metadata_by_path.get(candidate)
        if found is None:
            continue
        if isinstance(found, Metadata):
            return found
        if isinstance(found, Mapping):
            return Metadata.from_mapping(found)
    return None


@dataclass
class _DirectoryNode:
    name: str
    path: str
    children: dict[str, "_DirectoryNode | FileEntry"] = field(default_factory=dict)

    def freeze(self) -> DirectoryEntry:
        frozen = tuple(
            child.freeze() if isinstance(child, _DirectoryNode) else child
            for child in self.children.values()
        )
        return DirectoryEntry(name=self.name, path=self.path, children=frozen)


def build_content_tree(
    paths: Iterable[str],
    metadata_by_path: Mapping[str, object] | None = None,
    *,
    common_root: str | None = None,
    ignore: Iterable[str] = (),
    size_by_path: Mapping[str, int] | None = None,
) -> DirectoryEntry:
    """Build the immutable directory tree for one generation.

    ``common_root`` is inferred from the keys when not given. Hidden and
    ignored paths are skipped, and so is any path that cannot be normalized.
    Names are unique per directory; the first insertion wins, including when
    a file and a folder would share a name.
    """
    keys = list(paths)
    normalizer = PathNormalizer(common_root) if common_root is not None else PathNormalizer.for_keys(keys)
    ignore_patterns = tuple(ignore)
    root = _DirectoryNode(name=ROOT_PATH, path=ROOT_PATH)

    for key in keys:
        relative_path = normalizer.normalize(key)
        if relative_path is None:
            logger.debug("skipping unmappable address %r", key)
            continue
        if is_hidden_path(relative_path):
            continue
        if ignore_patterns and is_ignored_path(relative_path, ignore_patterns):
            continue

        parts = relative_path.split("/")
        current = root
        blocked = False
        for idx, dir_name in enumerate(parts[:-1]):
            existing = current.children.get(dir_name)
            if existing is None:
                existing = _DirectoryNode(name=dir_name, path="/".join(parts[: idx + 1]))
                current.children[dir_name] = existing
            elif not isinstance(existing, _DirectoryNode):
                blocked = True
                break
            current = existing
        if blocked:
            logger.debug("skipping %r: a file already holds a parent segment name", key)
            continue

        filename = parts[-1]
        if filename in current.children:
            continue

        size = 0
        if size_by_path is not None:
            size = int(size_by_path.get(relative_path, 0) or 0)
        current.children[filename] = FileEntry(
            name=filename,
            path=relative_path,
            size=size,
            metadata=lookup_metadata(metadata_by_path, key, relative_path),
        )

    return root.freeze()


__all__ = [
    "is_hidden_path",
    "is_ignored_path",
    "lookup_metadata",
    "build_content_tree",
]
