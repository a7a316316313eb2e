"""Domain datatypes for the content tree and resolution results."""

from __future__ import annotations

import datetime as _dt
from collections.abc import Callable, Mapping
from dataclasses import dataclass, fields
from typing import Any

Loader = Callable[[], Any]

METADATA_FIELDS = ("title", "description", "link", "date", "draft", "visibility")
_TEXT_FIELDS = frozenset({"title", "description", "link", "visibility"})


def _coerce_text(value: object) -> str | None:
    """Accept strings and plain numbers; drop everything else."""
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)):
        return str(value)
    return None


def _coerce_date(value: object) -> str | None:
    """Serialize native dates to ISO-8601; pass strings through."""
    if isinstance(value, _dt.datetime):
        return value.isoformat()
    if isinstance(value, _dt.date):
        return value.isoformat()
    if isinstance(value, str):
        return value
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return None


@dataclass(frozen=True)
class Metadata:
    """Frontmatter record attached to a file entry.

    Only the recognised fields survive extraction and every value is a
    primitive; nested objects never reach the tree.
    """

    title: str | None = None
    description: str | None = None
    link: str | None = None
    date: str | None = None
    draft: bool | None = None
    visibility: str | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, object] | None) -> Metadata:
        """Build metadata from a parsed mapping, dropping unknown or nested values."""
        if not data:
            return cls()
        values: dict[str, Any] = {}
        for key in METADATA_FIELDS:
            if key not in data:
                continue
            raw = data[key]
            if key in _TEXT_FIELDS:
                coerced: object = _coerce_text(raw)
            elif key == "date":
                coerced = _coerce_date(raw)
            else:
                coerced = raw if isinstance(raw, bool) else None
            if coerced is not None:
                values[key] = coerced
        return cls(**values)

    def is_empty(self) -> bool:
        return all(getattr(self, item.name) is None for item in fields(self))

    def to_dict(self) -> dict[str, object]:
        """Return set fields only, in declaration order."""
        out: dict[str, object] = {}
        for item in fields(self):
            value = getattr(self, item.name)
            if value is not None:
                out[item.name] = value
        return out


@dataclass(frozen=True)
class FileEntry:
    """Leaf entry for one content file."""

    name: str
    path: str
    size: int = 0
    metadata: Metadata | None = None


@dataclass(frozen=True)
class DirectoryEntry:
    """Directory entry; ``children`` keeps build insertion order."""

    name: str
    path: str
    children: tuple["ContentEntry", ...] = ()

    def child(self, name: str) -> ContentEntry | None:
        for entry in self.children:
            if entry.name == name:
                return entry
        return None

    def child_directory(self, name: str) -> DirectoryEntry | None:
        for entry in self.children:
            if isinstance(entry, DirectoryEntry) and entry.name == name:
                return entry
        return None

    def child_file(self, name: str) -> FileEntry | None:
        for entry in self.children:
            if isinstance(entry, FileEntry) and entry.name == name:
                return entry
        return None

    def iter_files(self):
        """Yield every file in the subtree, depth-first in child order."""
        for entry in self.children:
            if isinstance(entry, DirectoryEntry):
                yield from entry.iter_files()
            else:
                yield entry


ContentEntry = DirectoryEntry | FileEntry


@dataclass(frozen=True)
class Resolution:
    """Successful navigation: the directory reached and the file, if any."""

    directory: DirectoryEntry
    file: FileEntry | None = None


@dataclass(frozen=True)
class PathNotFound:
    """Navigation miss; an expected outcome rather than an exception."""

    path: str
    missing_segment: str

    @property
    def message(self) -> str:
        return f"Path not found: {self.path}"


NavigationResult = Resolution | PathNotFound


__all__ = [
    "Loader",
    "METADATA_FIELDS",
    "Metadata",
    "FileEntry",
    "DirectoryEntry",
    "ContentEntry",
    "Resolution",
    "PathNotFound",
    "NavigationResult",
]
