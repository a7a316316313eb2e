"""Directory listings: which entries are posts, their titles and their order.

Ordering policy, used by every listing:

1. names with a numeric ``NN-`` prefix first, ascending by number;
2. with ``sort="date"``, dated posts before undated ones, newest first;
3. display title, case-insensitively;
4. content path, as the final deterministic tie-break.
"""

from __future__ import annotations

import datetime as _dt
import re
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Literal

from .locator import README_VARIANTS, SLIDES_STEM, SLIDES_SUFFIX
from .paths import DOCUMENT_EXTENSIONS
from .types import DirectoryEntry, FileEntry, Metadata

SortOrder = Literal["alpha", "date"]
SORT_ORDERS = ("alpha", "date")

_NUMERIC_PREFIX_RE = re.compile(r"^(\d+)-")
_EPOCH = _dt.datetime(1970, 1, 1)
_SLIDES_VARIANTS = (SLIDES_STEM, "Slides", "slides")


def _doc_stem(name: str) -> str | None:
    """File name without its document extension, or ``None`` for non-documents."""
    for ext in DOCUMENT_EXTENSIONS:
        if name.endswith(ext):
            return name[: -len(ext)]
    return None


def _first_named(directory: DirectoryEntry, names: Iterable[str]) -> FileEntry | None:
    for name in names:
        found = directory.child_file(name)
        if found is not None:
            return found
    return None


def find_readme(directory: DirectoryEntry) -> FileEntry | None:
    return _first_named(
        directory,
        (f"{variant}{ext}" for ext in DOCUMENT_EXTENSIONS for variant in README_VARIANTS),
    )


def find_index(directory: DirectoryEntry) -> FileEntry | None:
    """Index document of a folder: ``index.*`` first, then README variants."""
    found = _first_named(directory, (f"index{ext}" for ext in DOCUMENT_EXTENSIONS))
    return found if found is not None else find_readme(directory)


def find_slides(directory: DirectoryEntry) -> FileEntry | None:
    found = _first_named(
        directory,
        (f"{variant}{ext}" for ext in DOCUMENT_EXTENSIONS for variant in _SLIDES_VARIANTS),
    )
    if found is not None:
        return found
    return _first_named(directory, (f"index{SLIDES_SUFFIX}{ext}" for ext in DOCUMENT_EXTENSIONS))


def is_slides_name(name: str) -> bool:
    stem = _doc_stem(name)
    if stem is None:
        return False
    return stem in _SLIDES_VARIANTS or stem.endswith(SLIDES_SUFFIX)


def is_index_name(name: str) -> bool:
    stem = _doc_stem(name)
    return stem is not None and (stem == "index" or stem in README_VARIANTS)


def standalone_documents(directory: DirectoryEntry) -> list[FileEntry]:
    """Document files that are neither folder indexes nor slides."""
    return [
        entry
        for entry in directory.children
        if isinstance(entry, FileEntry)
        and _doc_stem(entry.name) is not None
        and not is_index_name(entry.name)
        and not is_slides_name(entry.name)
    ]


def standalone_slides(directory: DirectoryEntry) -> list[FileEntry]:
    """``*.slides.*`` files other than ``index.slides.*``."""
    out: list[FileEntry] = []
    for entry in directory.children:
        if not isinstance(entry, FileEntry):
            continue
        stem = _doc_stem(entry.name)
        if stem is None or not stem.endswith(SLIDES_SUFFIX):
            continue
        if stem == f"index{SLIDES_SUFFIX}":
            continue
        out.append(entry)
    return out


@dataclass(frozen=True)
class PostEntry:
    """One row of a directory listing."""

    kind: Literal["folder", "file"]
    name: str
    path: str
    readme: FileEntry | None = None
    slides: FileEntry | None = None
    file: FileEntry | None = None

    @property
    def metadata(self) -> Metadata | None:
        for entry in (self.readme, self.file, self.slides):
            if entry is not None and entry.metadata is not None:
                return entry.metadata
        return None

    @property
    def link_path(self) -> str:
        """Content path a listing links to."""
        if self.file is not None:
            return self.file.path
        if self.slides is not None and self.readme is None:
            return self.slides.path
        if self.readme is not None:
            return self.readme.path
        return self.path


def directory_to_posts(directory: DirectoryEntry) -> list[PostEntry]:
    folders = [entry for entry in directory.children if isinstance(entry, DirectoryEntry)]
    posts: list[PostEntry] = []
    for folder in folders:
        readme = find_index(folder)
        slides = find_slides(folder)
        if readme is None and slides is None:
            continue
        posts.append(PostEntry("folder", folder.name, folder.path, readme=readme, slides=slides))

    for entry in standalone_documents(directory):
        posts.append(PostEntry("file", _doc_stem(entry.name) or entry.name, entry.path, file=entry))

    for entry in standalone_slides(directory):
        stem = _doc_stem(entry.name) or entry.name
        posts.append(PostEntry("file", stem[: -len(SLIDES_SUFFIX)], entry.path, slides=entry))
    return posts


def filter_visible_posts(posts: Iterable[PostEntry]) -> list[PostEntry]:
    visible: list[PostEntry] = []
    for post in posts:
        metadata = post.metadata
        if metadata is not None and (metadata.visibility == "hidden" or metadata.draft is True):
            continue
        visible.append(post)
    return visible


def humanize_name(name: str) -> str:
    """``01-getting-started`` -> ``Getting Started``."""
    stripped = _NUMERIC_PREFIX_RE.sub("", name, count=1).replace("-", " ").replace("_", " ")
    return " ".join(word[:1].upper() + word[1:] for word in stripped.split())


def fallback_title(entry: FileEntry | DirectoryEntry | PostEntry) -> str:
    """Filename-derived title used when metadata has none."""
    name = entry.name
    if isinstance(entry, FileEntry):
        stem = _doc_stem(name)
        if stem is None:
            stem = name.rsplit(".", 1)[0] if "." in name[1:] else name
        if stem.endswith(SLIDES_SUFFIX):
            stem = stem[: -len(SLIDES_SUFFIX)]
        if stem in ("index",) + README_VARIANTS + _SLIDES_VARIANTS or not stem:
            parent = entry.path.rsplit("/", 2)
            stem = parent[-2] if len(parent) >= 2 else stem
        name = stem
    return humanize_name(name) or entry.name


def display_title(entry: FileEntry | DirectoryEntry | PostEntry) -> str:
    metadata = entry.metadata if isinstance(entry, (FileEntry, PostEntry)) else None
    if metadata is not None and metadata.title:
        return metadata.title
    return fallback_title(entry)


def numeric_prefix(name: str) -> int | None:
    match = _NUMERIC_PREFIX_RE.match(name)
    return int(match.group(1)) if match else None


def parse_date(value: str | None) -> _dt.datetime | None:
    """Parse an ISO date or datetime; naive UTC for comparison. ``None`` if unparsable."""
    if not value:
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = _dt.datetime.fromisoformat(text)
    except ValueError:
        try:
            day = _dt.date.fromisoformat(text[:10])
        except ValueError:
            return None
        parsed = _dt.datetime(day.year, day.month, day.day)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(_dt.timezone.utc).replace(tzinfo=None)
    return parsed


def post_sort_key(post: PostEntry, sort: SortOrder = "alpha") -> tuple:
    order = numeric_prefix(post.name)
    prefix_key = (0, order) if order is not None else (1, 0)
    if sort == "date":
        parsed = parse_date(post.metadata.date if post.metadata is not None else None)
        # Newest first.
        date_key = (0, -(parsed - _EPOCH).total_seconds()) if parsed is not None else (1, 0.0)
    else:
        date_key = (0, 0.0)
    return (prefix_key, date_key, display_title(post).casefold(), post.path)


def sort_posts(posts: Iterable[PostEntry], sort: SortOrder = "alpha") -> list[PostEntry]:
    if sort not in SORT_ORDERS:
        raise ValueError(f"unknown sort order: {sort!r}")
    return sorted(posts, key=lambda post: post_sort_key(post, sort))


def list_posts(directory: DirectoryEntry, sort: SortOrder = "alpha") -> list[PostEntry]:
    """Visible posts of ``directory`` in listing order."""
    return sort_posts(filter_visible_posts(directory_to_posts(directory)), sort)


__all__ = [
    "SortOrder",
    "SORT_ORDERS",
    "PostEntry",
    "find_readme",
    "find_index",
    "find_slides",
    "is_slides_name",
    "is_index_name",
    "standalone_documents",
    "standalone_slides",
    "directory_to_posts",
    "filter_visible_posts",
    "humanize_name",
    "fallback_title",
    "display_title",
    "numeric_prefix",
    "parse_date",
    "post_sort_key",
    "sort_posts",
    "list_posts",
]
