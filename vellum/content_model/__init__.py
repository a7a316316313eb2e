"""Domain model for content trees and convention-driven lookup.

This package contains the pure, I/O-free core:
- entry datatypes, metadata records and resolution results
- address normalization shared by tree building and lookup
- tree construction, navigation and convention locating
- listing classification and ordering
"""

from __future__ import annotations

from .types import (
    ContentEntry,
    DirectoryEntry,
    FileEntry,
    Loader,
    Metadata,
    NavigationResult,
    PathNotFound,
    Resolution,
)
from .paths import PathNormalizer, infer_common_root, normalize, normalize_request_path
from .build import build_content_tree
from .navigation import navigate
from .locator import AddressIndex, convention_candidates, locate
from .classification import PostEntry, display_title, list_posts, sort_posts

__all__ = [
    "ContentEntry",
    "DirectoryEntry",
    "FileEntry",
    "Loader",
    "Metadata",
    "NavigationResult",
    "PathNotFound",
    "Resolution",
    "PathNormalizer",
    "infer_common_root",
    "normalize",
    "normalize_request_path",
    "build_content_tree",
    "navigate",
    "AddressIndex",
    "convention_candidates",
    "locate",
    "PostEntry",
    "display_title",
    "list_posts",
    "sort_posts",
]
