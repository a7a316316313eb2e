"""Resolve logical request paths against a built content tree."""

from __future__ import annotations

from .paths import ROOT_PATH
from .types import DirectoryEntry, NavigationResult, PathNotFound, Resolution


def split_request_path(path: str) -> list[str]:
    """Split a request path into segments; ``"."`` and ``""`` mean the root."""
    if path in (ROOT_PATH, ""):
        return []
    return [segment for segment in path.split("/") if segment]


def navigate(root: DirectoryEntry, path: str) -> NavigationResult:
    """Walk ``path`` from ``root``; all-or-nothing.

    The last segment prefers a file of that exact name over a directory. Any
    missing segment yields ``PathNotFound`` instead of a partial result.
    """
    parts = split_request_path(path)
    current = root

    for idx, part in enumerate(parts):
        if idx == len(parts) - 1:
            matched_file = current.child_file(part)
            if matched_file is not None:
                return Resolution(directory=current, file=matched_file)

        next_directory = current.child_directory(part)
        if next_directory is None:
            return PathNotFound(path=path, missing_segment=part)
        current = next_directory

    return Resolution(directory=current, file=None)


__all__ = ["split_request_path", "navigate"]
