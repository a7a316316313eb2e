"""Exception taxonomy for content resolution.

Navigation misses are not exceptions: see ``content_model.types.PathNotFound``.
"""

from __future__ import annotations


class VellumError(Exception):
    """Base class for engine errors."""


class ConfigurationMissing(VellumError):
    """Raised once at startup when no usable content root exists."""

    def __init__(self, root: object, reason: str) -> None:
        super().__init__(f"{reason}: {root}")
        self.root = root
        self.reason = reason


class ExtractionSkipped(VellumError):
    """One file's frontmatter could not be read or parsed.

    Batch extraction catches this, logs it and keeps the file with empty
    metadata.
    """

    def __init__(self, path: object, reason: str) -> None:
        super().__init__(f"frontmatter skipped for {path}: {reason}")
        self.path = path
        self.reason = reason


__all__ = [
    "VellumError",
    "ConfigurationMissing",
    "ExtractionSkipped",
]
