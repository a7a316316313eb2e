"""Filesystem-backed supplier of addresses, loaders and bulk metadata."""

from __future__ import annotations

import functools
import logging
from dataclasses import dataclass, field
from pathlib import Path

from .config import VellumConfig
from .content_model.paths import CONTENT_ALIAS, IMAGE_EXTENSIONS, extension_of
from .content_model.types import Loader, Metadata
from .errors import ConfigurationMissing
from .frontmatter.extract import extract_directory_metadata
from .watch import scan_content_stats

logger = logging.getLogger(__name__)

_TEXT_IMAGE_EXTENSIONS = frozenset({".svg"})


@dataclass(frozen=True)
class ContentSnapshot:
    """Everything one rebuild needs from the content root."""

    addresses: tuple[str, ...]
    loaders: dict[str, Loader] = field(default_factory=dict)
    sizes: dict[str, int] = field(default_factory=dict)
    metadata: dict[str, Metadata] = field(default_factory=dict)


def address_for(relative_path: str) -> str:
    return f"{CONTENT_ALIAS}/{relative_path}"


def _read_text(path: Path) -> str:
    return path.read_text(encoding="utf-8", errors="replace")


def _read_bytes(path: Path) -> bytes:
    return path.read_bytes()


def make_loader(path: Path) -> Loader:
    """Lazy loader for one file: text for sources, bytes for raster images."""
    ext = extension_of(path.name)
    if ext in IMAGE_EXTENSIONS and ext not in _TEXT_IMAGE_EXTENSIONS:
        return functools.partial(_read_bytes, path)
    return functools.partial(_read_text, path)


class FilesystemContentSource:
    """Scan a content root into alias-form addresses.

    Raises ``ConfigurationMissing`` at construction when the root does not
    exist or is not a directory.
    """

    def __init__(self, root: Path, config: VellumConfig | None = None) -> None:
        root = Path(root).expanduser()
        if not root.exists():
            raise ConfigurationMissing(root, "content root does not exist")
        if not root.is_dir():
            raise ConfigurationMissing(root, "content root is not a directory")
        self.root = root.resolve()
        self.config = config if config is not None else VellumConfig()

    @property
    def marker_path(self) -> Path:
        return self.root / self.config.marker

    def marker_present(self) -> bool:
        return self.marker_path.exists()

    def scan_stats(self) -> dict[str, tuple[int, int, int]]:
        """Stat snapshot including the root-level marker file."""
        return scan_content_stats(
            self.root,
            ignore=self.config.ignore,
            extra_names=(self.config.marker,),
        )

    def scan(self) -> ContentSnapshot:
        """Enumerate content files and pre-extract their frontmatter.

        Errors reading the root itself propagate; per-file problems only cost
        that file its metadata.
        """
        stats = scan_content_stats(self.root, ignore=self.config.ignore)
        relative_paths = sorted(stats)
        loaders: dict[str, Loader] = {}
        sizes: dict[str, int] = {}
        for rel in relative_paths:
            loaders[address_for(rel)] = make_loader(self.root / rel)
            sizes[rel] = stats[rel][1]

        metadata = extract_directory_metadata(self.root, relative_paths, key_for=address_for)
        logger.debug("scanned %d content file(s) under %s", len(relative_paths), self.root)
        return ContentSnapshot(
            addresses=tuple(loaders),
            loaders=loaders,
            sizes=sizes,
            metadata=metadata,
        )


class StaticContentSource:
    """In-memory source for an address list supplied by a bundler or a test."""

    def __init__(
        self,
        loaders: dict[str, Loader],
        metadata: dict[str, Metadata] | None = None,
        config: VellumConfig | None = None,
    ) -> None:
        self.loaders = dict(loaders)
        self.metadata = dict(metadata or {})
        self.config = config if config is not None else VellumConfig()

    def replace(self, loaders: dict[str, Loader], metadata: dict[str, Metadata] | None = None) -> None:
        self.loaders = dict(loaders)
        self.metadata = dict(metadata or {})

    def marker_present(self) -> bool:
        return False

    def scan(self) -> ContentSnapshot:
        return ContentSnapshot(
            addresses=tuple(self.loaders),
            loaders=dict(self.loaders),
            metadata=dict(self.metadata),
        )


__all__ = [
    "ContentSnapshot",
    "address_for",
    "make_loader",
    "FilesystemContentSource",
    "StaticContentSource",
]
