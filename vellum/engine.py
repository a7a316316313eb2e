"""Resolution API over swap-on-rebuild content generations.

A ``Generation`` is built completely off to the side and only then
published by replacing one reference under a lock. Readers grab the
current reference once per call, so a rebuild in progress never blocks them
and never shows them a half-built tree.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol

from .config import VellumConfig
from .content_model.build import build_content_tree
from .content_model.classification import PostEntry, list_posts
from .content_model.locator import AddressIndex
from .content_model.navigation import navigate
from .content_model.paths import PathNormalizer, strip_query
from .content_model.types import DirectoryEntry, Loader, Metadata, NavigationResult, PathNotFound
from .frontmatter.extract import SourceKind, extract_metadata, kind_for_path
from .source import ContentSnapshot

logger = logging.getLogger(__name__)

Listener = Callable[[], None]


class ContentSource(Protocol):
    config: VellumConfig

    def scan(self) -> ContentSnapshot: ...

    def marker_present(self) -> bool: ...


@dataclass(frozen=True)
class Generation:
    """One immutable snapshot of the tree and its address map."""

    number: int
    tree: DirectoryEntry
    address_map: Mapping[str, Loader]
    index: AddressIndex
    metadata: Mapping[str, Metadata] = field(default_factory=dict)
    built_at: float = 0.0


@dataclass(frozen=True)
class FetchResult:
    path: str
    address: str
    contents: Any
    metadata: Metadata
    generation: int


def _empty_generation() -> Generation:
    return Generation(
        number=0,
        tree=DirectoryEntry(name=".", path="."),
        address_map={},
        index=AddressIndex({}),
    )


class ContentEngine:
    def __init__(self, source: ContentSource, config: VellumConfig | None = None) -> None:
        self._source = source
        self.config = config if config is not None else source.config
        self._generation_lock = threading.Lock()
        self._generation = _empty_generation()
        self._listeners: list[Listener] = []
        self._listeners_lock = threading.Lock()
        self._fetch_lock = threading.Lock()
        self._fetch_counter = 0
        self._fetch_sequence: dict[str, int] = {}
        self._fetched_metadata: dict[str, Metadata] = {}

    @property
    def source(self) -> ContentSource:
        return self._source

    @property
    def generation(self) -> Generation:
        with self._generation_lock:
            return self._generation

    def rebuild(self) -> Generation:
        """Scan the source, build a new generation and publish it.

        I/O errors from the source propagate and leave the current generation
        in place.
        """
        snapshot = self._source.scan()
        normalizer = PathNormalizer.for_keys(snapshot.addresses)
        tree = build_content_tree(
            snapshot.addresses,
            snapshot.metadata,
            common_root=normalizer.common_root,
            ignore=self.config.ignore,
            size_by_path=snapshot.sizes,
        )
        index = AddressIndex(snapshot.loaders, normalizer)

        with self._generation_lock:
            generation = Generation(
                number=self._generation.number + 1,
                tree=tree,
                address_map=snapshot.loaders,
                index=index,
                metadata=snapshot.metadata,
                built_at=time.time(),
            )
            self._generation = generation
        with self._fetch_lock:
            self._fetched_metadata.clear()

        logger.info("built generation %d (%d addresses)", generation.number, len(snapshot.addresses))
        return generation

    def ensure_built(self) -> Generation:
        generation = self.generation
        if generation.number == 0:
            return self.rebuild()
        return generation

    # Resolution API

    def get_tree(self) -> DirectoryEntry:
        return self.generation.tree

    def navigate(self, path: str) -> NavigationResult:
        return navigate(self.generation.tree, path)

    def locate(self, path: str, kind: str = "document") -> Loader | None:
        return self.generation.index.locate(path, kind)

    def locate_key(self, path: str, kind: str = "document") -> str | None:
        return self.generation.index.locate_key(path, kind)

    @staticmethod
    def extract_metadata(contents: str, kind: SourceKind) -> Metadata:
        return extract_metadata(contents, kind)

    def list_posts(self, path: str = ".", sort: str | None = None) -> list[PostEntry] | PathNotFound:
        """Visible, ordered posts of the directory at ``path``."""
        result = self.navigate(path)
        if isinstance(result, PathNotFound):
            return result
        return list_posts(result.directory, sort or self.config.posts.sort)  # type: ignore[arg-type]

    # Change notification

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a parameterless "generation changed" listener."""
        with self._listeners_lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            self.unsubscribe(listener)

        return unsubscribe

    def unsubscribe(self, listener: Listener) -> None:
        with self._listeners_lock:
            try:
                self._listeners.remove(listener)
            except ValueError:
                pass

    def broadcast(self) -> None:
        with self._listeners_lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener()
            except Exception:
                logger.exception("content-changed listener %r failed", listener)

    # Fetching

    def fetched_metadata(self, path: str) -> Metadata | None:
        with self._fetch_lock:
            return self._fetched_metadata.get(path)

    def fetch(
        self,
        path: str,
        kind: str = "document",
        cancel: threading.Event | None = None,
    ) -> FetchResult | None:
        """Load the content serving ``path`` and record its metadata.

        Returns ``None`` when nothing matches, when ``cancel`` is set, when a
        newer fetch of the same path started meanwhile, or when the file went
        away since the last rebuild; in those cases no engine state is touched.
        """
        with self._fetch_lock:
            self._fetch_counter += 1
            sequence = self._fetch_counter
            self._fetch_sequence[path] = sequence

        def superseded() -> bool:
            if cancel is not None and cancel.is_set():
                return True
            with self._fetch_lock:
                return self._fetch_sequence.get(path) != sequence

        try:
            generation = self.generation
            address = generation.index.locate_key(path, kind)
            if address is None or superseded():
                return None

            try:
                contents = generation.address_map[address]()
            except OSError as exc:
                logger.debug("cannot load %s: %s", address, exc)
                return None
            source_kind = kind_for_path(strip_query(address))
            if isinstance(contents, str) and source_kind is not None:
                metadata = extract_metadata(contents, source_kind)
            else:
                metadata = Metadata()

            with self._fetch_lock:
                stale = self._fetch_sequence.get(path) != sequence
                if stale or (cancel is not None and cancel.is_set()) or self.generation is not generation:
                    logger.debug("dropping stale fetch of %r", path)
                    return None
                self._fetched_metadata[path] = metadata
            return FetchResult(
                path=path,
                address=address,
                contents=contents,
                metadata=metadata,
                generation=generation.number,
            )
        finally:
            with self._fetch_lock:
                if self._fetch_sequence.get(path) == sequence:
                    del self._fetch_sequence[path]


__all__ = [
    "Listener",
    "ContentSource",
    "Generation",
    "FetchResult",
    "ContentEngine",
]
