"""Convention-driven lookup of content loaders by logical request path.

A request either names a file (it carries an extension of the requested
kind) or a folder. Folder requests try an ordered list of convention
candidates; the first candidate with any matching address wins. Candidate
order is a contract: ``index`` before ``README`` before a sibling file, and
``.mdx`` before ``.md`` within each.

For a single candidate, encodings are tried in ``ENCODINGS`` order and the
address map's key order breaks remaining ties.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Literal

from .paths import (
    CONTENT_ALIAS,
    DOCUMENT_EXTENSIONS,
    SCRIPT_EXTENSIONS,
    PathNormalizer,
    extension_of,
    normalize_request_path,
    strip_query,
)
from .types import Loader

logger = logging.getLogger(__name__)

ContentKind = Literal["document", "slides", "script"]

README_VARIANTS = ("README", "Readme", "readme")
SLIDES_STEM = "SLIDES"
SLIDES_SUFFIX = ".slides"

KIND_EXTENSIONS: dict[str, tuple[str, ...]] = {
    "document": DOCUMENT_EXTENSIONS,
    "slides": DOCUMENT_EXTENSIONS,
    "script": SCRIPT_EXTENSIONS,
}


def _join(folder: str, name: str) -> str:
    return f"{folder}/{name}" if folder else name


def _index_candidates(extensions: tuple[str, ...]) -> Callable[[str], list[str]]:
    def generate(folder: str) -> list[str]:
        return [_join(folder, f"index{ext}") for ext in extensions]

    return generate


def _readme_candidates(folder: str) -> list[str]:
    return [
        _join(folder, f"{variant}{ext}")
        for ext in DOCUMENT_EXTENSIONS
        for variant in README_VARIANTS
    ]


def _sibling_candidates(extensions: tuple[str, ...]) -> Callable[[str], list[str]]:
    def generate(folder: str) -> list[str]:
        if not folder:
            return []
        return [f"{folder}{ext}" for ext in extensions]

    return generate


def _slides_candidates(folder: str) -> list[str]:
    return [_join(folder, f"{SLIDES_STEM}{ext}") for ext in DOCUMENT_EXTENSIONS]


def _index_slides_candidates(folder: str) -> list[str]:
    return [_join(folder, f"index{SLIDES_SUFFIX}{ext}") for ext in DOCUMENT_EXTENSIONS]


CONVENTIONS: dict[str, tuple[Callable[[str], list[str]], ...]] = {
    "document": (
        _index_candidates(DOCUMENT_EXTENSIONS),
        _readme_candidates,
        _sibling_candidates(DOCUMENT_EXTENSIONS),
    ),
    "slides": (
        _slides_candidates,
        _index_slides_candidates,
    ),
    "script": (
        _index_candidates(SCRIPT_EXTENSIONS),
        _sibling_candidates(SCRIPT_EXTENSIONS),
    ),
}


def convention_candidates(folder: str, kind: str) -> list[str]:
    """Ordered logical file paths equivalent to the folder request ``folder``."""
    try:
        generators = CONVENTIONS[kind]
    except KeyError:
        raise ValueError(f"unknown content kind: {kind!r}") from None
    candidates: list[str] = []
    for generate in generators:
        candidates.extend(generate(folder))
    return candidates


def is_direct_request(path: str, kind: str) -> bool:
    """Whether ``path`` already names a file of ``kind``."""
    return extension_of(path) in KIND_EXTENSIONS.get(kind, ())


class AddressIndex:
    """Lookup tables over one generation's address map.

    ``ENCODINGS`` lists the forms one logical path may take among the keys.
    Suffix matching is the loosest form and is only used for nested
    candidates, so a root-level ``index.mdx`` never matches ``a/index.mdx``.
    """

    ENCODINGS = ("alias", "rooted-alias", "bare", "leading-slash", "canonical", "suffix")

    def __init__(
        self,
        address_map: Mapping[str, Loader],
        normalizer: PathNormalizer | None = None,
    ) -> None:
        self._address_map = address_map
        keys = list(address_map)
        self._normalizer = normalizer if normalizer is not None else PathNormalizer.for_keys(keys)
        self._exact: dict[str, str] = {}
        self._canonical: dict[str, str] = {}
        self._stripped: list[tuple[str, str]] = []
        for key in keys:
            stripped = strip_query(key)
            self._exact.setdefault(stripped, key)
            self._stripped.append((stripped, key))
            relative = self._normalizer.normalize(key)
            if relative is not None:
                self._canonical.setdefault(relative, key)

    @property
    def normalizer(self) -> PathNormalizer:
        return self._normalizer

    def _match_encoding(self, encoding: str, candidate: str) -> str | None:
        if encoding == "alias":
            return self._exact.get(f"{CONTENT_ALIAS}/{candidate}")
        if encoding == "rooted-alias":
            return self._exact.get(f"/{CONTENT_ALIAS}/{candidate}")
        if encoding == "bare":
            return self._exact.get(candidate)
        if encoding == "leading-slash":
            return self._exact.get(f"/{candidate}")
        if encoding == "canonical":
            return self._canonical.get(candidate)
        if "/" not in candidate:
            return None
        suffix = f"/{candidate}"
        for stripped, key in self._stripped:
            if stripped.endswith(suffix):
                return key
        return None

    def match_key(self, candidate: str) -> str | None:
        """Return the address key for one logical path, trying each encoding in order."""
        for encoding in self.ENCODINGS:
            key = self._match_encoding(encoding, candidate)
            if key is not None:
                return key
        return None

    def locate_key(self, requested_path: str, kind: str) -> str | None:
        """Return the address key the request resolves to, or ``None``."""
        if kind not in CONVENTIONS:
            raise ValueError(f"unknown content kind: {kind!r}")
        normalized = normalize_request_path(requested_path)

        if normalized and is_direct_request(normalized, kind):
            return self.match_key(normalized)

        for candidate in convention_candidates(normalized, kind):
            key = self.match_key(candidate)
            if key is not None:
                return key
        return None

    def locate(self, requested_path: str, kind: str) -> Loader | None:
        key = self.locate_key(requested_path, kind)
        if key is None:
            logger.debug("no %s address for %r", kind, requested_path)
            return None
        return self._address_map[key]


def locate(address_map: Mapping[str, Loader], requested_path: str, kind: str) -> Loader | None:
    """Find the loader serving ``requested_path`` as ``kind``; ``None`` when absent."""
    return AddressIndex(address_map).locate(requested_path, kind)


__all__ = [
    "ContentKind",
    "README_VARIANTS",
    "SLIDES_STEM",
    "SLIDES_SUFFIX",
    "KIND_EXTENSIONS",
    "CONVENTIONS",
    "convention_candidates",
    "is_direct_request",
    "AddressIndex",
    "locate",
]
