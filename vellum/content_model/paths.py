"""Canonicalization of content addresses into content-relative paths.

Addresses reach the engine in several encodings: alias form
(``@content/a.mdx``), rooted alias form (``/@content/a.mdx``), bare relative
form (``./a.mdx``) and filesystem-looking form (``/home/me/site/content/a.mdx``)
that is only meaningful relative to the common root of the whole snapshot.
Any of them may carry a ``?query`` or ``#fragment`` suffix.

One ordered list of stripping rules handles all of them; the tree builder and
the locator both go through ``PathNormalizer`` so the two never disagree.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass

CONTENT_ALIAS = "@content"
ROOT_PATH = "."

DOCUMENT_EXTENSIONS = (".mdx", ".md")
SCRIPT_EXTENSIONS = (".tsx", ".ts", ".jsx", ".js")
IMAGE_EXTENSIONS = (".png", ".jpg", ".jpeg", ".gif", ".svg", ".webp")
STYLE_EXTENSIONS = (".css",)
CONTENT_EXTENSIONS = frozenset(DOCUMENT_EXTENSIONS + SCRIPT_EXTENSIONS + IMAGE_EXTENSIONS + STYLE_EXTENSIONS)

_ALIAS_PREFIX = CONTENT_ALIAS + "/"
_ROOTED_ALIAS_PREFIX = "/" + CONTENT_ALIAS + "/"


def strip_query(key: str) -> str:
    """Drop a trailing ``?query`` and/or ``#fragment`` suffix."""
    cut = len(key)
    for marker in ("?", "#"):
        idx = key.find(marker)
        if idx != -1 and idx < cut:
            cut = idx
    return key[:cut]


def extension_of(path: str) -> str:
    """Return the lower-cased final extension of the last segment, or ``""``."""
    name = path.rsplit("/", 1)[-1]
    dot = name.rfind(".")
    if dot <= 0:
        return ""
    return name[dot:].lower()


def has_content_extension(path: str, extensions: Iterable[str] = CONTENT_EXTENSIONS) -> bool:
    return extension_of(strip_query(path)) in set(extensions)


def is_alias_key(key: str) -> bool:
    return key.startswith(_ALIAS_PREFIX) or key.startswith(_ROOTED_ALIAS_PREFIX)


def is_filesystem_like(key: str) -> bool:
    """Whether ``key`` looks like an absolute or escaped-relative content file path."""
    bare = strip_query(key)
    if is_alias_key(bare):
        return False
    if not (bare.startswith("/") or bare.startswith("../")):
        return False
    return has_content_extension(bare)


def infer_common_root(keys: Iterable[str]) -> str:
    """Longest common directory prefix across the filesystem-like keys.

    Only directory segments take part (the file name never does), so a lone
    key ``/docs/a.mdx`` yields ``/docs``. Returns ``""`` when no prefix is
    shared.
    """
    dir_parts: list[list[str]] = []
    for key in keys:
        if not is_filesystem_like(key):
            continue
        parts = strip_query(key).split("/")
        dir_parts.append(parts[:-1])

    if not dir_parts or not dir_parts[0]:
        return ""

    first = dir_parts[0]
    common_length = 0
    for idx, segment in enumerate(first):
        if all(len(parts) > idx and parts[idx] == segment for parts in dir_parts):
            common_length = idx + 1
        else:
            break

    prefix = "/".join(first[:common_length])
    if prefix in ("", "/") or not prefix.strip("/"):
        return ""
    return prefix


def clean_relative(path: str) -> str | None:
    """Collapse empty and ``.`` segments; refuse paths escaping the root."""
    segments: list[str] = []
    for segment in path.split("/"):
        if segment in ("", "."):
            continue
        if segment == "..":
            return None
        segments.append(segment)
    if not segments:
        return None
    return "/".join(segments)


_Rule = Callable[[str, str], "str | None"]


def _strip_rooted_alias(key: str, _root: str) -> str | None:
    if key.startswith(_ROOTED_ALIAS_PREFIX):
        return key[len(_ROOTED_ALIAS_PREFIX) :]
    return None


def _strip_alias(key: str, _root: str) -> str | None:
    if key.startswith(_ALIAS_PREFIX):
        return key[len(_ALIAS_PREFIX) :]
    return None


def _strip_dot_slash(key: str, _root: str) -> str | None:
    if not key.startswith("./"):
        return None
    while key.startswith("./"):
        key = key[2:]
    return key


def _strip_common_root(key: str, root: str) -> str | None:
    if root and key.startswith(root + "/"):
        return key[len(root) + 1 :]
    return None


# Order matters: the first rule that applies decides the relative form.
NORMALIZE_RULES: tuple[tuple[str, _Rule], ...] = (
    ("rooted-alias", _strip_rooted_alias),
    ("alias", _strip_alias),
    ("dot-slash", _strip_dot_slash),
    ("common-root", _strip_common_root),
)


def normalize(raw_key: str, common_root: str = "") -> str | None:
    """Map one raw address to its content-relative path.

    Returns ``None`` for keys carrying a NUL sentinel, keys that look absolute
    but sit outside a non-empty ``common_root``, and keys that escape the root
    via ``..``. Without a common root a leading slash is simply dropped.
    """
    if not raw_key or "\0" in raw_key:
        return None
    key = strip_query(raw_key)
    if not key:
        return None

    for _name, rule in NORMALIZE_RULES:
        relative = rule(key, common_root)
        if relative is not None:
            return clean_relative(relative)

    if key.startswith("/") and not common_root:
        return clean_relative(key.lstrip("/"))
    if key.startswith("/") or key.startswith("../"):
        return None
    return clean_relative(key)


def normalize_request_path(path: str) -> str:
    """Canonical form of a requested logical path; ``""`` denotes the root."""
    bare = strip_query(path or "")
    for _name, rule in NORMALIZE_RULES[:3]:
        relative = rule(bare, "")
        if relative is not None:
            bare = relative
            break
    segments = [segment for segment in bare.split("/") if segment not in ("", ".")]
    return "/".join(segments)


@dataclass(frozen=True)
class PathNormalizer:
    """Normalizer bound to the common root of one address snapshot."""

    common_root: str = ""

    @classmethod
    def for_keys(cls, keys: Iterable[str]) -> PathNormalizer:
        return cls(common_root=infer_common_root(keys))

    def normalize(self, raw_key: str) -> str | None:
        return normalize(raw_key, self.common_root)

    def normalize_all(self, keys: Iterable[str]) -> dict[str, str]:
        """Map each normalizable raw key to its relative path, preserving key order."""
        out: dict[str, str] = {}
        for key in keys:
            relative = self.normalize(key)
            if relative is not None:
                out[key] = relative
        return out


__all__ = [
    "CONTENT_ALIAS",
    "ROOT_PATH",
    "DOCUMENT_EXTENSIONS",
    "SCRIPT_EXTENSIONS",
    "IMAGE_EXTENSIONS",
    "CONTENT_EXTENSIONS",
    "NORMALIZE_RULES",
    "PathNormalizer",
    "strip_query",
    "extension_of",
    "has_content_extension",
    "is_alias_key",
    "is_filesystem_like",
    "infer_common_root",
    "clean_relative",
    "normalize",
    "normalize_request_path",
]
