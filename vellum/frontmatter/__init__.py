"""Frontmatter extraction for markup documents and script modules.

- markup: leading ``---`` YAML header block
- script: literal ``frontmatter`` object declaration, read without executing
- extract: per-file reading, caching and batch extraction
"""

from __future__ import annotations

from .markup import HeaderParseError, parse_header, split_header
from .script import ScriptParseError, UNDEFINED, extract_script_frontmatter, find_literal_source, parse_object_literal
from .extract import (
    SourceKind,
    cached_file_metadata,
    clear_metadata_cache,
    extract_directory_metadata,
    extract_metadata,
    kind_for_path,
    parse_frontmatter,
    read_file_metadata,
)

__all__ = [
    "HeaderParseError",
    "split_header",
    "parse_header",
    "ScriptParseError",
    "UNDEFINED",
    "find_literal_source",
    "parse_object_literal",
    "extract_script_frontmatter",
    "SourceKind",
    "kind_for_path",
    "parse_frontmatter",
    "extract_metadata",
    "read_file_metadata",
    "cached_file_metadata",
    "clear_metadata_cache",
    "extract_directory_metadata",
]
