"""Command-line front door for vellum.

Resolves the content root, builds one engine generation and answers a
single query against it, or keeps rebuilding on change with ``watch``.
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from .config import load_config
from .content_model.classification import display_title, list_posts
from .content_model.types import DirectoryEntry, PathNotFound
from .engine import ContentEngine
from .errors import ConfigurationMissing, ExtractionSkipped
from .frontmatter.extract import kind_for_path, read_file_metadata
from .highlight import DEFAULT_STYLE, colorize_source, sanitize_terminal_text
from .invalidation import create_watch_loop
from .log import configure_logging
from .source import FilesystemContentSource

KINDS = ("document", "slides", "script")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="vellum",
        description="Resolve a convention-based content directory into a navigable site model.",
    )
    parser.add_argument("--dir", default=None, help="Content root. Defaults to current directory.")
    parser.add_argument("--log-level", default="WARNING", help="Logging level (default: WARNING).")
    parser.add_argument("--log-file", default=None, help="Also log to this rotating file.")
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("tree", help="Print the content tree with display titles.")

    resolve = commands.add_parser("resolve", help="Navigate to PATH and print the directory/file pair.")
    resolve.add_argument("path")

    locate = commands.add_parser("locate", help="Print the address serving PATH.")
    locate.add_argument("path")
    locate.add_argument("--kind", choices=KINDS, default="document")

    frontmatter = commands.add_parser("frontmatter", help="Print a file's frontmatter as JSON.")
    frontmatter.add_argument("file")

    posts = commands.add_parser("posts", help="Print the visible posts of a directory in listing order.")
    posts.add_argument("path", nargs="?", default=".")
    posts.add_argument("--sort", choices=("alpha", "date"), default=None)

    cat = commands.add_parser("cat", help="Print the source serving PATH.")
    cat.add_argument("path")
    cat.add_argument("--kind", choices=KINDS, default="document")
    cat.add_argument("--style", default=DEFAULT_STYLE, help="Pygments style name.")
    cat.add_argument("--no-color", action="store_true", help="Disable color output even on TTY.")

    commands.add_parser("watch", help="Rebuild on change and print one line per broadcast.")
    return parser


def format_tree(root: DirectoryEntry) -> str:
    lines = ["."]

    def walk(directory: DirectoryEntry, depth: int) -> None:
        for entry in directory.children:
            indent = "  " * depth
            if isinstance(entry, DirectoryEntry):
                lines.append(f"{indent}{entry.name}/")
                walk(entry, depth + 1)
                continue
            title = display_title(entry)
            lines.append(f"{indent}{entry.name}  [{title}]")

    walk(root, 1)
    return "\n".join(lines) + "\n"


def _cmd_tree(engine: ContentEngine, _args: argparse.Namespace) -> None:
    sys.stdout.write(format_tree(engine.get_tree()))


def _cmd_resolve(engine: ContentEngine, args: argparse.Namespace) -> None:
    result = engine.navigate(args.path)
    if isinstance(result, PathNotFound):
        raise SystemExit(result.message)
    file_path = result.file.path if result.file is not None else "-"
    sys.stdout.write(f"directory: {result.directory.path}\nfile: {file_path}\n")


def _cmd_locate(engine: ContentEngine, args: argparse.Namespace) -> None:
    address = engine.locate_key(args.path, args.kind)
    if address is None:
        raise SystemExit(f"No {args.kind} found for: {args.path}")
    sys.stdout.write(f"{address}\n")


def _cmd_frontmatter(args: argparse.Namespace) -> None:
    path = Path(args.file)
    if not path.is_file():
        raise SystemExit(f"Path not found: {path}")
    if kind_for_path(path) is None:
        raise SystemExit(f"No frontmatter syntax for: {path}")
    try:
        metadata = read_file_metadata(path)
    except ExtractionSkipped as exc:
        raise SystemExit(str(exc)) from exc
    sys.stdout.write(json.dumps(metadata.to_dict(), indent=2, ensure_ascii=False) + "\n")


def _cmd_posts(engine: ContentEngine, args: argparse.Namespace) -> None:
    result = engine.navigate(args.path)
    if isinstance(result, PathNotFound):
        raise SystemExit(result.message)
    sort = args.sort or engine.config.posts.sort
    for post in list_posts(result.directory, sort):
        columns = [post.link_path, display_title(post)]
        if post.metadata is not None and post.metadata.date:
            columns.append(post.metadata.date)
        sys.stdout.write("\t".join(columns) + "\n")


def _cmd_cat(engine: ContentEngine, args: argparse.Namespace) -> None:
    fetched = engine.fetch(args.path, args.kind)
    if fetched is None:
        raise SystemExit(f"No {args.kind} found for: {args.path}")
    if not isinstance(fetched.contents, str):
        raise SystemExit(f"Not a text source: {fetched.address}")
    if args.no_color or not sys.stdout.isatty():
        sys.stdout.write(sanitize_terminal_text(fetched.contents))
        return
    sys.stdout.write(colorize_source(fetched.contents, Path(fetched.address), args.style))


def _cmd_watch(engine: ContentEngine, source: FilesystemContentSource) -> None:
    loop = create_watch_loop(engine, source)

    def announce() -> None:
        sys.stdout.write(f"content changed: generation {engine.generation.number}\n")
        sys.stdout.flush()

    engine.subscribe(announce)
    sys.stdout.write(f"watching {source.root} (generation {engine.generation.number})\n")
    sys.stdout.flush()
    try:
        loop.run()
    except KeyboardInterrupt:
        pass
    finally:
        loop.stop()


def main(argv: list[str] | None = None, default_path: Path | None = None) -> None:
    """Parse CLI arguments and run one command against the content root.

    ``default_path`` is primarily for tests; when omitted the current working
    directory is used.
    """
    args = _build_parser().parse_args(argv)
    configure_logging(args.log_level, Path(args.log_file) if args.log_file else None)

    if args.command == "frontmatter":
        _cmd_frontmatter(args)
        return

    if args.dir is not None:
        root = Path(args.dir)
    else:
        root = default_path if default_path is not None else Path.cwd()
    config = load_config(root if root.is_dir() else None)
    try:
        source = FilesystemContentSource(root, config)
    except ConfigurationMissing as exc:
        raise SystemExit(str(exc)) from exc

    engine = ContentEngine(source, config)
    engine.rebuild()

    if args.command == "watch":
        _cmd_watch(engine, source)
        return

    handlers = {
        "tree": _cmd_tree,
        "resolve": _cmd_resolve,
        "locate": _cmd_locate,
        "posts": _cmd_posts,
        "cat": _cmd_cat,
    }
    handlers[args.command](engine, args)


if __name__ == "__main__":
    main()
