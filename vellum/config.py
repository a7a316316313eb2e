"""Site configuration from JSON files.

Project ``vellum.json`` at the content root overrides the user's
``config.json`` under the platform config directory, which overrides the
built-in defaults. All access is defensive: a missing or malformed file
falls back to defaults, and invalid individual values are ignored.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path

from platformdirs import user_config_dir

logger = logging.getLogger(__name__)

APP_NAME = "vellum"
CONFIG_FILENAME = "config.json"
PROJECT_CONFIG_FILENAME = "vellum.json"
DEFAULT_CONFIG_PATH = Path(user_config_dir(APP_NAME, appauthor=False)) / CONFIG_FILENAME
CONFIG_PATH = DEFAULT_CONFIG_PATH

DEFAULT_SITE_NAME = "vellum"
DEFAULT_DEBOUNCE_SECONDS = 1.0
DEFAULT_WATCH_POLL_SECONDS = 0.5
DEFAULT_MARKER = ".running"


@dataclass(frozen=True)
class SiteConfig:
    name: str = DEFAULT_SITE_NAME
    description: str = ""
    github: str = ""
    homepage: str = ""
    llms_txt: bool = False


@dataclass(frozen=True)
class SlidesConfig:
    scroll_snap: bool = True


@dataclass(frozen=True)
class PostsConfig:
    sort: str = "alpha"


@dataclass(frozen=True)
class VellumConfig:
    """Effective configuration for one content root."""

    site: SiteConfig = field(default_factory=SiteConfig)
    slides: SlidesConfig = field(default_factory=SlidesConfig)
    posts: PostsConfig = field(default_factory=PostsConfig)
    ignore: tuple[str, ...] = ()
    debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS
    watch_poll_seconds: float = DEFAULT_WATCH_POLL_SECONDS
    marker: str = DEFAULT_MARKER


def read_json_object(path: Path) -> dict[str, object]:
    """Load a JSON object from ``path``.

    Returns an empty dict when the file is missing, unreadable, malformed, or
    does not decode to a top-level JSON object.
    """
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return {}
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
        logger.warning("ignoring config %s: %s", path, exc)
        return {}
    if not isinstance(data, dict):
        logger.warning("ignoring config %s: top-level value is not an object", path)
        return {}
    return data


def load_user_config() -> dict[str, object]:
    """Load the per-user JSON config object."""
    return read_json_object(CONFIG_PATH)


def load_project_config(root: Path) -> dict[str, object]:
    """Load ``vellum.json`` from the content root."""
    return read_json_object(root / PROJECT_CONFIG_FILENAME)


def merge_config(base: dict[str, object], override: dict[str, object]) -> dict[str, object]:
    """Merge two raw configs; nested objects merge one level deep."""
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = {**current, **value}
        else:
            merged[key] = value
    return merged


def _section(data: dict[str, object], key: str) -> dict[str, object]:
    value = data.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        logger.warning("config key %r must be an object; ignoring", key)
        return {}
    return value


def _string(section: dict[str, object], key: str, default: str, label: str) -> str:
    value = section.get(key, default)
    if not isinstance(value, str):
        logger.warning("config key %r must be a string; using %r", label, default)
        return default
    return value


def _boolean(section: dict[str, object], key: str, default: bool, label: str) -> bool:
    value = section.get(key, default)
    if not isinstance(value, bool):
        logger.warning("config key %r must be a boolean; using %r", label, default)
        return default
    return value


def _positive_seconds(data: dict[str, object], key: str, default: float) -> float:
    value = data.get(key, default)
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
        logger.warning("config key %r must be a positive number; using %r", key, default)
        return default
    return float(value)


def _ignore_patterns(data: dict[str, object]) -> tuple[str, ...]:
    value = data.get("ignore", [])
    if not isinstance(value, list):
        logger.warning("config key 'ignore' must be a list of glob patterns; ignoring")
        return ()
    patterns: list[str] = []
    for item in value:
        if isinstance(item, str) and item.strip():
            patterns.append(item.strip())
        else:
            logger.warning("ignoring invalid ignore pattern %r", item)
    return tuple(patterns)


def config_from_mapping(data: dict[str, object]) -> VellumConfig:
    """Validate a raw config object into ``VellumConfig``."""
    site = _section(data, "site")
    slides = _section(data, "slides")
    posts = _section(data, "posts")

    sort = _string(posts, "sort", "alpha", "posts.sort")
    if sort not in ("alpha", "date"):
        logger.warning("config key 'posts.sort' must be 'alpha' or 'date'; using 'alpha'")
        sort = "alpha"

    marker = _string(data, "marker", DEFAULT_MARKER, "marker").strip()
    if not marker or "/" in marker:
        logger.warning("config key 'marker' must be a plain file name; using %r", DEFAULT_MARKER)
        marker = DEFAULT_MARKER

    return VellumConfig(
        site=SiteConfig(
            name=_string(site, "name", DEFAULT_SITE_NAME, "site.name"),
            description=_string(site, "description", "", "site.description"),
            github=_string(site, "github", "", "site.github"),
            homepage=_string(site, "homepage", "", "site.homepage"),
            llms_txt=_boolean(site, "llms_txt", False, "site.llms_txt"),
        ),
        slides=SlidesConfig(scroll_snap=_boolean(slides, "scroll_snap", True, "slides.scroll_snap")),
        posts=PostsConfig(sort=sort),
        ignore=_ignore_patterns(data),
        debounce_seconds=_positive_seconds(data, "debounce_seconds", DEFAULT_DEBOUNCE_SECONDS),
        watch_poll_seconds=_positive_seconds(data, "watch_poll_seconds", DEFAULT_WATCH_POLL_SECONDS),
        marker=marker,
    )


def load_config(root: Path | None = None) -> VellumConfig:
    """Effective config for ``root``: defaults, then user config, then project config."""
    data = load_user_config()
    if root is not None:
        data = merge_config(data, load_project_config(root))
    return config_from_mapping(data)


__all__ = [
    "APP_NAME",
    "CONFIG_PATH",
    "PROJECT_CONFIG_FILENAME",
    "SiteConfig",
    "SlidesConfig",
    "PostsConfig",
    "VellumConfig",
    "read_json_object",
    "load_user_config",
    "load_project_config",
    "merge_config",
    "config_from_mapping",
    "load_config",
]
