"""Blog settings, read once at startup and passed explicitly to the app factory.

Values come from ``STEAMPRESS_*`` environment variables, optionally layered
over the ``"steampress"`` object of a JSON file named by
``STEAMPRESS_CONFIG_FILE``. Environment variables win.
"""

from __future__ import annotations

import json
import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .services.errors import InvalidConfiguration
from .services.listing import DEFAULT_MAX_PAGE_SIZE, ListingConfig

CONFIG_FILE_ENV = "STEAMPRESS_CONFIG_FILE"
ENV_PREFIX = "STEAMPRESS_"
CONFIG_SECTION = "steampress"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class BlogConfig:
    posts_per_page: int
    max_page_size: int = DEFAULT_MAX_PAGE_SIZE
    blog_path: str | None = None
    use_bootstrap4: bool = True
    enable_authors_pages: bool = True
    enable_tags_pages: bool = True
    content_dir: Path = Path("content/posts")
    site_title: str = "SteamPress Blog"
    site_url: str = "https://example.com"
    site_description: str = "A blog"
    disqus_name: str | None = None
    site_twitter_handle: str | None = None

    def __post_init__(self) -> None:
        if self.posts_per_page <= 0:
            raise InvalidConfiguration("postsPerPage must be a positive integer")
        if self.max_page_size < self.posts_per_page:
            raise InvalidConfiguration(
                f"maxPageSize ({self.max_page_size}) must not be smaller than postsPerPage ({self.posts_per_page})"
            )
        if self.blog_path is not None:
            stripped = self.blog_path.strip("/")
            object.__setattr__(self, "blog_path", stripped or None)

    def listing_config(self) -> ListingConfig:
        return ListingConfig(max_page_size=self.max_page_size)


# setting name -> (json key, env suffix, kind)
_FIELDS: dict[str, tuple[str, str, str]] = {
    "posts_per_page": ("postsPerPage", "POSTS_PER_PAGE", "int"),
    "max_page_size": ("maxPageSize", "MAX_PAGE_SIZE", "int"),
    "blog_path": ("blogPath", "BLOG_PATH", "str"),
    "use_bootstrap4": ("useBootstrap4", "USE_BOOTSTRAP4", "bool"),
    "enable_authors_pages": ("enableAuthorsPages", "ENABLE_AUTHORS_PAGES", "bool"),
    "enable_tags_pages": ("enableTagsPages", "ENABLE_TAGS_PAGES", "bool"),
    "content_dir": ("contentDir", "CONTENT_DIR", "path"),
    "site_title": ("siteTitle", "SITE_TITLE", "str"),
    "site_url": ("siteUrl", "SITE_URL", "str"),
    "site_description": ("siteDescription", "SITE_DESCRIPTION", "str"),
    "disqus_name": ("disqusName", "DISQUS_NAME", "str"),
    "site_twitter_handle": ("siteTwitterHandle", "SITE_TWITTER_HANDLE", "str"),
}


def _coerce(name: str, value: Any, kind: str) -> Any:
    if kind == "int":
        if isinstance(value, bool):
            raise InvalidConfiguration(f"{name} must be an integer, got {value!r}")
        try:
            return int(value)
        except (TypeError, ValueError) as exc:
            raise InvalidConfiguration(f"{name} must be an integer, got {value!r}") from exc
    if kind == "bool":
        if isinstance(value, bool):
            return value
        text = str(value).strip().lower()
        if text in _TRUE:
            return True
        if text in _FALSE:
            return False
        raise InvalidConfiguration(f"{name} must be a boolean, got {value!r}")
    if kind == "path":
        return Path(str(value))
    return str(value)


def _read_file(path: Path) -> dict[str, Any]:
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise InvalidConfiguration(f"Missing config file: {path}") from exc
    except json.JSONDecodeError as exc:
        raise InvalidConfiguration(f"{path} is not valid JSON") from exc
    section = raw.get(CONFIG_SECTION) if isinstance(raw, dict) else None
    if not isinstance(section, dict):
        raise InvalidConfiguration(f"{path} has no '{CONFIG_SECTION}' object")
    return section


def load_config(environ: Mapping[str, str] | None = None) -> BlogConfig:
    env = os.environ if environ is None else environ
    file_values: dict[str, Any] = {}
    config_file = env.get(CONFIG_FILE_ENV)
    if config_file:
        file_values = _read_file(Path(config_file))

    kwargs: dict[str, Any] = {}
    for field_name, (json_key, env_suffix, kind) in _FIELDS.items():
        value: Any = env.get(ENV_PREFIX + env_suffix)
        if value is None or value == "":
            value = file_values.get(json_key)
        if value is None:
            continue
        kwargs[field_name] = _coerce(json_key, value, kind)

    if "posts_per_page" not in kwargs:
        raise InvalidConfiguration("Missing postsPerPage variable in SteamPress configuration")
    return BlogConfig(**kwargs)
