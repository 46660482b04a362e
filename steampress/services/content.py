from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime
from functools import cached_property
from html import unescape

from markdown_it import MarkdownIt
from mdit_py_plugins.footnote import footnote_plugin
from mdit_py_plugins.tasklists import tasklists_plugin
from pygments.formatters import HtmlFormatter  # type: ignore[import-untyped]


EXCERPT_LENGTH = 400

md = MarkdownIt("commonmark").use(footnote_plugin).use(tasklists_plugin)
md = md.enable("html_block").enable("html_inline")

_TAG_RE = re.compile(r"<[^>]+>")
_SPACE_RE = re.compile(r"\s+")


@dataclass(frozen=True)
class Author:
    username: str
    name: str
    biography: str | None = None
    twitter_handle: str | None = None


@dataclass(frozen=True)
class Tag:
    name: str

    @property
    def key(self) -> str:
        return normalize_tag(self.name)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Tag):
            return NotImplemented
        return self.key == other.key

    def __hash__(self) -> int:
        return hash(self.key)


@dataclass(frozen=True)
class Post:
    id: int
    title: str
    slug: str
    body: str
    created: datetime
    author: Author
    published: bool = True
    last_edited: datetime | None = None
    tags: tuple[Tag, ...] = field(default_factory=tuple)

    @cached_property
    def html(self) -> str:
        return render_markdown(self.body)

    @cached_property
    def excerpt(self) -> str:
        return make_excerpt(self.html)

    def has_tag(self, name: str) -> bool:
        key = normalize_tag(name)
        return any(t.key == key for t in self.tags)


def normalize_tag(name: str) -> str:
    return name.strip().casefold()


def render_markdown(text: str) -> str:
    return md.render(text)


def make_excerpt(html: str, length: int = EXCERPT_LENGTH) -> str:
    """Plain-text snippet of rendered HTML, cut on a word boundary."""
    text = _SPACE_RE.sub(" ", unescape(_TAG_RE.sub(" ", html))).strip()
    if len(text) <= length:
        return text
    cut = text[:length]
    if " " in cut:
        cut = cut.rsplit(" ", 1)[0]
    return cut.rstrip(" ,.;:") + "…"


def syntax_highlight_css() -> str:
    css: str = HtmlFormatter(style="github-dark").get_style_defs(".codehilite")
    return css
