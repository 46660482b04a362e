from __future__ import annotations

import logging
import threading
import zlib
from collections import Counter
from collections.abc import Iterable, Sequence
from datetime import date, datetime, time
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

import frontmatter  # type: ignore[import-untyped]
import yaml

from .content import Author, Post, Tag, normalize_tag
from .errors import StoreUnavailable

if TYPE_CHECKING:
    from .listing import PostFilter, PostOrder

logger = logging.getLogger(__name__)

CONTENT_DIR = Path("content/posts")
DEFAULT_AUTHOR = Author(username="admin", name="Admin")


class ContentStore(Protocol):
    def count(self, post_filter: PostFilter) -> int: ...

    def fetch(self, post_filter: PostFilter, offset: int, limit: int, order: PostOrder) -> Sequence[Post]: ...

    def get_post(self, slug: str) -> Post | None: ...

    def get_author(self, username: str, *, include_drafts: bool = False) -> Author | None: ...

    def get_tag(self, name: str, *, include_drafts: bool = False) -> Tag | None: ...

    def list_tags(self, *, include_drafts: bool = False) -> list[Tag]: ...

    def list_authors(self, *, include_drafts: bool = False) -> list[Author]: ...

    def post_counts_by_tag(self) -> dict[str, int]: ...

    def post_counts_by_author(self) -> dict[str, int]: ...


def _slice(posts: Iterable[Post], post_filter: PostFilter, offset: int, limit: int, order: PostOrder) -> list[Post]:
    matching = sorted(
        (p for p in posts if post_filter.matches(p)),
        key=order.sort_key,
        reverse=order.descending,
    )
    return matching[offset : offset + limit]


def _tag_counts(posts: Iterable[Post]) -> dict[str, int]:
    counts: Counter[str] = Counter()
    for p in posts:
        if p.published:
            counts.update(t.key for t in p.tags)
    return dict(counts)


def _author_counts(posts: Iterable[Post]) -> dict[str, int]:
    return dict(Counter(p.author.username for p in posts if p.published))


def _tags_in_use(posts: Iterable[Post]) -> set[str]:
    return {t.key for p in posts for t in p.tags}


def _authors_in_use(posts: Iterable[Post]) -> set[str]:
    return {p.author.username for p in posts}


class InMemoryContentStore:
    """List-backed store, safe to share between request threads.

    Tag and author lookups only see entities used by a visible post, so a
    draft's tags and author stay private until it is published.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._posts: list[Post] = []
        self._authors: dict[str, Author] = {}
        self._tags: dict[str, Tag] = {}

    def add_author(self, author: Author) -> Author:
        with self._lock:
            return self._authors.setdefault(author.username, author)

    def add_tag(self, name: str) -> Tag:
        """Return the canonical tag for ``name``, creating it on first use."""
        with self._lock:
            return self._tags.setdefault(normalize_tag(name), Tag(name.strip()))

    def add_post(self, post: Post, *, now: datetime | None = None) -> Post:
        if post.published:
            current = now or datetime.now(tz=post.created.tzinfo)
            if post.created > current:
                raise ValueError(f"published post {post.slug!r} is dated in the future")
        with self._lock:
            for existing in self._posts:
                if existing.id == post.id:
                    raise ValueError(f"duplicate post id {post.id}")
                if existing.slug == post.slug:
                    raise ValueError(f"duplicate post slug {post.slug!r}")
            tags = tuple(self._tags.setdefault(t.key, Tag(t.name.strip())) for t in post.tags)
            self._authors.setdefault(post.author.username, post.author)
            if [t.name for t in tags] != [t.name for t in post.tags]:
                post = Post(
                    id=post.id,
                    title=post.title,
                    slug=post.slug,
                    body=post.body,
                    created=post.created,
                    author=post.author,
                    published=post.published,
                    last_edited=post.last_edited,
                    tags=tags,
                )
            self._posts.append(post)
        return post

    def _snapshot(self) -> list[Post]:
        with self._lock:
            return list(self._posts)

    def _visible(self, include_drafts: bool) -> list[Post]:
        return [p for p in self._snapshot() if include_drafts or p.published]

    def count(self, post_filter: PostFilter) -> int:
        return sum(1 for p in self._snapshot() if post_filter.matches(p))

    def fetch(self, post_filter: PostFilter, offset: int, limit: int, order: PostOrder) -> list[Post]:
        return _slice(self._snapshot(), post_filter, offset, limit, order)

    def get_post(self, slug: str) -> Post | None:
        return next((p for p in self._snapshot() if p.slug == slug), None)

    def get_author(self, username: str, *, include_drafts: bool = False) -> Author | None:
        if username not in _authors_in_use(self._visible(include_drafts)):
            return None
        with self._lock:
            return self._authors.get(username)

    def get_tag(self, name: str, *, include_drafts: bool = False) -> Tag | None:
        key = normalize_tag(name)
        if key not in _tags_in_use(self._visible(include_drafts)):
            return None
        with self._lock:
            return self._tags.get(key)

    def list_tags(self, *, include_drafts: bool = False) -> list[Tag]:
        in_use = _tags_in_use(self._visible(include_drafts))
        with self._lock:
            return sorted((t for k, t in self._tags.items() if k in in_use), key=lambda t: t.key)

    def list_authors(self, *, include_drafts: bool = False) -> list[Author]:
        in_use = _authors_in_use(self._visible(include_drafts))
        with self._lock:
            authors = [a for u, a in self._authors.items() if u in in_use]
        return sorted(authors, key=lambda a: a.name.casefold())

    def post_counts_by_tag(self) -> dict[str, int]:
        return _tag_counts(self._snapshot())

    def post_counts_by_author(self) -> dict[str, int]:
        return _author_counts(self._snapshot())


def _parse_date(value: str | date | None) -> datetime | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime.combine(value, time())
    else:
        try:
            parsed = datetime.fromisoformat(str(value))
        except ValueError:
            return None
    # listings compare naive local times
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


def _load_post(path: Path, now: datetime) -> Post:
    fm = frontmatter.load(path)
    slug = str(fm.get("slug") or path.parent.name)
    title = fm.get("title") or slug
    created = _parse_date(fm.get("date")) or datetime.fromtimestamp(path.stat().st_mtime)
    updated = _parse_date(fm.get("updated"))
    raw_id = fm.get("id")
    post_id = int(raw_id) if raw_id is not None else zlib.crc32(slug.encode("utf-8"))
    tags_raw = fm.get("tags") or []
    if isinstance(tags_raw, str):
        tags_raw = [tags_raw]
    username = str(fm.get("author") or DEFAULT_AUTHOR.username)
    author = Author(
        username=username,
        name=str(fm.get("author_name") or username),
        twitter_handle=fm.get("author_twitter"),
    )
    published = not bool(fm.get("draft", False))
    if published and created > now:
        # scheduled posts stay hidden until their date
        published = False
    return Post(
        id=post_id,
        title=str(title),
        slug=slug,
        body=fm.content,
        created=created,
        author=author,
        published=published,
        last_edited=updated,
        tags=tuple(Tag(str(t)) for t in tags_raw if t),
    )


class FrontmatterContentStore:
    """Reads posts from ``<content_dir>/<slug>/index.md`` on every query.

    Filesystem failures are reported as :class:`StoreUnavailable`.
    """

    def __init__(self, content_dir: Path = CONTENT_DIR) -> None:
        self.content_dir = Path(content_dir)

    def _load_all(self) -> list[Post]:
        posts: list[Post] = []
        seen: set[str] = set()
        seen_ids: set[int] = set()
        now = datetime.now()
        try:
            if not self.content_dir.exists():
                return posts
            for post_dir in sorted(self.content_dir.iterdir()):
                index_md = post_dir / "index.md"
                if not index_md.exists():
                    continue
                try:
                    post = _load_post(index_md, now)
                except (ValueError, TypeError, yaml.YAMLError) as exc:
                    logger.warning("Skipping unreadable post %s: %s", index_md, exc)
                    continue
                if post.slug in seen:
                    logger.warning("Skipping duplicate post slug %r in %s", post.slug, index_md)
                    continue
                if post.id in seen_ids:
                    logger.warning("Skipping duplicate post id %d in %s", post.id, index_md)
                    continue
                seen.add(post.slug)
                seen_ids.add(post.id)
                posts.append(post)
        except OSError as exc:
            raise StoreUnavailable(f"cannot read content from {self.content_dir}") from exc
        return posts

    def count(self, post_filter: PostFilter) -> int:
        return sum(1 for p in self._load_all() if post_filter.matches(p))

    def fetch(self, post_filter: PostFilter, offset: int, limit: int, order: PostOrder) -> list[Post]:
        return _slice(self._load_all(), post_filter, offset, limit, order)

    def get_post(self, slug: str) -> Post | None:
        return next((p for p in self._load_all() if p.slug == slug), None)

    def _visible(self, include_drafts: bool) -> list[Post]:
        return [p for p in self._load_all() if include_drafts or p.published]

    def get_author(self, username: str, *, include_drafts: bool = False) -> Author | None:
        return next((p.author for p in self._visible(include_drafts) if p.author.username == username), None)

    def get_tag(self, name: str, *, include_drafts: bool = False) -> Tag | None:
        key = normalize_tag(name)
        for p in self._visible(include_drafts):
            for t in p.tags:
                if t.key == key:
                    return t
        return None

    def list_tags(self, *, include_drafts: bool = False) -> list[Tag]:
        tags: dict[str, Tag] = {}
        for p in self._visible(include_drafts):
            for t in p.tags:
                tags.setdefault(t.key, t)
        return [tags[k] for k in sorted(tags)]

    def list_authors(self, *, include_drafts: bool = False) -> list[Author]:
        authors = {p.author.username: p.author for p in self._visible(include_drafts)}
        return sorted(authors.values(), key=lambda a: a.name.casefold())

    def post_counts_by_tag(self) -> dict[str, int]:
        return _tag_counts(self._load_all())

    def post_counts_by_author(self) -> dict[str, int]:
        return _author_counts(self._load_all())
