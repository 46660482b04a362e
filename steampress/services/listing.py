"""Paginated, filterable post listings.

Backs the blog index, tag pages, author pages and search results. The
service holds no state of its own: every call reads the injected store at
most twice (a count, then a slice) and assembles a ``PageResult``.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING

from .content import Post
from .errors import InvalidPageRequest, StoreUnavailable

if TYPE_CHECKING:
    from .store import ContentStore

logger = logging.getLogger(__name__)

DEFAULT_MAX_PAGE_SIZE = 50


class PostOrder(Enum):
    NEWEST_FIRST = "newest_first"

    def sort_key(self, post: Post) -> tuple[datetime, int]:
        return (post.created, post.id)

    @property
    def descending(self) -> bool:
        return True


@dataclass(frozen=True)
class PostFilter:
    search_term: str | None = None
    tag: str | None = None
    author: str | None = None
    include_drafts: bool = False

    def __post_init__(self) -> None:
        term = (self.search_term or "").strip()
        object.__setattr__(self, "search_term", term or None)

    def matches(self, post: Post) -> bool:
        if not self.include_drafts and not post.published:
            return False
        if self.tag is not None and not post.has_tag(self.tag):
            return False
        if self.author is not None and post.author.username != self.author:
            return False
        if self.search_term is not None:
            needle = self.search_term.casefold()
            if needle not in post.title.casefold() and needle not in post.body.casefold():
                return False
        return True


@dataclass(frozen=True)
class PageRequest:
    page: int = 1
    page_size: int = 10
    search_term: str | None = None
    tag: str | None = None
    author: str | None = None
    include_drafts: bool = False

    def to_filter(self) -> PostFilter:
        return PostFilter(
            search_term=self.search_term,
            tag=self.tag,
            author=self.author,
            include_drafts=self.include_drafts,
        )


@dataclass(frozen=True)
class PostSummary:
    id: int
    title: str
    slug: str
    excerpt: str
    created: datetime
    last_edited: datetime | None
    author_username: str
    author_name: str
    tags: tuple[str, ...]
    published: bool = True

    @classmethod
    def from_post(cls, post: Post) -> PostSummary:
        return cls(
            id=post.id,
            title=post.title,
            slug=post.slug,
            excerpt=post.excerpt,
            created=post.created,
            last_edited=post.last_edited,
            author_username=post.author.username,
            author_name=post.author.name,
            tags=tuple(t.name for t in post.tags),
            published=post.published,
        )


@dataclass(frozen=True)
class PageResult:
    posts: tuple[PostSummary, ...]
    total_count: int
    page: int
    page_size: int
    total_pages: int

    @property
    def has_previous(self) -> bool:
        return self.page > 1

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @property
    def is_out_of_range(self) -> bool:
        return self.page > self.total_pages


@dataclass(frozen=True)
class ListingConfig:
    max_page_size: int = DEFAULT_MAX_PAGE_SIZE


def page_count(total: int, page_size: int) -> int:
    if total <= 0:
        return 0
    return math.ceil(total / page_size)


class ListingService:
    def __init__(self, store: ContentStore, config: ListingConfig | None = None) -> None:
        self._store = store
        self._config = config or ListingConfig()

    @property
    def config(self) -> ListingConfig:
        return self._config

    def validate(self, request: PageRequest) -> None:
        if request.page < 1:
            raise InvalidPageRequest(f"page must be 1 or greater, got {request.page}")
        if request.page_size <= 0:
            raise InvalidPageRequest(f"page size must be positive, got {request.page_size}")
        if request.page_size > self._config.max_page_size:
            raise InvalidPageRequest(
                f"page size {request.page_size} exceeds the maximum of {self._config.max_page_size}"
            )

    def list_posts(self, request: PageRequest) -> PageResult:
        self.validate(request)
        post_filter = request.to_filter()
        offset = (request.page - 1) * request.page_size
        try:
            total = self._store.count(post_filter)
            total_pages = page_count(total, request.page_size)
            if offset >= total:
                posts: list[Post] = []
            else:
                posts = list(
                    self._store.fetch(post_filter, offset, request.page_size, PostOrder.NEWEST_FIRST)
                )
        except StoreUnavailable:
            logger.warning("Content store unavailable while listing page %d", request.page)
            raise
        logger.debug(
            "Listed page %d/%d (%d of %d posts) for %r",
            request.page,
            total_pages,
            len(posts),
            total,
            post_filter,
        )
        return PageResult(
            posts=tuple(PostSummary.from_post(p) for p in posts[: request.page_size]),
            total_count=total,
            page=request.page,
            page_size=request.page_size,
            total_pages=total_pages,
        )

    def list_for_tag(self, tag: str, page: int, page_size: int, *, include_drafts: bool = False) -> PageResult:
        return self.list_posts(PageRequest(page=page, page_size=page_size, tag=tag, include_drafts=include_drafts))

    def list_for_author(
        self, username: str, page: int, page_size: int, *, include_drafts: bool = False
    ) -> PageResult:
        return self.list_posts(
            PageRequest(page=page, page_size=page_size, author=username, include_drafts=include_drafts)
        )

    def search(self, term: str | None, page: int, page_size: int, *, include_drafts: bool = False) -> PageResult:
        return self.list_posts(
            PageRequest(page=page, page_size=page_size, search_term=term, include_drafts=include_drafts)
        )
