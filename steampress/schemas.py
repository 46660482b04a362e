from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from .services.listing import PageResult, PostSummary


class PostSummaryOut(BaseModel):
    id: int
    title: str
    slug: str
    excerpt: str
    created: datetime
    last_edited: datetime | None = None
    author_username: str
    author_name: str
    tags: list[str] = Field(default_factory=list)
    published: bool = True

    @classmethod
    def from_summary(cls, summary: PostSummary) -> PostSummaryOut:
        return cls(
            id=summary.id,
            title=summary.title,
            slug=summary.slug,
            excerpt=summary.excerpt,
            created=summary.created,
            last_edited=summary.last_edited,
            author_username=summary.author_username,
            author_name=summary.author_name,
            tags=list(summary.tags),
            published=summary.published,
        )


class PageOut(BaseModel):
    posts: list[PostSummaryOut]
    total_count: int
    page: int
    page_size: int
    total_pages: int
    has_next: bool
    has_previous: bool
    search_term: str | None = None

    @classmethod
    def from_result(cls, result: PageResult, *, search_term: str | None = None) -> PageOut:
        return cls(
            posts=[PostSummaryOut.from_summary(p) for p in result.posts],
            total_count=result.total_count,
            page=result.page,
            page_size=result.page_size,
            total_pages=result.total_pages,
            has_next=result.has_next,
            has_previous=result.has_previous,
            search_term=search_term,
        )


class ErrorOut(BaseModel):
    detail: str
