from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from steampress.services.content import Author, Post, Tag
from steampress.services.store import InMemoryContentStore

BASE_DATE = datetime(2024, 1, 1, 12, 0)

ALICE = Author(username="alice", name="Alice Liddell", biography="Writes about rabbits.")
BOB = Author(username="bob", name="Bob Builder", twitter_handle="bobbuilds")


def make_post(
    post_id: int,
    *,
    title: str | None = None,
    body: str | None = None,
    days: int | None = None,
    author: Author = ALICE,
    tags: tuple[str, ...] = (),
    published: bool = True,
) -> Post:
    return Post(
        id=post_id,
        title=title or f"Post {post_id}",
        slug=f"post-{post_id}",
        body=body or f"Body of post {post_id}.",
        created=BASE_DATE + timedelta(days=post_id if days is None else days),
        author=author,
        published=published,
        tags=tuple(Tag(t) for t in tags),
    )


@pytest.fixture
def twelve_posts() -> InMemoryContentStore:
    store = InMemoryContentStore()
    for i in range(1, 13):
        store.add_post(make_post(i))
    return store


@pytest.fixture
def mixed_store() -> InMemoryContentStore:
    """Overlapping tag/author sets plus drafts."""
    store = InMemoryContentStore()
    store.add_post(make_post(1, author=ALICE, tags=("Python",)))
    store.add_post(make_post(2, author=ALICE, tags=("python", "web")))
    store.add_post(make_post(3, author=BOB, tags=("Python",)))
    store.add_post(make_post(4, author=BOB, tags=("web",)))
    store.add_post(make_post(5, author=ALICE, tags=("web",), title="Searching for Needles"))
    store.add_post(make_post(6, author=BOB, tags=("python",), body="A haystack with a NEEDLE inside."))
    store.add_post(make_post(7, author=ALICE, tags=("python",), published=False, title="Draft needle"))
    store.add_post(make_post(8, author=BOB, tags=("web",), published=False))
    return store
