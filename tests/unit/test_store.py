from datetime import datetime, timedelta
from pathlib import Path

import pytest

from conftest import ALICE, make_post
from steampress.services.content import Author, Post
from steampress.services.errors import StoreUnavailable
from steampress.services.listing import ListingService, PageRequest, PostFilter, PostOrder
from steampress.services.store import FrontmatterContentStore, InMemoryContentStore

REPO_CONTENT = Path(__file__).resolve().parents[2] / "content" / "posts"


def _write_post(root: Path, slug: str, frontmatter: str, body: str = "Body text.") -> None:
    post_dir = root / slug
    post_dir.mkdir(parents=True)
    (post_dir / "index.md").write_text(f"---\n{frontmatter}\n---\n\n{body}\n", encoding="utf-8")


def test_add_tag_returns_canonical_tag():
    store = InMemoryContentStore()
    first = store.add_tag("Python")
    again = store.add_tag("pYTHON")
    assert again is first
    store.add_post(make_post(1, tags=("pYTHON",)))
    assert [t.name for t in store.list_tags()] == ["Python"]
    assert store.get_post("post-1").tags[0].name == "Python"


def test_add_post_rejects_duplicates():
    store = InMemoryContentStore()
    store.add_post(make_post(1))
    with pytest.raises(ValueError):
        store.add_post(make_post(1, title="Other"))
    clash = make_post(3)
    with pytest.raises(ValueError):
        store.add_post(Post(id=3, title="x", slug="post-1", body="", created=clash.created, author=ALICE))


def test_rejected_post_leaves_no_tags_or_authors_behind():
    store = InMemoryContentStore()
    store.add_post(make_post(1))
    carol = Author(username="carol", name="Carol")
    with pytest.raises(ValueError):
        store.add_post(make_post(1, author=carol, tags=("Ghost",)))
    assert store.get_tag("ghost", include_drafts=True) is None
    assert store.get_author("carol", include_drafts=True) is None
    assert store.list_tags(include_drafts=True) == []


def test_add_post_rejects_future_published_posts():
    store = InMemoryContentStore()
    future = make_post(1, days=10_000)
    with pytest.raises(ValueError):
        store.add_post(future)
    store.add_post(make_post(2, days=10_000, published=False))
    assert store.count(PostFilter(include_drafts=True)) == 1


def test_counts_only_cover_published_posts(mixed_store):
    assert mixed_store.post_counts_by_tag() == {"python": 4, "web": 3}
    assert mixed_store.post_counts_by_author() == {"alice": 3, "bob": 3}


def test_lookups(mixed_store):
    assert mixed_store.get_post("post-3").id == 3
    assert mixed_store.get_post("missing") is None
    assert mixed_store.get_author("bob").name == "Bob Builder"
    assert mixed_store.get_tag("WEB").name == "web"
    assert [a.username for a in mixed_store.list_authors()] == ["alice", "bob"]


def test_draft_only_tags_and_authors_are_hidden():
    store = InMemoryContentStore()
    carol = Author(username="carol", name="Carol")
    store.add_post(make_post(1, tags=("python",)))
    store.add_post(make_post(2, author=carol, tags=("secret-launch",), published=False))
    assert store.get_tag("secret-launch") is None
    assert store.get_author("carol") is None
    assert [t.name for t in store.list_tags()] == ["python"]
    assert [a.username for a in store.list_authors()] == ["alice"]

    assert store.get_tag("Secret-Launch", include_drafts=True).name == "secret-launch"
    assert store.get_author("carol", include_drafts=True) == carol
    assert [t.name for t in store.list_tags(include_drafts=True)] == ["python", "secret-launch"]
    assert [a.username for a in store.list_authors(include_drafts=True)] == ["alice", "carol"]


def test_fetch_honours_offset_and_limit(twelve_posts):
    posts = twelve_posts.fetch(PostFilter(), 3, 4, PostOrder.NEWEST_FIRST)
    assert [p.id for p in posts] == [9, 8, 7, 6]


def test_frontmatter_store_reads_posts(tmp_path):
    _write_post(tmp_path, "first", "id: 1\ntitle: First\ndate: 2024-02-01\nauthor: alice\nauthor_name: Alice\ntags: [Python]")
    _write_post(tmp_path, "second", "id: 2\ntitle: Second\ndate: 2024-03-01T10:00:00\ntags: python")
    _write_post(tmp_path, "hidden", "id: 3\ntitle: Hidden\ndate: 2024-04-01\ndraft: true")
    store = FrontmatterContentStore(tmp_path)

    service = ListingService(store)
    result = service.list_posts(PageRequest(page=1, page_size=10))
    assert [p.slug for p in result.posts] == ["second", "first"]
    assert result.posts[1].author_name == "Alice"
    assert result.posts[0].author_username == "admin"
    assert service.list_for_tag("PYTHON", 1, 10).total_count == 2
    assert store.get_post("hidden").published is False
    assert store.post_counts_by_tag() == {"python": 2}


def test_frontmatter_store_hides_future_posts(tmp_path):
    future = (datetime.now() + timedelta(days=30)).date().isoformat()
    _write_post(tmp_path, "scheduled", f"id: 9\ntitle: Scheduled\ndate: {future}")
    store = FrontmatterContentStore(tmp_path)
    assert store.count(PostFilter()) == 0
    assert store.count(PostFilter(include_drafts=True)) == 1


def test_frontmatter_store_derives_stable_ids(tmp_path):
    _write_post(tmp_path, "no-id", "title: No id\ndate: 2024-01-01")
    first = FrontmatterContentStore(tmp_path).get_post("no-id")
    second = FrontmatterContentStore(tmp_path).get_post("no-id")
    assert first.id == second.id


def test_frontmatter_store_skips_broken_files(tmp_path):
    _write_post(tmp_path, "good", "id: 1\ntitle: Good\ndate: 2024-01-01")
    _write_post(tmp_path, "bad", "id: not-a-number\ntitle: Bad")
    store = FrontmatterContentStore(tmp_path)
    assert [p.slug for p in store.fetch(PostFilter(), 0, 10, PostOrder.NEWEST_FIRST)] == ["good"]


def test_frontmatter_store_hides_draft_only_tags_and_authors(tmp_path):
    _write_post(tmp_path, "public", "id: 1\ntitle: Public\ndate: 2024-01-01\nauthor: alice\ntags: [python]")
    _write_post(tmp_path, "plans", "id: 2\ntitle: Plans\ndate: 2024-01-02\nauthor: carol\ntags: [secret-launch]\ndraft: true")
    store = FrontmatterContentStore(tmp_path)
    assert store.get_tag("secret-launch") is None
    assert store.get_author("carol") is None
    assert [t.name for t in store.list_tags()] == ["python"]
    assert [a.username for a in store.list_authors()] == ["alice"]
    assert store.get_tag("secret-launch", include_drafts=True) is not None
    assert store.get_author("carol", include_drafts=True).username == "carol"


def test_frontmatter_store_skips_duplicate_ids(tmp_path):
    _write_post(tmp_path, "a-first", "id: 1\ntitle: First\ndate: 2024-01-01")
    _write_post(tmp_path, "b-second", "id: 1\ntitle: Second\ndate: 2024-01-02")
    store = FrontmatterContentStore(tmp_path)
    assert store.count(PostFilter(include_drafts=True)) == 1
    assert store.get_post("a-first").title == "First"
    assert store.get_post("b-second") is None


def test_missing_content_dir_is_empty(tmp_path):
    store = FrontmatterContentStore(tmp_path / "nope")
    assert store.count(PostFilter()) == 0


def test_unreadable_content_dir_raises_store_unavailable(tmp_path):
    not_a_dir = tmp_path / "posts"
    not_a_dir.write_text("oops", encoding="utf-8")
    store = FrontmatterContentStore(not_a_dir)
    with pytest.raises(StoreUnavailable):
        store.count(PostFilter())


def test_repo_sample_post_loads():
    post = FrontmatterContentStore(REPO_CONTENT).get_post("hello-world")
    assert post is not None
    assert "Hello" in post.title
    assert "Hello" in post.html
