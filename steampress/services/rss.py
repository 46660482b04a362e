from __future__ import annotations

from datetime import UTC, datetime
from html import escape

from .listing import ListingService, PageRequest, PostSummary
from .paths import BlogPathCreator


FEED_SIZE = 20


def _rfc822(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.astimezone()
    return value.astimezone(UTC).strftime("%a, %d %b %Y %H:%M:%S %z")


def _rss_item_xml(post: PostSummary, site_url: str, paths: BlogPathCreator) -> str:
    pub_date = _rfc822(post.created)
    link = escape(site_url.rstrip("/") + paths.post(post.slug))
    title = escape(post.title)
    description = escape(post.excerpt or post.title)
    categories = "".join(f"<category>{escape(t)}</category>" for t in post.tags)
    return (
        f"<item>"
        f"<title>{title}</title>"
        f"<link>{link}</link>"
        f"<guid>{link}</guid>"
        f"<pubDate>{pub_date}</pubDate>"
        f"<dc:creator>{escape(post.author_name)}</dc:creator>"
        f"{categories}"
        f"<description>{description}</description>"
        f"</item>"
    )


def render_rss(
    listing: ListingService,
    paths: BlogPathCreator,
    *,
    site_title: str,
    site_url: str,
    site_description: str,
) -> str:
    size = min(FEED_SIZE, listing.config.max_page_size)
    result = listing.list_posts(PageRequest(page=1, page_size=size))
    items = "".join(_rss_item_xml(p, site_url, paths) for p in result.posts)
    last_build_date = datetime.now(tz=UTC).strftime("%a, %d %b %Y %H:%M:%S %z")
    xml = (
        "<?xml version=\"1.0\" encoding=\"UTF-8\"?>"
        "<rss version=\"2.0\" xmlns:dc=\"http://purl.org/dc/elements/1.1/\">"
        "<channel>"
        f"<title>{escape(site_title)}</title>"
        f"<link>{escape(site_url.rstrip('/') + paths.index())}</link>"
        f"<description>{escape(site_description)}</description>"
        f"<lastBuildDate>{last_build_date}</lastBuildDate>"
        f"{items}"
        "</channel>"
        "</rss>"
    )
    return xml
