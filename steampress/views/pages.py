from __future__ import annotations

import hashlib
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import datetime
from functools import lru_cache
from html import escape
from pathlib import Path

from ..config import BlogConfig
from ..services.content import Author, Post, Tag, syntax_highlight_css
from ..services.listing import PageResult, PostSummary
from ..services.paths import BlogPathCreator
from .pagination import render_paginator

STATIC_ROOT = Path(__file__).resolve().parent.parent / "static"


@lru_cache(maxsize=None)
def static_url(path: str) -> str:
    file_path = STATIC_ROOT / path
    try:
        digest = hashlib.sha1(file_path.read_bytes()).hexdigest()[:12]
    except FileNotFoundError:
        return f"/static/{path}"
    return f"/static/{path}?v={digest}"


@dataclass(frozen=True)
class SiteInfo:
    """Per-site values every page needs."""

    title: str
    paths: BlogPathCreator
    bootstrap4: bool = True
    enable_tags_pages: bool = True
    enable_authors_pages: bool = True
    disqus_name: str | None = None
    twitter_handle: str | None = None

    @classmethod
    def from_config(cls, config: BlogConfig) -> SiteInfo:
        return cls(
            title=config.site_title,
            paths=BlogPathCreator(config.blog_path),
            bootstrap4=config.use_bootstrap4,
            enable_tags_pages=config.enable_tags_pages,
            enable_authors_pages=config.enable_authors_pages,
            disqus_name=config.disqus_name,
            twitter_handle=config.site_twitter_handle,
        )


@dataclass(frozen=True)
class SearchPageContext:
    search_term: str | None
    result: PageResult
    title: str = "Search Blog"

    @property
    def total_results(self) -> int:
        return self.result.total_count


def _layout(title: str, body: str, site: SiteInfo) -> str:
    paths = site.paths
    nav = [f"<a href=\"{paths.index()}\">Blog</a>"]
    if site.enable_tags_pages:
        nav.append(f"<a href=\"{paths.tags()}\">Tags</a>")
    if site.enable_authors_pages:
        nav.append(f"<a href=\"{paths.authors()}\">Authors</a>")
    nav.append(f"<a class=\"rss\" href=\"{paths.feed()}\">RSS</a>")
    twitter_meta = (
        f"<meta name=\"twitter:site\" content=\"@{escape(site.twitter_handle)}\" />" if site.twitter_handle else ""
    )
    return f"""
<!doctype html>
<html lang=\"en\">
  <head>
    <meta charset=\"utf-8\" />
    <meta name=\"viewport\" content=\"width=device-width, initial-scale=1\" />
    <title>{escape(title)} | {escape(site.title)}</title>
    <link rel=\"stylesheet\" href=\"{static_url('base.css')}\" />
    <link rel=\"alternate\" type=\"application/rss+xml\" href=\"{paths.feed()}\" />
    {twitter_meta}
    <style>{syntax_highlight_css()}</style>
  </head>
  <body>
    <header>
      <nav>
        {' '.join(nav)}
        <form class=\"search\" action=\"{paths.search()}\" method=\"get\">
          <input type=\"search\" name=\"term\" placeholder=\"Search\" aria-label=\"Search\" />
        </form>
      </nav>
    </header>
    <main id=\"content\">
      {body}
    </main>
    <footer>
      <small>© {datetime.now().year} {escape(site.title)}</small>
    </footer>
  </body>
</html>
"""


def _tag_links(names: Iterable[str], site: SiteInfo) -> str:
    if site.enable_tags_pages:
        links = [f"<a class=\"tag\" href=\"{site.paths.tag(n)}\">#{escape(n)}</a>" for n in names]
    else:
        links = [f"<span class=\"tag\">#{escape(n)}</span>" for n in names]
    return " ".join(links)


def _author_link(username: str, name: str, site: SiteInfo) -> str:
    if site.enable_authors_pages:
        return f"<a class=\"author\" href=\"{site.paths.author(username)}\">{escape(name)}</a>"
    return f"<span class=\"author\">{escape(name)}</span>"


def _summary_item(p: PostSummary, site: SiteInfo) -> str:
    tags = _tag_links(p.tags, site)
    return (
        f"<li class=\"post-summary\">"
        f"<h2><a href=\"{site.paths.post(p.slug)}\">{escape(p.title)}</a></h2>"
        f"<p class=\"meta\"><time datetime=\"{p.created.isoformat()}\">{p.created.date()}</time> "
        f"by {_author_link(p.author_username, p.author_name, site)}"
        + (f" — {tags}" if tags else "")
        + "</p>"
        f"<p class=\"excerpt\">{escape(p.excerpt)}</p>"
        "</li>"
    )


def _post_list(
    result: PageResult,
    site: SiteInfo,
    base_path: str,
    *,
    params: Mapping[str, str | None] | None = None,
    empty: str = "No posts yet.",
) -> str:
    if not result.posts:
        return f"<p class=\"empty\">{escape(empty)}</p>"
    items = "\n".join(_summary_item(p, site) for p in result.posts)
    paginator = render_paginator(result, base_path, params=params, bootstrap4=site.bootstrap4)
    return f"<ul class=\"posts\">{items}</ul>{paginator}"


def render_blog_index_page(result: PageResult, site: SiteInfo) -> str:
    empty = "There are no more posts." if result.is_out_of_range and result.total_count else "No posts yet."
    body = f"""
    <section>
      <h1>Blog</h1>
      {_post_list(result, site, site.paths.index(), empty=empty)}
    </section>
    """
    return _layout("Blog", body, site)


def render_post_page(post: Post, site: SiteInfo) -> str:
    updated = (
        f" <span class=\"updated\">(updated <time datetime=\"{post.last_edited.isoformat()}\">"
        f"{post.last_edited.date()}</time>)</span>"
        if post.last_edited
        else ""
    )
    draft = "<p class=\"draft-banner\">Draft</p>" if not post.published else ""
    tags = _tag_links((t.name for t in post.tags), site)
    comments = ""
    if site.disqus_name:
        comments = (
            "<div id=\"disqus_thread\"></div>"
            f"<script src=\"https://{escape(site.disqus_name)}.disqus.com/embed.js\" async></script>"
        )
    body = f"""
    <article>
      {draft}
      <h1>{escape(post.title)}</h1>
      <p class=\"meta\"><time datetime=\"{post.created.isoformat()}\">{post.created.date()}</time>{updated}
        by {_author_link(post.author.username, post.author.name, site)}</p>
      <div class=\"post\">{post.html}</div>
      <p class=\"tags\">{tags}</p>
      {comments}
    </article>
    """
    return _layout(post.title, body, site)


def render_tags_page(tags: Iterable[Tag], counts: Mapping[str, int], site: SiteInfo) -> str:
    items = "\n".join(
        f"<li><a href=\"{site.paths.tag(t.name)}\">{escape(t.name)}</a> <span class=\"count\">{counts.get(t.key, 0)}</span></li>"
        for t in tags
    )
    body = f"""
    <section>
      <h1>Tags</h1>
      <ul class=\"tags\">{items}</ul>
    </section>
    """
    return _layout("Tags", body, site)


def render_tag_page(tag: Tag, result: PageResult, site: SiteInfo) -> str:
    body = f"""
    <section>
      <h1>Posts tagged #{escape(tag.name)}</h1>
      <p class=\"count\">{result.total_count} posts</p>
      {_post_list(result, site, site.paths.tag(tag.name), empty="No posts with this tag.")}
    </section>
    """
    return _layout(f"#{tag.name}", body, site)


def render_authors_page(authors: Iterable[Author], counts: Mapping[str, int], site: SiteInfo) -> str:
    items = "\n".join(
        f"<li>{_author_link(a.username, a.name, site)} <span class=\"count\">{counts.get(a.username, 0)}</span></li>"
        for a in authors
    )
    body = f"""
    <section>
      <h1>Authors</h1>
      <ul class=\"authors\">{items}</ul>
    </section>
    """
    return _layout("Authors", body, site)


def render_author_page(author: Author, result: PageResult, site: SiteInfo) -> str:
    bio = f"<p class=\"biography\">{escape(author.biography)}</p>" if author.biography else ""
    twitter = (
        f"<p class=\"twitter\"><a href=\"https://twitter.com/{escape(author.twitter_handle)}\">"
        f"@{escape(author.twitter_handle)}</a></p>"
        if author.twitter_handle
        else ""
    )
    body = f"""
    <section>
      <h1>{escape(author.name)}</h1>
      {bio}
      {twitter}
      <p class=\"count\">{result.total_count} posts</p>
      {_post_list(result, site, site.paths.author(author.username), empty="No posts by this author.")}
    </section>
    """
    return _layout(author.name, body, site)


def render_search_page(context: SearchPageContext, site: SiteInfo) -> str:
    term = context.search_term or ""
    if not term:
        listing = "<p class=\"empty\">Enter a search term.</p>"
    else:
        listing = _post_list(
            context.result,
            site,
            site.paths.search(),
            params={"term": term},
            empty="No posts matched your search.",
        )
    body = f"""
    <section>
      <h1>{escape(context.title)}</h1>
      <form action=\"{site.paths.search()}\" method=\"get\">
        <input type=\"search\" name=\"term\" value=\"{escape(term, quote=True)}\" aria-label=\"Search term\" />
      </form>
      <p class=\"count\">{context.total_results} results</p>
      {listing}
    </section>
    """
    return _layout(context.title, body, site)


def render_admin_page(result: PageResult, site: SiteInfo) -> str:
    rows = "\n".join(
        (
            f"<tr><td><a href=\"{site.paths.post(p.slug)}\">{escape(p.title)}</a></td>"
            f"<td>{escape(p.author_name)}</td>"
            f"<td>{'Published' if p.published else 'Draft'}</td>"
            f"<td><time datetime=\"{p.created.isoformat()}\">{p.created.date()}</time></td></tr>"
        )
        for p in result.posts
    )
    paginator = render_paginator(result, site.paths.create_path("admin"), bootstrap4=site.bootstrap4)
    body = f"""
    <section>
      <h1>Blog Admin</h1>
      <table class=\"admin-posts\">
        <thead><tr><th>Title</th><th>Author</th><th>Status</th><th>Created</th></tr></thead>
        <tbody>{rows}</tbody>
      </table>
      {paginator}
    </section>
    """
    return _layout("Blog Admin", body, site)
