from __future__ import annotations

from urllib.parse import quote


class BlogPathCreator:
    """Builds site-relative URLs under the optional blog prefix."""

    def __init__(self, blog_path: str | None = None) -> None:
        stripped = (blog_path or "").strip("/")
        self.prefix = f"/{stripped}" if stripped else ""

    def create_path(self, path: str | None = None, query: str | None = None) -> str:
        if path:
            url = f"{self.prefix}/{path.strip('/')}"
        else:
            url = f"{self.prefix}/"
        if query:
            url += "?" + query
        return url

    def index(self) -> str:
        return self.create_path()

    def post(self, slug: str) -> str:
        return self.create_path(f"posts/{quote(slug, safe='')}")

    def tags(self) -> str:
        return self.create_path("tags")

    def tag(self, name: str) -> str:
        return self.create_path(f"tags/{quote(name, safe='')}")

    def authors(self) -> str:
        return self.create_path("authors")

    def author(self, username: str) -> str:
        return self.create_path(f"authors/{quote(username, safe='')}")

    def search(self, term: str | None = None) -> str:
        if term:
            return self.create_path("search", f"term={quote(term)}")
        return self.create_path("search")

    def feed(self) -> str:
        return self.create_path("feed.xml")
