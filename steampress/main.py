from __future__ import annotations

import logging
from collections.abc import Callable

from fastapi import APIRouter, FastAPI, HTTPException, Request
from fastapi.responses import HTMLResponse, JSONResponse, Response
from starlette.staticfiles import StaticFiles

from .config import BlogConfig, load_config
from .schemas import ErrorOut, PageOut
from .services.errors import InvalidPageRequest, StoreUnavailable
from .services.listing import ListingService, PageRequest, PageResult
from .services.rss import render_rss
from .services.store import ContentStore, FrontmatterContentStore
from .views.pages import (
    STATIC_ROOT,
    SearchPageContext,
    SiteInfo,
    render_admin_page,
    render_author_page,
    render_authors_page,
    render_blog_index_page,
    render_post_page,
    render_search_page,
    render_tag_page,
    render_tags_page,
)

logger = logging.getLogger(__name__)

DraftCapability = Callable[[Request], bool]


def _never(request: Request) -> bool:
    return False


def _empty_page(page: int, page_size: int) -> PageResult:
    return PageResult(posts=(), total_count=0, page=page, page_size=page_size, total_pages=0)


def create_app(
    config: BlogConfig,
    store: ContentStore,
    *,
    can_view_drafts: DraftCapability | None = None,
) -> FastAPI:
    """Build the blog application around an explicit config and content store.

    ``can_view_drafts`` decides per request whether unpublished posts may be
    shown; by default nobody can see them.
    """
    listing = ListingService(store, config.listing_config())
    site = SiteInfo.from_config(config)
    paths = site.paths
    drafts_allowed = can_view_drafts or _never
    per_page = config.posts_per_page

    app = FastAPI(title=config.site_title)
    app.state.listing = listing
    app.state.config = config
    app.mount("/static", StaticFiles(directory=STATIC_ROOT), name="static")

    @app.exception_handler(InvalidPageRequest)
    async def invalid_page_handler(request: Request, exc: InvalidPageRequest) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.exception_handler(StoreUnavailable)
    async def store_unavailable_handler(request: Request, exc: StoreUnavailable) -> JSONResponse:
        logger.warning("Store unavailable serving %s: %s", request.url.path, exc)
        return JSONResponse(status_code=503, content={"detail": "Blog content is temporarily unavailable"})

    router = APIRouter(prefix=paths.prefix)

    @router.get("/", response_class=HTMLResponse)
    def blog_index(request: Request, page: int = 1) -> HTMLResponse:
        result = listing.list_posts(PageRequest(page=page, page_size=per_page))
        return HTMLResponse(render_blog_index_page(result, site))

    @router.get("/posts/{slug}", response_class=HTMLResponse)
    def blog_post(request: Request, slug: str) -> HTMLResponse:
        post = store.get_post(slug)
        if post is None or (not post.published and not drafts_allowed(request)):
            raise HTTPException(status_code=404, detail="Post not found")
        return HTMLResponse(render_post_page(post, site))

    if config.enable_tags_pages:

        @router.get("/tags", response_class=HTMLResponse)
        def all_tags(request: Request) -> HTMLResponse:
            tags = store.list_tags(include_drafts=drafts_allowed(request))
            return HTMLResponse(render_tags_page(tags, store.post_counts_by_tag(), site))

        @router.get("/tags/{name}", response_class=HTMLResponse)
        def tag_page(request: Request, name: str, page: int = 1) -> HTMLResponse:
            visible = drafts_allowed(request)
            tag = store.get_tag(name, include_drafts=visible)
            if tag is None:
                raise HTTPException(status_code=404, detail="Tag not found")
            result = listing.list_for_tag(tag.name, page, per_page, include_drafts=visible)
            return HTMLResponse(render_tag_page(tag, result, site))

    if config.enable_authors_pages:

        @router.get("/authors", response_class=HTMLResponse)
        def all_authors(request: Request) -> HTMLResponse:
            authors = store.list_authors(include_drafts=drafts_allowed(request))
            return HTMLResponse(render_authors_page(authors, store.post_counts_by_author(), site))

        @router.get("/authors/{username}", response_class=HTMLResponse)
        def author_page(request: Request, username: str, page: int = 1) -> HTMLResponse:
            visible = drafts_allowed(request)
            author = store.get_author(username, include_drafts=visible)
            if author is None:
                raise HTTPException(status_code=404, detail="Author not found")
            result = listing.list_for_author(author.username, page, per_page, include_drafts=visible)
            return HTMLResponse(render_author_page(author, result, site))

    @router.get("/search", response_class=HTMLResponse)
    def search(request: Request, term: str | None = None, page: int = 1) -> HTMLResponse:
        term = (term or "").strip() or None
        if term is None:
            listing.validate(PageRequest(page=page, page_size=per_page))
            result = _empty_page(page, per_page)
        else:
            result = listing.search(term, page, per_page)
        return HTMLResponse(render_search_page(SearchPageContext(search_term=term, result=result), site))

    @router.get("/feed.xml")
    def feed() -> Response:
        xml = render_rss(
            listing,
            paths,
            site_title=config.site_title,
            site_url=config.site_url,
            site_description=config.site_description,
        )
        return Response(content=xml, media_type="application/rss+xml")

    @router.get(
        "/api/posts",
        response_model=PageOut,
        responses={400: {"model": ErrorOut}, 403: {"model": ErrorOut}, 503: {"model": ErrorOut}},
    )
    def api_posts(
        request: Request,
        page: int = 1,
        size: int | None = None,
        term: str | None = None,
        tag: str | None = None,
        author: str | None = None,
        drafts: bool = False,
    ) -> PageOut:
        if drafts and not drafts_allowed(request):
            raise HTTPException(status_code=403, detail="Not allowed to view drafts")
        result = listing.list_posts(
            PageRequest(
                page=page,
                page_size=per_page if size is None else size,
                search_term=term,
                tag=tag,
                author=author,
                include_drafts=drafts,
            )
        )
        return PageOut.from_result(result, search_term=term)

    @router.get("/admin", response_class=HTMLResponse)
    def admin(request: Request, page: int = 1) -> HTMLResponse:
        if not drafts_allowed(request):
            raise HTTPException(status_code=403, detail="Admin access required")
        result = listing.list_posts(PageRequest(page=page, page_size=per_page, include_drafts=True))
        return HTMLResponse(render_admin_page(result, site))

    @router.get("/healthz")
    def healthz() -> dict[str, str]:
        return {"status": "ok"}

    app.include_router(router)
    logger.info("Blog mounted at %s", paths.index())
    return app


def create_default_app() -> FastAPI:
    """Factory for ``uvicorn --factory steampress.main:create_default_app``."""
    config = load_config()
    return create_app(config, FrontmatterContentStore(config.content_dir))
