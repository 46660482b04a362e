from __future__ import annotations

from collections.abc import Mapping
from html import escape
from urllib.parse import urlencode

from ..services.listing import PageResult


def page_url(base_path: str, page: int, params: Mapping[str, str | None] | None = None) -> str:
    query: dict[str, str] = {k: v for k, v in (params or {}).items() if v}
    if page > 1:
        query["page"] = str(page)
    if not query:
        return base_path
    return f"{base_path}?{urlencode(query)}"


def _link(label: str, href: str | None, *, bootstrap4: bool, active: bool = False, aria: str = "") -> str:
    classes = ["page-item"] if bootstrap4 else []
    if active:
        classes.append("active")
    if href is None:
        classes.append("disabled")
    class_attr = f" class=\"{' '.join(classes)}\"" if classes else ""
    aria_attr = f" aria-label=\"{aria}\"" if aria else ""
    link_class = " class=\"page-link\"" if bootstrap4 else ""
    if href is None:
        inner = f"<span{link_class}{aria_attr}>{label}</span>"
    else:
        current = " aria-current=\"page\"" if active else ""
        inner = f"<a{link_class} href=\"{escape(href, quote=True)}\"{aria_attr}{current}>{label}</a>"
    return f"<li{class_attr}>{inner}</li>"


def render_paginator(
    result: PageResult,
    base_path: str,
    *,
    params: Mapping[str, str | None] | None = None,
    label: str = "Blog Post Pages",
    bootstrap4: bool = True,
) -> str:
    """Page navigation for a listing; empty when everything fits on one page."""
    if result.total_pages <= 1:
        return ""
    prev_href = page_url(base_path, min(result.page - 1, result.total_pages), params) if result.has_previous else None
    next_href = page_url(base_path, result.page + 1, params) if result.has_next else None
    items = [_link("&laquo;", prev_href, bootstrap4=bootstrap4, aria="Previous")]
    for number in range(1, result.total_pages + 1):
        items.append(
            _link(
                str(number),
                page_url(base_path, number, params),
                bootstrap4=bootstrap4,
                active=number == result.page,
            )
        )
    items.append(_link("&raquo;", next_href, bootstrap4=bootstrap4, aria="Next"))
    ul_class = "pagination justify-content-center" if bootstrap4 else "pagination"
    return f"<nav class=\"paginator\" aria-label=\"{escape(label)}\"><ul class=\"{ul_class}\">{''.join(items)}</ul></nav>"
