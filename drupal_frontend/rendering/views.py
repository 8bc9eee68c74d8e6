"""Listing (jsonapi_views) presentation helpers."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from urllib.parse import urlsplit

from ..backend.schemas import JsonApiDocument, JsonApiResource


@dataclass(frozen=True)
class ViewItem:
    title: str
    href: str
    date: str | None
    summary: str | None


@dataclass(frozen=True)
class Pagination:
    prev_href: str | None
    next_href: str | None

    @property
    def present(self) -> bool:
        return bool(self.prev_href or self.next_href)


def format_date(value: object) -> str | None:
    """``2024-01-15T10:00:00+00:00`` -> ``Jan 15, 2024``."""

    if not isinstance(value, str) or not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    return f"{parsed:%b} {parsed.day}, {parsed.year}"


def item_href(item: JsonApiResource) -> str:
    path = item.attr("path")
    if isinstance(path, dict) and isinstance(path.get("alias"), str) and path["alias"]:
        return path["alias"]
    return f"/{item.type.replace('--', '/', 1)}/{item.id}"


def view_item(item: JsonApiResource) -> ViewItem:
    body = item.attr("body")
    summary = body.get("summary") if isinstance(body, dict) else None
    return ViewItem(
        title=item.attr("title") or "Untitled",
        href=item_href(item),
        date=format_date(item.attr("created")),
        summary=summary or None,
    )


def _query_of(url: str | None) -> str | None:
    if not url:
        return None
    try:
        query = urlsplit(url).query
    except ValueError:
        return None
    return query or None


def pagination(document: JsonApiDocument, current_path: str) -> Pagination:
    """Pagination links that stay on the current frontend path.

    The query string of the backend's ``prev``/``next`` links is carried over
    unchanged; the backend host and path are dropped.
    """

    prev_query = _query_of(document.link("prev"))
    next_query = _query_of(document.link("next"))
    return Pagination(
        prev_href=f"{current_path}?{prev_query}" if prev_query else None,
        next_href=f"{current_path}?{next_query}" if next_query else None,
    )


def view_context(document: JsonApiDocument, current_path: str) -> dict:
    return {
        "items": [view_item(item) for item in document.items],
        "pagination": pagination(document, current_path),
    }
