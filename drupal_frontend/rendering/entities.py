"""Entity renderers keyed by JSON:API resource type."""

from __future__ import annotations

import json
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any

from ..backend.schemas import JsonApiDocument, JsonApiResource
from .body import render_body
from .media import extract_primary_image, image_element, to_html
from .views import format_date


@dataclass(frozen=True)
class RenderContext:
    """What a renderer may need beyond the resource itself."""

    document: JsonApiDocument
    base_url: str | None = None
    image_domains: Sequence[str] = ()

    @property
    def included(self) -> tuple[JsonApiResource, ...]:
        return self.document.included

    def body_html(self, value: Any, *, preset: str = "large") -> str:
        processed = value.get("processed") if isinstance(value, dict) else None
        if not isinstance(processed, str):
            return ""
        return render_body(
            processed,
            self.included,
            base_url=self.base_url,
            preset=preset,
            image_domains=self.image_domains,
        )


@dataclass(frozen=True)
class RenderedEntity:
    template: str
    context: dict[str, Any] = field(default_factory=dict)


EntityRenderer = Callable[[JsonApiResource, RenderContext], RenderedEntity]


class EntityRendererRegistry:
    """Lookup table from resource type to renderer with a mandatory fallback."""

    def __init__(self, default: EntityRenderer) -> None:
        self._default = default
        self._renderers: dict[str, EntityRenderer] = {}

    def register(self, resource_type: str, renderer: EntityRenderer | None = None):
        """Register ``renderer`` for ``resource_type``; usable as a decorator."""

        def decorator(func: EntityRenderer) -> EntityRenderer:
            self._renderers[resource_type] = func
            return func

        if renderer is not None:
            return decorator(renderer)
        return decorator

    def unregister(self, resource_type: str) -> None:
        self._renderers.pop(resource_type, None)

    def renderer_for(self, resource_type: str) -> EntityRenderer:
        return self._renderers.get(resource_type, self._default)

    def __contains__(self, resource_type: str) -> bool:
        return resource_type in self._renderers

    def render(self, resource: JsonApiResource, context: RenderContext) -> RenderedEntity:
        return self.renderer_for(resource.type)(resource, context)


def render_default(resource: JsonApiResource, context: RenderContext) -> RenderedEntity:
    body = context.body_html(resource.attr("body"))
    attributes = None
    if not body:
        attributes = json.dumps(dict(resource.attributes), indent=2, default=str)
    return RenderedEntity(
        "entity/default.html",
        {
            "title": resource.attr("title") or "Untitled",
            "resource_type": resource.type,
            "body": body,
            "attributes": attributes,
        },
    )


entity_renderers = EntityRendererRegistry(render_default)


@entity_renderers.register("node--page")
def render_page(resource: JsonApiResource, context: RenderContext) -> RenderedEntity:
    return RenderedEntity(
        "entity/page.html",
        {
            "title": resource.attr("title") or "Untitled",
            "body": context.body_html(resource.attr("body")),
        },
    )


@entity_renderers.register("node--article")
def render_article(resource: JsonApiResource, context: RenderContext) -> RenderedEntity:
    hero = extract_primary_image(resource, context.included, context.base_url)
    hero_html = ""
    if hero is not None:
        hero_html = to_html(
            image_element(
                hero, preset="hero", css_class="hero-image", image_domains=context.image_domains
            )
        )
    return RenderedEntity(
        "entity/article.html",
        {
            "title": resource.attr("title") or "Untitled",
            "date": format_date(resource.attr("created")),
            "hero": hero_html,
            "body": context.body_html(resource.attr("body")),
        },
    )
