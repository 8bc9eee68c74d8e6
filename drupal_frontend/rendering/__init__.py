"""Turn JSON:API documents into template context and sanitized HTML."""

from .body import render_body, sanitize_html
from .entities import (
    EntityRendererRegistry,
    RenderContext,
    RenderedEntity,
    entity_renderers,
)
from .layout import LayoutRenderer
from .views import view_context

__all__ = [
    "EntityRendererRegistry",
    "LayoutRenderer",
    "RenderContext",
    "RenderedEntity",
    "entity_renderers",
    "render_body",
    "sanitize_html",
    "view_context",
]
