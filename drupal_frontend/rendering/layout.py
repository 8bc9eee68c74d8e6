"""Render Layout Builder trees returned by the layout resolver."""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from markupsafe import Markup

from ..backend.schemas import JsonApiDocument
from ..errors import ResourceError
from .entities import RenderContext

logger = logging.getLogger(__name__)

DEFAULT_REGION = "content"

BlockFetcher = Callable[[str], JsonApiDocument]


@dataclass(frozen=True)
class RenderedComponent:
    uuid: str
    plugin_id: str | None
    html: Markup


@dataclass(frozen=True)
class RenderedRegion:
    name: str
    components: tuple[RenderedComponent, ...]


@dataclass(frozen=True)
class RenderedSection:
    layout_id: str | None
    regions: tuple[RenderedRegion, ...]


def _components(section: Mapping[str, Any]) -> list[Mapping[str, Any]]:
    components = section.get("components")
    if not isinstance(components, list):
        return []
    return [component for component in components if isinstance(component, Mapping)]


def _weight(component: Mapping[str, Any]) -> float:
    weight = component.get("weight")
    if isinstance(weight, int | float) and not isinstance(weight, bool):
        return weight
    return 0


def group_by_region(
    components: Sequence[Mapping[str, Any]],
) -> dict[str, list[Mapping[str, Any]]]:
    """Components per region, each region ordered by weight."""

    regions: dict[str, list[Mapping[str, Any]]] = {}
    for component in components:
        region = component.get("region") or DEFAULT_REGION
        regions.setdefault(str(region), []).append(component)
    for items in regions.values():
        items.sort(key=_weight)
    return regions


def _inline_block_locator(component: Mapping[str, Any]) -> str | None:
    inline_block = component.get("inline_block")
    if not isinstance(inline_block, Mapping):
        return None
    block = inline_block.get("block")
    if not isinstance(block, Mapping):
        return None
    locator = block.get("jsonapi_url")
    return locator if isinstance(locator, str) and locator else None


def _dump(value: Any) -> Markup:
    text = json.dumps(value, indent=2, default=str)
    return Markup('<pre class="field-dump">{}</pre>').format(text)


class LayoutRenderer:
    """Turn a layout tree plus the entity document into rendered sections."""

    def __init__(self, context: RenderContext, fetch_block: BlockFetcher) -> None:
        self._context = context
        self._fetch_block = fetch_block

    def render(self, layout: Mapping[str, Any]) -> list[RenderedSection]:
        sections = layout.get("sections")
        if not isinstance(sections, list):
            return []

        rendered = []
        for section in sections:
            if not isinstance(section, Mapping):
                continue
            regions = tuple(
                RenderedRegion(
                    name=name,
                    components=tuple(
                        RenderedComponent(
                            uuid=str(component.get("uuid", "")),
                            plugin_id=component.get("plugin_id"),
                            html=html,
                        )
                        for component in components
                        if (html := self.render_component(component))
                    ),
                )
                for name, components in group_by_region(_components(section)).items()
            )
            rendered.append(RenderedSection(layout_id=section.get("layout_id"), regions=regions))
        return rendered

    def render_component(self, component: Mapping[str, Any]) -> Markup:
        kind = component.get("type")
        if kind == "field":
            return self._render_field(component)
        if kind == "inline_block":
            return self._render_inline_block(component)
        return Markup("")

    def _render_field(self, component: Mapping[str, Any]) -> Markup:
        field = component.get("field")
        field_name = field.get("field_name") if isinstance(field, Mapping) else None
        entity = self._context.document.primary
        if not field_name or entity is None:
            return Markup("")

        if field_name == "title":
            return Markup('<h1 class="page-title">{}</h1>').format(
                entity.attr("title") or "Untitled"
            )

        value = entity.attr(field_name)
        if value is None or value == "" or value is False:
            return Markup("")
        if isinstance(value, str | int | float | bool):
            return Markup('<div class="field-value">{}</div>').format(value)
        body = self._context.body_html(value)
        if body:
            return Markup('<div class="rich-text">{}</div>').format(Markup(body))
        return _dump(value)

    def _render_inline_block(self, component: Mapping[str, Any]) -> Markup:
        locator = _inline_block_locator(component)
        if locator is None:
            return Markup("")
        try:
            document = self._fetch_block(locator)
        except ResourceError as exc:
            logger.info(
                "Skipping inline block: %s",
                exc.message,
                extra={"event": "layout.inline_block", "status": "skipped"},
            )
            return Markup("")

        block = document.primary
        if block is None:
            return Markup("")

        title = block.attr("info") or block.attr("title")
        block_context = RenderContext(
            document=document,
            base_url=self._context.base_url,
            image_domains=self._context.image_domains,
        )
        body = block_context.body_html(block.attr("body"))
        parts = [Markup('<aside class="inline-block">')]
        if title:
            parts.append(Markup("<h2>{}</h2>").format(title))
        parts.append(Markup(body) if body else _dump(dict(block.attributes)))
        parts.append(Markup("</aside>"))
        return Markup("").join(parts)
