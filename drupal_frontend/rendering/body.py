"""Sanitize rich text and replace embedded media placeholders."""

from __future__ import annotations

from collections.abc import Sequence

import bleach
from lxml import etree, html
from lxml.html import builder as E

from ..backend.schemas import JsonApiResource
from .media import extract_media, media_element, resolve_file_url

ALLOWED_TAGS = frozenset(
    {
        "p", "br", "strong", "em", "b", "i", "u", "s",
        "h1", "h2", "h3", "h4", "h5", "h6",
        "ul", "ol", "li",
        "a", "img",
        "blockquote", "pre", "code",
        "table", "thead", "tbody", "tr", "th", "td",
        "figure", "figcaption",
        "div", "span",
        "hr",
    }
)  # fmt: skip

ALLOWED_ATTRIBUTES = {
    "*": ["class", "id", "title"],
    "a": ["href", "target", "rel"],
    "img": ["src", "alt", "width", "height"],
    "td": ["colspan", "rowspan"],
    "th": ["colspan", "rowspan"],
}

MEDIA_TAG = "drupal-media"
MEDIA_ATTRIBUTES = ["data-entity-type", "data-entity-uuid", "data-align", "data-caption"]

ALIGN_CLASSES = {
    "center": "align-center",
    "left": "align-left",
    "right": "align-right",
}


def sanitize_html(value: str, *, allow_media: bool = False) -> str:
    """Strip everything outside the rich-text allow-list."""

    tags = set(ALLOWED_TAGS)
    attributes = dict(ALLOWED_ATTRIBUTES)
    if allow_media:
        tags.add(MEDIA_TAG)
        attributes[MEDIA_TAG] = MEDIA_ATTRIBUTES
    return bleach.clean(value, tags=tags, attributes=attributes, strip=True)


def _media_by_uuid(
    uuid: str, included: Sequence[JsonApiResource]
) -> JsonApiResource | None:
    return next(
        (item for item in included if item.id == uuid and item.type.startswith("media--")),
        None,
    )


def _replace_media(
    placeholder: etree._Element,
    included: Sequence[JsonApiResource],
    base_url: str | None,
    *,
    preset: str,
    image_domains: Sequence[str],
) -> None:
    uuid = placeholder.get("data-entity-uuid")
    media = extract_media(_media_by_uuid(uuid, included), included, base_url) if uuid else None
    rendered = (
        media_element(media, preset=preset, css_class="rounded", image_domains=image_domains)
        if media is not None
        else None
    )

    if rendered is None:
        placeholder.drop_tree()
        return

    classes = ["embedded-media"]
    align = ALIGN_CLASSES.get(placeholder.get("data-align", "none"))
    if align:
        classes.append(align)
    figure = E.FIGURE(rendered, E.CLASS(" ".join(classes)))

    caption = placeholder.get("data-caption")
    if caption:
        figcaption = E.FIGCAPTION()
        for part in html.fragments_fromstring(sanitize_html(caption)):
            if isinstance(part, str):
                if len(figcaption):
                    figcaption[-1].tail = (figcaption[-1].tail or "") + part
                else:
                    figcaption.text = (figcaption.text or "") + part
            else:
                figcaption.append(part)
        figure.append(figcaption)

    figure.tail = placeholder.tail
    placeholder.getparent().replace(placeholder, figure)


def _absolutize_urls(root: etree._Element, base_url: str | None) -> None:
    for element in root.iter("img"):
        src = element.get("src")
        resolved = resolve_file_url(src, base_url)
        if resolved:
            element.set("src", resolved)
    for element in root.iter("a"):
        href = element.get("href")
        if href and "/files/" in href:
            resolved = resolve_file_url(href, base_url)
            if resolved:
                element.set("href", resolved)


def render_body(
    value: str | None,
    included: Sequence[JsonApiResource] = (),
    *,
    base_url: str | None = None,
    preset: str = "large",
    image_domains: Sequence[str] = (),
) -> str:
    """Sanitized HTML for a processed text field.

    ``<drupal-media>`` placeholders are swapped for rendered media found in
    ``included``; placeholders without matching media are removed. Relative
    image sources and file links become absolute against ``base_url``.
    """

    if not value or not value.strip():
        return ""

    cleaned = sanitize_html(value, allow_media=True)
    root = html.fragment_fromstring(cleaned, create_parent="div")

    for placeholder in list(root.iter(MEDIA_TAG)):
        _replace_media(
            placeholder, included, base_url, preset=preset, image_domains=image_domains
        )
    _absolutize_urls(root, base_url)

    serialized = etree.tostring(root, encoding="unicode", method="html")
    # Drop the wrapper added by fragment_fromstring.
    return serialized[len("<div>") : -len("</div>")]
