"""Extract renderable media from JSON:API documents and build its markup."""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from urllib.parse import urlsplit

from lxml import etree
from lxml.html import builder as E

from ..backend.schemas import JsonApiResource, Relationship, ResourceRef

IMAGE = "image"
VIDEO = "video"
REMOTE_VIDEO = "remote_video"
FILE = "file"
AUDIO = "audio"
UNKNOWN = "unknown"

PRIMARY_IMAGE_FIELDS = (
    "field_image",
    "field_media_image",
    "field_media",
    "field_thumbnail",
    "field_hero_image",
)

# (width, height); 0 means derived from the original dimensions.
IMAGE_PRESETS = {
    "thumbnail": (150, 150),
    "medium": (500, 0),
    "large": (1000, 0),
    "hero": (1920, 400),
    "full": (0, 0),
}

EMBED_ALLOW = "accelerometer; autoplay; clipboard-write; encrypted-media; gyroscope; picture-in-picture"

_YOUTUBE = re.compile(r"(?:youtube\.com/(?:watch\?v=|embed/)|youtu\.be/)([a-zA-Z0-9_-]+)")
_VIMEO = re.compile(r"vimeo\.com/(\d+)")
_STYLE_SEGMENT = re.compile(r"/styles/[^/]+/")
_FILES_PATH = re.compile(r"(.+/files/)(.+)$")


@dataclass(frozen=True)
class ImageData:
    src: str
    alt: str = ""
    width: int | None = None
    height: int | None = None
    title: str | None = None


@dataclass(frozen=True)
class MediaData:
    type: str
    name: str
    resource: JsonApiResource
    url: str | None = None
    image: ImageData | None = None
    mime_type: str | None = None
    embed_url: str | None = None


def resolve_file_url(url: str | None, base_url: str | None) -> str | None:
    """Make a backend file URL absolute.

    Absolute and ``data:`` URLs are returned unchanged, protocol-relative URLs
    get ``https:``, anything else is joined onto ``base_url``.
    """

    if not url:
        return None
    if url.startswith(("http://", "https://", "data:")):
        return url
    if url.startswith("//"):
        return f"https:{url}"
    if "://" in url or not base_url:
        return None
    path = url if url.startswith("/") else f"/{url}"
    return f"{base_url.rstrip('/')}{path}"


def file_url(file: JsonApiResource | None, base_url: str | None) -> str | None:
    if file is None:
        return None
    uri = file.attr("uri")
    candidates = []
    if isinstance(uri, dict):
        candidates.extend([uri.get("url"), uri.get("value")])
    candidates.append(file.attr("url"))
    for candidate in candidates:
        if isinstance(candidate, str):
            resolved = resolve_file_url(candidate, base_url)
            if resolved:
                return resolved
    return None


def image_style_url(original_url: str, style: str, base_url: str | None = None) -> str:
    """URL of the ``style`` derivative of a public image."""

    resolved = resolve_file_url(original_url, base_url)
    if not resolved:
        return original_url
    if "/styles/" in resolved:
        return _STYLE_SEGMENT.sub(f"/styles/{style}/", resolved, count=1)
    match = _FILES_PATH.match(resolved)
    if match:
        return f"{match.group(1)}styles/{style}/public/{match.group(2)}"
    return resolved


def video_embed_url(url: str) -> str | None:
    match = _YOUTUBE.search(url)
    if match:
        return f"https://www.youtube.com/embed/{match.group(1)}"
    match = _VIMEO.search(url)
    if match:
        return f"https://player.vimeo.com/video/{match.group(1)}"
    return None


def image_allowed(src: str, image_domains: Sequence[str]) -> bool:
    """Images render only from the allow-listed hosts when any are configured."""

    if not image_domains:
        return True
    if src.startswith("data:"):
        return False
    host = (urlsplit(src).hostname or "").lower()
    return host in image_domains


def find_included(
    included: Iterable[JsonApiResource], resource_type: str, resource_id: str
) -> JsonApiResource | None:
    return next(
        (item for item in included if item.type == resource_type and item.id == resource_id),
        None,
    )


def _find_ref(included: Sequence[JsonApiResource], ref: ResourceRef | None) -> JsonApiResource | None:
    if ref is None:
        return None
    return find_included(included, ref.type, ref.id)


def find_related(
    included: Sequence[JsonApiResource], relationship: Relationship | None
) -> list[JsonApiResource]:
    if relationship is None:
        return []
    found = (find_included(included, ref.type, ref.id) for ref in relationship.refs)
    return [item for item in found if item is not None]


def _meta_string(relationship: Relationship | None, key: str) -> str | None:
    if relationship is None or relationship.first is None:
        return None
    value = relationship.first.meta.get(key)
    if isinstance(value, str) and value.strip():
        return value
    return None


def image_from_file(file: JsonApiResource | None, base_url: str | None) -> ImageData | None:
    src = file_url(file, base_url)
    if file is None or not src:
        return None
    styled = bool(file.attr("image_style_uri"))
    width = file.attr("width")
    height = file.attr("height")
    return ImageData(
        src=src,
        alt=file.attr("filename") or "",
        width=None if styled or not isinstance(width, int) else width,
        height=None if styled or not isinstance(height, int) else height,
    )


def extract_media(
    media: JsonApiResource | None,
    included: Sequence[JsonApiResource],
    base_url: str | None,
) -> MediaData | None:
    """Describe a ``media--*`` resource in a form templates can render."""

    if media is None:
        return None

    name = media.attr("name") or ""
    media_type = media.type.removeprefix("media--")
    relationships = media.relationships

    if media_type == "image":
        relationship = relationships.get("field_media_image")
        image = image_from_file(_find_ref(included, relationship and relationship.first), base_url)
        if image is None:
            return MediaData(IMAGE, name, media)
        image = ImageData(
            src=image.src,
            alt=_meta_string(relationship, "alt") or image.alt or name,
            width=image.width,
            height=image.height,
            title=_meta_string(relationship, "title") or image.title,
        )
        return MediaData(IMAGE, name, media, url=image.src, image=image)

    if media_type == "video":
        relationship = relationships.get("field_media_video_file")
        file = _find_ref(included, relationship and relationship.first)
        if file is None:
            return MediaData(VIDEO, name, media)
        return MediaData(
            VIDEO,
            name,
            media,
            url=file_url(file, base_url),
            mime_type=file.attr("filemime") or "video/mp4",
        )

    if media_type == "remote_video":
        video = media.attr("field_media_oembed_video")
        if not isinstance(video, str) or not video:
            return MediaData(REMOTE_VIDEO, name, media)
        return MediaData(REMOTE_VIDEO, name, media, url=video, embed_url=video_embed_url(video))

    if media_type in ("file", "document"):
        relationship = relationships.get("field_media_file") or relationships.get(
            "field_media_document"
        )
        file = _find_ref(included, relationship and relationship.first)
        if file is None:
            return MediaData(FILE, name, media)
        return MediaData(
            FILE, name, media, url=file_url(file, base_url), mime_type=file.attr("filemime")
        )

    if media_type == "audio":
        relationship = relationships.get("field_media_audio_file")
        file = _find_ref(included, relationship and relationship.first)
        if file is None:
            return MediaData(AUDIO, name, media)
        return MediaData(
            AUDIO,
            name,
            media,
            url=file_url(file, base_url),
            mime_type=file.attr("filemime") or "audio/mpeg",
        )

    return MediaData(UNKNOWN, name, media)


def extract_media_field(
    entity: JsonApiResource,
    field_name: str,
    included: Sequence[JsonApiResource],
    base_url: str | None,
) -> list[MediaData]:
    resources = find_related(included, entity.relationships.get(field_name))
    extracted = (extract_media(resource, included, base_url) for resource in resources)
    return [item for item in extracted if item is not None]


def extract_primary_image(
    entity: JsonApiResource,
    included: Sequence[JsonApiResource],
    base_url: str | None,
) -> ImageData | None:
    """First image found in the usual image/media fields."""

    for field_name in PRIMARY_IMAGE_FIELDS:
        for media in extract_media_field(entity, field_name, included, base_url):
            if media.type == IMAGE and media.image is not None:
                return media.image
    return None


def _image_dimensions(image: ImageData, preset: str) -> tuple[int | None, int | None]:
    preset_width, preset_height = IMAGE_PRESETS.get(preset, IMAGE_PRESETS["medium"])
    if preset_width and preset_height:
        return preset_width, preset_height
    if preset_width and image.width and image.height:
        return preset_width, round(preset_width / image.width * image.height)
    return image.width, image.height


def _web_url(url: str | None) -> bool:
    return bool(url) and urlsplit(url).scheme in ("http", "https")


def image_element(
    image: ImageData,
    *,
    preset: str = "medium",
    css_class: str | None = None,
    image_domains: Sequence[str] = (),
) -> etree._Element | None:
    if not _web_url(image.src) or not image_allowed(image.src, image_domains):
        return None
    element = E.IMG(src=image.src, alt=image.alt or "", loading="lazy")
    width, height = _image_dimensions(image, preset)
    if width:
        element.set("width", str(width))
    if height:
        element.set("height", str(height))
    if image.title:
        element.set("title", image.title)
    if css_class:
        element.set("class", css_class)
    return element


def media_element(
    media: MediaData,
    *,
    preset: str = "medium",
    css_class: str | None = None,
    image_domains: Sequence[str] = (),
) -> etree._Element | None:
    """Markup for one media item, or ``None`` when there is nothing to show."""

    if media.type == IMAGE:
        if media.image is None:
            return None
        return image_element(
            media.image, preset=preset, css_class=css_class, image_domains=image_domains
        )

    if media.type == REMOTE_VIDEO:
        if not media.embed_url:
            return None
        frame = E.IFRAME(src=media.embed_url, title=media.name, allow=EMBED_ALLOW)
        frame.set("allowfullscreen", "allowfullscreen")
        return E.DIV(frame, E.CLASS("media-embed"))

    if not _web_url(media.url):
        return None

    if media.type == VIDEO:
        video = E.VIDEO(
            E.SOURCE(src=media.url, type=media.mime_type or "video/mp4"),
            "Your browser does not support the video tag.",
            src=media.url,
            controls="controls",
        )
        video.set("playsinline", "playsinline")
        if css_class:
            video.set("class", css_class)
        return video

    if media.type == AUDIO:
        return E.AUDIO(
            E.SOURCE(src=media.url, type=media.mime_type or "audio/mpeg"),
            "Your browser does not support the audio tag.",
            src=media.url,
            controls="controls",
        )

    link = E.A(media.name or "Download", href=media.url, rel="noopener noreferrer")
    link.set("target", "_blank")
    if media.type == FILE:
        link.set("download", "")
        size = format_file_size(media.resource.attr("filesize"))
        if size:
            link.append(E.SPAN(f" ({size})", E.CLASS("file-size")))
    return link


def format_file_size(size: object) -> str:
    if not isinstance(size, int | float) or isinstance(size, bool) or size <= 0:
        return ""
    units = ("B", "KB", "MB", "GB")
    value = float(size)
    index = 0
    while value >= 1024 and index < len(units) - 1:
        value /= 1024
        index += 1
    return f"{value:.1f} {units[index]}"


def to_html(element: etree._Element | None) -> str:
    if element is None:
        return ""
    return etree.tostring(element, encoding="unicode", method="html", with_tail=False)
