from __future__ import annotations

import pytest

from drupal_frontend.backend.schemas import JsonApiResource
from drupal_frontend.rendering.media import (
    AUDIO,
    FILE,
    IMAGE,
    REMOTE_VIDEO,
    UNKNOWN,
    VIDEO,
    ImageData,
    extract_media,
    extract_media_field,
    extract_primary_image,
    format_file_size,
    image_allowed,
    image_element,
    image_style_url,
    media_element,
    resolve_file_url,
    to_html,
    video_embed_url,
)

BASE = "https://cms.example.com"


def resource(payload: dict) -> JsonApiResource:
    return JsonApiResource.from_payload(payload)


def file_resource(file_id: str, url: str, **attributes) -> JsonApiResource:
    return resource(
        {"type": "file--file", "id": file_id, "attributes": {"uri": {"url": url}, **attributes}}
    )


def media_resource(media_type: str, media_id: str, field: str | None = None, target=None, **attributes):
    relationships = {}
    if field:
        relationships[field] = {"data": target}
    return resource(
        {
            "type": f"media--{media_type}",
            "id": media_id,
            "attributes": attributes,
            "relationships": relationships,
        }
    )


@pytest.mark.parametrize(
    ("url", "expected"),
    [
        ("/sites/default/files/a.png", f"{BASE}/sites/default/files/a.png"),
        ("sites/default/files/a.png", f"{BASE}/sites/default/files/a.png"),
        ("https://cdn.example.com/a.png", "https://cdn.example.com/a.png"),
        ("//cdn.example.com/a.png", "https://cdn.example.com/a.png"),
        ("data:image/png;base64,AAAA", "data:image/png;base64,AAAA"),
        ("public://a.png", None),
        ("", None),
        (None, None),
    ],
)
def test_resolve_file_url(url, expected):
    assert resolve_file_url(url, BASE) == expected


def test_resolve_file_url_needs_base_for_relative_paths():
    assert resolve_file_url("/sites/default/files/a.png", None) is None


def test_image_style_url():
    assert (
        image_style_url("/sites/default/files/2024/a.jpg", "large", BASE)
        == f"{BASE}/sites/default/files/styles/large/public/2024/a.jpg"
    )
    assert (
        image_style_url(f"{BASE}/sites/default/files/styles/thumbnail/public/a.jpg", "hero")
        == f"{BASE}/sites/default/files/styles/hero/public/a.jpg"
    )
    assert image_style_url("https://cdn.example.com/a.jpg", "large") == "https://cdn.example.com/a.jpg"


@pytest.mark.parametrize(
    ("url", "expected"),
    [
        ("https://www.youtube.com/watch?v=dQw4w9WgXcQ", "https://www.youtube.com/embed/dQw4w9WgXcQ"),
        ("https://youtu.be/dQw4w9WgXcQ", "https://www.youtube.com/embed/dQw4w9WgXcQ"),
        ("https://vimeo.com/76979871", "https://player.vimeo.com/video/76979871"),
        ("https://example.com/video.mp4", None),
    ],
)
def test_video_embed_url(url, expected):
    assert video_embed_url(url) == expected


def test_image_allowed_respects_domain_list():
    assert image_allowed("https://anything.example.com/a.png", ())
    assert image_allowed("https://cms.example.com/a.png", ("cms.example.com",))
    assert not image_allowed("https://evil.example.com/a.png", ("cms.example.com",))
    assert not image_allowed("data:image/png;base64,AAAA", ("cms.example.com",))


def test_extract_image_media_prefers_relationship_meta():
    file = file_resource(
        "f1", "/sites/default/files/photo.jpg", filename="photo.jpg", width=1600, height=900
    )
    media = media_resource(
        "image",
        "m1",
        "field_media_image",
        {"type": "file--file", "id": "f1", "meta": {"alt": "A photo", "title": "Title"}},
        name="Photo",
    )

    extracted = extract_media(media, [file], BASE)

    assert extracted.type == IMAGE
    assert extracted.url == f"{BASE}/sites/default/files/photo.jpg"
    assert extracted.image == ImageData(
        src=f"{BASE}/sites/default/files/photo.jpg",
        alt="A photo",
        width=1600,
        height=900,
        title="Title",
    )


def test_extract_image_media_falls_back_to_filename_then_name():
    file = file_resource("f1", "/sites/default/files/photo.jpg", filename="photo.jpg")
    media = media_resource(
        "image", "m1", "field_media_image", {"type": "file--file", "id": "f1"}, name="Photo"
    )

    assert extract_media(media, [file], BASE).image.alt == "photo.jpg"

    file = file_resource("f1", "/sites/default/files/photo.jpg")
    assert extract_media(media, [file], BASE).image.alt == "Photo"


def test_extract_video_audio_and_file_media():
    video_file = file_resource("fv", "/sites/default/files/clip.webm", filemime="video/webm")
    audio_file = file_resource("fa", "/sites/default/files/talk.mp3")
    document = file_resource("fd", "/sites/default/files/report.pdf", filemime="application/pdf")
    included = [video_file, audio_file, document]

    video = extract_media(
        media_resource("video", "mv", "field_media_video_file", {"type": "file--file", "id": "fv"}),
        included,
        BASE,
    )
    audio = extract_media(
        media_resource("audio", "ma", "field_media_audio_file", {"type": "file--file", "id": "fa"}),
        included,
        BASE,
    )
    doc = extract_media(
        media_resource("document", "md", "field_media_document", {"type": "file--file", "id": "fd"}),
        included,
        BASE,
    )

    assert (video.type, video.mime_type) == (VIDEO, "video/webm")
    assert (audio.type, audio.mime_type) == (AUDIO, "audio/mpeg")
    assert (doc.type, doc.mime_type, doc.url) == (
        FILE,
        "application/pdf",
        f"{BASE}/sites/default/files/report.pdf",
    )


def test_extract_remote_video_and_unknown_media():
    remote = extract_media(
        media_resource(
            "remote_video", "mr", field_media_oembed_video="https://youtu.be/dQw4w9WgXcQ"
        ),
        [],
        BASE,
    )
    unknown = extract_media(media_resource("instagram", "mi", name="Post"), [], BASE)

    assert remote.type == REMOTE_VIDEO
    assert remote.embed_url == "https://www.youtube.com/embed/dQw4w9WgXcQ"
    assert unknown.type == UNKNOWN
    assert extract_media(None, [], BASE) is None


def test_extract_media_field_and_primary_image():
    file = file_resource("f1", "/sites/default/files/hero.jpg")
    image = media_resource(
        "image", "m1", "field_media_image", {"type": "file--file", "id": "f1"}, name="Hero"
    )
    video = media_resource("remote_video", "m2", field_media_oembed_video="https://vimeo.com/1")
    entity = resource(
        {
            "type": "node--article",
            "id": "a1",
            "relationships": {
                "field_media": {
                    "data": [
                        {"type": "media--remote_video", "id": "m2"},
                        {"type": "media--image", "id": "m1"},
                        {"type": "media--image", "id": "not-included"},
                    ]
                }
            },
        }
    )
    included = [file, image, video]

    media = extract_media_field(entity, "field_media", included, BASE)
    primary = extract_primary_image(entity, included, BASE)

    assert [item.type for item in media] == [REMOTE_VIDEO, IMAGE]
    assert primary.src == f"{BASE}/sites/default/files/hero.jpg"


def test_image_element_applies_preset_dimensions():
    image = ImageData(src=f"{BASE}/a.jpg", alt="Alt", width=2000, height=1000)

    html = to_html(image_element(image, preset="large", css_class="rounded"))

    assert html == (
        f'<img src="{BASE}/a.jpg" alt="Alt" loading="lazy" width="1000" height="500" class="rounded">'
    )


def test_image_element_rejects_disallowed_or_non_web_sources():
    assert image_element(ImageData(src="https://evil.example.com/a.jpg"), image_domains=("cms.example.com",)) is None
    assert image_element(ImageData(src="data:image/png;base64,AAAA")) is None
    assert to_html(None) == ""


def test_media_element_markup_per_type():
    remote = extract_media(
        media_resource("remote_video", "mr", name="Clip", field_media_oembed_video="https://vimeo.com/42"),
        [],
        BASE,
    )
    html = to_html(media_element(remote))
    assert html.startswith('<div class="media-embed"><iframe src="https://player.vimeo.com/video/42"')
    assert "allowfullscreen" in html

    document = file_resource("fd", "/sites/default/files/report.pdf")
    media = media_resource(
        "file",
        "mf",
        "field_media_file",
        {"type": "file--file", "id": "fd"},
        name="Report",
        filesize=2048,
    )
    html = to_html(media_element(extract_media(media, [document], BASE)))
    assert f'href="{BASE}/sites/default/files/report.pdf"' in html
    assert "download" in html
    assert '<span class="file-size"> (2.0 KB)</span>' in html

    audio = file_resource("fa", "/sites/default/files/talk.mp3")
    media = media_resource("audio", "ma", "field_media_audio_file", {"type": "file--file", "id": "fa"})
    html = to_html(media_element(extract_media(media, [audio], BASE)))
    assert html.startswith("<audio")
    assert '<source src="https://cms.example.com/sites/default/files/talk.mp3" type="audio/mpeg">' in html


def test_media_element_skips_media_without_source():
    empty_image = extract_media(media_resource("image", "m1"), [], BASE)
    empty_remote = extract_media(media_resource("remote_video", "m2"), [], BASE)

    assert media_element(empty_image) is None
    assert media_element(empty_remote) is None


@pytest.mark.parametrize(
    ("size", "expected"),
    [(512, "512.0 B"), (2048, "2.0 KB"), (5 * 1024 * 1024, "5.0 MB"), (0, ""), ("12", ""), (True, "")],
)
def test_format_file_size(size, expected):
    assert format_file_size(size) == expected
