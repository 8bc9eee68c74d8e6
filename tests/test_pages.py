from __future__ import annotations

import pytest
import responses

BACKEND = "https://cms.example.com"
RESOLVE_URL = f"{BACKEND}/jsonapi/resolve"
LAYOUT_URL = f"{BACKEND}/jsonapi/layout/resolve"
UUID = "11111111-1111-1111-1111-111111111111"
PAGE_URL = f"{BACKEND}/jsonapi/node/page/{UUID}"
VIEW_URL = f"{BACKEND}/jsonapi/views/articles/page_1"


def _resolve_calls() -> list:
    return [call for call in responses.calls if "/resolve" in call.request.url]


@responses.activate
def test_headless_entity_is_rendered(client, load_json_fixture):
    responses.add(responses.GET, RESOLVE_URL, json=load_json_fixture("resolve_about_us.json"))
    responses.add(responses.GET, PAGE_URL, json=load_json_fixture("node_page.json"))

    response = client.get("/about-us")

    assert response.status_code == 200
    html = response.get_data(as_text=True)
    assert '<h1 class="page-title">About Us</h1>' in html
    assert "<p>Hello from Drupal JSON:API</p>" in html
    assert "<script" not in html
    assert response.headers["Cache-Control"].startswith("public, max-age=")
    assert len(_resolve_calls()) == 1
    assert "include=field_image" in responses.calls[1].request.url


@responses.activate
def test_headless_view_is_rendered_with_pagination(client, load_json_fixture):
    responses.add(responses.GET, RESOLVE_URL, json=load_json_fixture("resolve_blog.json"))
    responses.add(responses.GET, VIEW_URL, json=load_json_fixture("view_articles.json"))

    response = client.get("/blog?page=2")

    assert response.status_code == 200
    html = response.get_data(as_text=True)
    assert '<a href="/blog/article-one">Article One</a>' in html
    assert '<a href="/node/article/a2">Article Two</a>' in html
    assert "<time>Mar 2, 2024</time>" in html
    assert "First summary" in html
    assert 'href="/blog?page=1" rel="next"' in html
    assert BACKEND not in html
    assert responses.calls[1].request.url == f"{VIEW_URL}?page=2"


@responses.activate
def test_non_headless_content_redirects_to_backend(client):
    responses.add(
        responses.GET,
        RESOLVE_URL,
        json={
            "resolved": True,
            "kind": "entity",
            "canonical": "/non-headless",
            "entity": {"type": "node--page", "id": UUID},
            "jsonapi_url": f"/jsonapi/node/page/{UUID}",
            "headless": False,
            "drupal_url": f"{BACKEND}/non-headless",
        },
    )

    response = client.get("/non-headless")

    assert response.status_code == 307
    assert response.headers["Location"] == f"{BACKEND}/non-headless"


@responses.activate
def test_backend_redirect_keeps_its_status(client):
    responses.add(
        responses.GET,
        RESOLVE_URL,
        json={"resolved": True, "kind": "redirect", "redirect": {"to": "/about-us", "status": 301}},
    )

    response = client.get("/about")

    assert response.status_code == 301
    assert response.headers["Location"] == f"{BACKEND}/about-us"


@responses.activate
@pytest.mark.parametrize(
    "payload",
    [
        {"resolved": True, "kind": "redirect", "redirect": {"to": "https://evil.example.com/"}},
        {"resolved": True, "kind": "route", "drupal_url": "//evil.example.com/user/login"},
    ],
)
def test_foreign_redirect_targets_render_not_found(client, payload):
    responses.add(responses.GET, RESOLVE_URL, json=payload)

    response = client.get("/phish")

    assert response.status_code == 404
    assert "Location" not in response.headers
    assert "Page not found" in response.get_data(as_text=True)


@responses.activate
def test_unresolved_path_renders_not_found(client):
    responses.add(responses.GET, RESOLVE_URL, json={"resolved": False})

    response = client.get("/does-not-exist")

    assert response.status_code == 404
    assert "Page not found" in response.get_data(as_text=True)


@responses.activate
def test_resolver_failure_renders_error_page(client):
    responses.add(responses.GET, RESOLVE_URL, status=500)

    response = client.get("/about-us")

    assert response.status_code == 502
    html = response.get_data(as_text=True)
    assert "Upstream content service unavailable." in html
    assert BACKEND not in html


@responses.activate
def test_missing_resource_renders_error_page(client, load_json_fixture):
    responses.add(responses.GET, RESOLVE_URL, json=load_json_fixture("resolve_about_us.json"))
    responses.add(responses.GET, PAGE_URL, json={"data": None})

    response = client.get("/about-us")

    assert response.status_code == 502


@responses.activate
def test_article_renders_hero_and_embedded_media(client, load_json_fixture):
    responses.add(
        responses.GET,
        RESOLVE_URL,
        json={
            "resolved": True,
            "kind": "entity",
            "entity": {"type": "node--article", "id": "a1"},
            "jsonapi_url": "/jsonapi/node/article/a1",
            "headless": True,
        },
    )
    responses.add(
        responses.GET,
        f"{BACKEND}/jsonapi/node/article/a1",
        json=load_json_fixture("node_article.json"),
    )

    response = client.get("/blog/article-one")

    assert response.status_code == 200
    html = response.get_data(as_text=True)
    assert 'src="https://cms.example.com/sites/default/files/hero.jpg"' in html
    assert 'alt="Hero photo"' in html
    assert 'class="hero-image"' in html
    assert "<time>Mar 2, 2024</time>" in html
    assert 'class="embedded-media align-center"' in html
    assert 'src="https://cms.example.com/sites/default/files/inline.png"' in html
    assert "caption</em></figcaption>" in html
    assert "drupal-media" not in html
    assert "missing" not in html


@responses.activate
def test_credentials_disable_shared_caching(make_app, load_json_fixture):
    responses.add(responses.GET, RESOLVE_URL, json=load_json_fixture("resolve_about_us.json"))
    responses.add(responses.GET, PAGE_URL, json=load_json_fixture("node_page.json"))
    app = make_app(DRUPAL_BASE_URL=BACKEND, DRUPAL_JWT_TOKEN="editor-token")

    response = app.test_client().get("/about-us")

    assert response.headers["Cache-Control"] == "private, no-store"
    assert responses.calls[0].request.headers["Authorization"] == "Bearer editor-token"


@responses.activate
def test_langcode_is_sent_to_resolver(make_app):
    responses.add(responses.GET, RESOLVE_URL, json={"resolved": False})
    app = make_app(DRUPAL_BASE_URL=BACKEND, DRUPAL_LANGCODE="de")

    app.test_client().get("/ueber-uns")

    assert "langcode=de" in responses.calls[0].request.url


@responses.activate
def test_layout_builder_pages_render_sections(make_app, load_json_fixture):
    resolution = load_json_fixture("resolve_about_us.json")
    resolution["layout"] = {
        "sections": [
            {
                "layout_id": "layout_onecol",
                "components": [
                    {
                        "uuid": "c2",
                        "type": "field",
                        "region": "content",
                        "weight": 1,
                        "plugin_id": "field_block:node:page:body",
                        "field": {"field_name": "body"},
                    },
                    {
                        "uuid": "c1",
                        "type": "field",
                        "region": "content",
                        "weight": 0,
                        "plugin_id": "field_block:node:page:title",
                        "field": {"field_name": "title"},
                    },
                ],
            }
        ]
    }
    responses.add(responses.GET, LAYOUT_URL, json=resolution)
    responses.add(responses.GET, PAGE_URL, json=load_json_fixture("node_page.json"))
    app = make_app(DRUPAL_BASE_URL=BACKEND, LAYOUT_BUILDER_ENABLED=True)

    response = app.test_client().get("/about-us")

    assert response.status_code == 200
    html = response.get_data(as_text=True)
    assert 'data-layout-id="layout_onecol"' in html
    title_at = html.index('<h1 class="page-title">About Us</h1>')
    body_at = html.index('<div class="rich-text"><p>Hello from Drupal JSON:API</p>')
    assert title_at < body_at
    assert len(responses.calls) == 2


def test_home_shows_welcome_page_without_backend(make_app):
    response = make_app().test_client().get("/")

    assert response.status_code == 200
    assert "DRUPAL_BASE_URL" in response.get_data(as_text=True)


@responses.activate
def test_home_falls_back_to_welcome_when_front_page_unresolved(client):
    responses.add(responses.GET, RESOLVE_URL, json={"resolved": False})

    response = client.get("/")

    assert response.status_code == 200
    assert "No front page is configured" in response.get_data(as_text=True)


@responses.activate
def test_home_renders_resolved_front_page(client, load_json_fixture):
    responses.add(responses.GET, RESOLVE_URL, json=load_json_fixture("resolve_about_us.json"))
    responses.add(responses.GET, PAGE_URL, json=load_json_fixture("node_page.json"))

    response = client.get("/")

    assert response.status_code == 200
    assert "About Us" in response.get_data(as_text=True)
    assert "path=%2F&" in responses.calls[0].request.url


def test_catch_all_without_backend_reports_configuration_error(make_app):
    response = make_app().test_client().get("/about-us")

    assert response.status_code == 500
    assert "Something went wrong." in response.get_data(as_text=True)


def test_frontend_only_paths_are_never_resolved(client):
    with responses.RequestsMock() as mocked:
        response = client.get("/robots.txt")

        assert response.status_code == 404
        assert len(mocked.calls) == 0


def test_unknown_api_paths_answer_json_not_found(client):
    response = client.get("/api/unknown")

    assert response.status_code == 404
    assert response.get_json() == {"message": "Page not found."}


def test_static_assets_are_served(client):
    response = client.get("/static/styles.css")

    assert response.status_code == 200
    assert response.mimetype == "text/css"
    response.close()
