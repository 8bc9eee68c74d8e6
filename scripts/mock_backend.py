#!/usr/bin/env python
"""Minimal stand-in for a Drupal site running ``jsonapi_frontend``.

Serves the resolver, a page resource, an article listing and a couple of
backend-rendered paths. Everything outside ``/jsonapi`` requires the proxy
secret header, the way an origin-protected Drupal would.
"""

from __future__ import annotations

import argparse
from dataclasses import dataclass, field

from flask import Flask, Response, jsonify, request

DEFAULT_UUID = "11111111-1111-1111-1111-111111111111"
DEFAULT_PROXY_SECRET = "test-secret"
JSONAPI_MIMETYPE = "application/vnd.api+json"


@dataclass
class RecordedRequest:
    method: str
    path: str
    query: str
    proxy_secret_ok: bool
    resolve_path: str | None = None


@dataclass
class MockState:
    uuid: str = DEFAULT_UUID
    proxy_secret: str = DEFAULT_PROXY_SECRET
    requests: list[RecordedRequest] = field(default_factory=list)


def _json(body: dict, status: int = 200) -> Response:
    response = jsonify(body)
    response.status_code = status
    response.mimetype = JSONAPI_MIMETYPE
    response.headers["Cache-Control"] = "no-store"
    return response


def _text(body: str, mimetype: str, status: int = 200) -> Response:
    response = Response(body, status=status, mimetype=mimetype)
    response.headers["Cache-Control"] = "no-store"
    return response


def _unresolved() -> dict:
    return {
        "resolved": False,
        "kind": None,
        "canonical": None,
        "entity": None,
        "redirect": None,
        "jsonapi_url": None,
        "data_url": None,
        "headless": False,
        "drupal_url": None,
    }


def create_mock_backend(state: MockState | None = None) -> Flask:
    state = state or MockState()
    app = Flask(__name__)
    app.extensions["mock_state"] = state

    @app.before_request
    def _record_and_protect():
        state.requests.append(
            RecordedRequest(
                method=request.method,
                path=request.path,
                query=request.query_string.decode("utf-8"),
                proxy_secret_ok=request.headers.get("X-Proxy-Secret") == state.proxy_secret,
                resolve_path=request.args.get("path") if request.path == "/jsonapi/resolve" else None,
            )
        )
        if request.path.startswith("/jsonapi"):
            return None
        if request.headers.get("X-Proxy-Secret") != state.proxy_secret:
            return _json(
                {
                    "errors": [
                        {
                            "status": "403",
                            "title": "Forbidden",
                            "detail": "Missing or invalid X-Proxy-Secret",
                        }
                    ]
                },
                403,
            )
        return None

    @app.get("/jsonapi/resolve")
    def resolve():
        path = request.args.get("path", "")
        origin = request.host_url.rstrip("/")
        if path == "/about-us":
            return _json(
                {
                    **_unresolved(),
                    "resolved": True,
                    "kind": "entity",
                    "canonical": "/about-us",
                    "entity": {"type": "node--page", "id": state.uuid, "langcode": "en"},
                    "jsonapi_url": f"/jsonapi/node/page/{state.uuid}",
                    "headless": True,
                }
            )
        if path == "/blog":
            return _json(
                {
                    **_unresolved(),
                    "resolved": True,
                    "kind": "view",
                    "canonical": "/blog",
                    "data_url": "/jsonapi/views/articles/page_1",
                    "headless": True,
                }
            )
        if path == "/non-headless":
            return _json(
                {
                    **_unresolved(),
                    "resolved": True,
                    "kind": "entity",
                    "canonical": "/non-headless",
                    "entity": {"type": "node--page", "id": state.uuid, "langcode": "en"},
                    "jsonapi_url": f"/jsonapi/node/page/{state.uuid}",
                    "drupal_url": f"{origin}/non-headless",
                }
            )
        return _json(_unresolved())

    @app.get("/jsonapi/node/page/<uuid>")
    def page(uuid: str):
        if uuid != state.uuid:
            return _json({"errors": [{"status": "404", "title": "Not Found"}]}, 404)
        return _json(
            {
                "jsonapi": {"version": "1.0"},
                "data": {
                    "type": "node--page",
                    "id": state.uuid,
                    "attributes": {
                        "title": "About Us",
                        "body": {
                            "processed": "<p>Hello from Drupal JSON:API</p>",
                            "summary": "Hello from Drupal JSON:API",
                        },
                    },
                },
            }
        )

    @app.get("/jsonapi/views/articles/page_1")
    def articles():
        return _json(
            {
                "jsonapi": {"version": "1.0"},
                "data": [
                    {"type": "node--article", "id": "a1", "attributes": {"title": "Article One"}},
                    {"type": "node--article", "id": "a2", "attributes": {"title": "Article Two"}},
                ],
            }
        )

    @app.get("/non-headless")
    def non_headless():
        return _text(
            "<!doctype html><html><head><title>Drupal</title>"
            '<link rel="stylesheet" href="/sites/default/files/test.css"></head>'
            "<body><h1>Drupal HTML (non-headless)</h1></body></html>",
            "text/html",
        )

    @app.get("/sites/default/files/test.txt")
    def test_file():
        return _text("TEST FILE", "text/plain")

    @app.get("/sites/default/files/test.css")
    def test_css():
        return _text("body{background:#fff}", "text/css")

    return app


def main() -> None:
    parser = argparse.ArgumentParser(description="Run a mock Drupal backend.")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8080)
    parser.add_argument("--proxy-secret", default=DEFAULT_PROXY_SECRET)
    args = parser.parse_args()

    app = create_mock_backend(MockState(proxy_secret=args.proxy_secret))
    app.run(host=args.host, port=args.port)


if __name__ == "__main__":
    main()
