"""Catch-all page handlers: resolve, decide, then render or redirect."""

from __future__ import annotations

from flask import abort, current_app, g, make_response, redirect, render_template, request
from flask.typing import ResponseReturnValue

from drupal_frontend.backend.cache import path_tag
from drupal_frontend.backend.jsonapi import JsonApiClient
from drupal_frontend.backend.resolver import ResolverClient
from drupal_frontend.backend.schemas import EntityResolution, JsonApiDocument, ResolutionResult
from drupal_frontend.errors import ResourceError
from drupal_frontend.rendering import (
    LayoutRenderer,
    RenderContext,
    entity_renderers,
    view_context,
)
from drupal_frontend.routing.dispatch import (
    NOT_FOUND,
    REDIRECT,
    RENDER_ENTITY,
    RENDER_VIEW,
    decide_page,
    resolve_for_request,
)
from drupal_frontend.routing.patterns import frontend_only
from drupal_frontend.settings import FrontendSettings

from . import bp


def _settings() -> FrontendSettings:
    return current_app.extensions["frontend_settings"]


def _resolver() -> ResolverClient:
    return current_app.extensions["resolver_client"]


def _jsonapi() -> JsonApiClient:
    return current_app.extensions["jsonapi_client"]


def _cacheable(body: str) -> ResponseReturnValue:
    settings = _settings()
    response = make_response(body)
    if settings.has_credentials:
        response.headers["Cache-Control"] = "private, no-store"
    else:
        response.headers["Cache-Control"] = f"public, max-age={settings.resolver_cache_seconds}"
    return response


def _render_context(document: JsonApiDocument) -> RenderContext:
    settings = _settings()
    return RenderContext(
        document=document,
        base_url=settings.backend_base_url,
        image_domains=settings.image_domains,
    )


def _render_view(path: str, locator: str) -> ResponseReturnValue:
    query = request.query_string.decode("utf-8", errors="replace") or None
    document = _jsonapi().fetch_view(locator, query=query, tags=(path_tag(path),))
    return _cacheable(render_template("view.html", path=path, **view_context(document, path)))


def _render_entity(path: str, result: ResolutionResult, locator: str) -> ResponseReturnValue:
    settings = _settings()
    jsonapi = _jsonapi()
    document = jsonapi.fetch_resource(
        locator, include=settings.jsonapi_includes, tags=(path_tag(path),)
    )
    resource = document.primary
    if resource is None:
        raise ResourceError("Resource document has no primary resource")

    context = _render_context(document)
    layout = result.layout if isinstance(result, EntityResolution) else None
    if settings.layout_builder_enabled and layout:
        renderer = LayoutRenderer(
            context,
            lambda block_locator: jsonapi.fetch_resource(block_locator, tags=(path_tag(path),)),
        )
        sections = renderer.render(layout)
        return _cacheable(
            render_template("layout.html", title=resource.attr("title"), sections=sections)
        )

    rendered = entity_renderers.render(resource, context)
    return _cacheable(render_template(rendered.template, **rendered.context))


def _handle(path: str, result: ResolutionResult, *, on_not_found) -> ResponseReturnValue:
    decision = decide_page(result, _settings().backend_base_url)
    g.page_decision = decision.action

    if decision.action == NOT_FOUND:
        return on_not_found()
    if decision.action == REDIRECT:
        return redirect(decision.target, code=decision.status)
    if decision.action == RENDER_VIEW:
        return _render_view(path, decision.target)
    if decision.action == RENDER_ENTITY:
        return _render_entity(path, result, decision.target)
    return on_not_found()


def _welcome() -> ResponseReturnValue:
    return render_template("welcome.html", configured=bool(_settings().backend_base_url))


@bp.get("/")
def home() -> ResponseReturnValue:
    """Render the backend front page, or a welcome page when there is none."""

    if not _settings().backend_base_url:
        return _welcome()
    result = resolve_for_request(_resolver(), "/")
    return _handle("/", result, on_not_found=_welcome)


@bp.get("/<path:slug>")
def page(slug: str) -> ResponseReturnValue:
    path = f"/{slug}"
    if path in frontend_only:
        abort(404)
    result = resolve_for_request(_resolver(), path)
    return _handle(path, result, on_not_found=lambda: abort(404))
