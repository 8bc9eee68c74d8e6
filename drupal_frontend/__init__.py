"""Application factory for the Drupal headless frontend."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from flask import Flask
from flask_smorest import Api

from config import get_config
from .cli import register_cli
from .logging import init_request_logging, setup_logging


def create_app(config_name: str | None = None, overrides: Mapping[str, Any] | None = None) -> Flask:
    """Application factory adhering to the Flask app factory pattern."""

    app = Flask(__name__)
    config_class = get_config(config_name)
    app.config.from_object(config_class)
    if overrides:
        app.config.update(overrides)

    # Tests keep pytest's own log capture handlers in place.
    if not app.config.get("TESTING"):
        setup_logging(app)
    init_request_logging(app)

    _configure_api(app)
    api = _register_extensions(app)
    _register_blueprints(app, api)
    _register_error_handlers(app)
    _register_dispatch(app)

    register_cli(app)
    return app


def _configure_api(app: Flask) -> None:
    app.config.setdefault("API_TITLE", "Drupal Frontend API")
    app.config.setdefault("API_VERSION", "v1")
    app.config.setdefault("OPENAPI_VERSION", "3.0.3")
    app.config.setdefault("OPENAPI_URL_PREFIX", "/api/docs")
    app.config.setdefault("OPENAPI_SWAGGER_UI_PATH", "/")
    app.config.setdefault(
        "OPENAPI_SWAGGER_UI_URL",
        "https://cdn.jsdelivr.net/npm/swagger-ui-dist/",
    )


def _register_extensions(app: Flask) -> Api:
    """Build the settings snapshot and the backend collaborators once per app."""

    from .backend import JsonApiClient, ResolverClient, ResponseCache
    from .routing.proxy import OriginProxy
    from .settings import FrontendSettings

    settings = FrontendSettings.from_config(app.config)
    cache = ResponseCache()

    app.extensions["frontend_settings"] = settings
    app.extensions["response_cache"] = cache
    app.extensions["resolver_client"] = ResolverClient(settings, cache=cache)
    app.extensions["jsonapi_client"] = JsonApiClient(settings, cache=cache)
    app.extensions["origin_proxy"] = OriginProxy(settings)

    api = Api(app)
    app.extensions["smorest_api"] = api
    return api


def _register_blueprints(app: Flask, api: Api) -> None:
    """Register Flask blueprints."""

    from .health import blp as health_blp
    from .pages import bp as pages_bp
    from .revalidate import blp as revalidate_blp

    api.register_blueprint(health_blp, url_prefix="/api/health")
    api.register_blueprint(revalidate_blp, url_prefix="/api/revalidate")
    app.register_blueprint(pages_bp)


def _register_error_handlers(app: Flask) -> None:
    """Register global error handlers."""

    from .errors import register_error_handlers

    register_error_handlers(app)


def _register_dispatch(app: Flask) -> None:
    """Install the frontend-first request dispatcher when configured."""

    from .routing.dispatch import init_dispatch

    init_dispatch(app)
