"""Application-wide error types and handlers."""

from __future__ import annotations

import logging
from typing import Any

from flask import Flask, jsonify, render_template, request
from werkzeug.exceptions import NotFound

logger = logging.getLogger(__name__)


class FrontendError(Exception):
    """Base class for errors surfaced to the visitor as a generic failure page."""

    status_code: int = 500

    def __init__(
        self, message: str, *, status_code: int | None = None, payload: dict[str, Any] | None = None
    ):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.payload = payload or {}


class ConfigurationError(FrontendError):
    """A required configuration value is missing or invalid."""

    status_code = 500


class ResolutionError(FrontendError):
    """The resolver is unreachable, failed, or returned an unusable body."""

    status_code = 502

    def __init__(self, message: str, *, upstream_status: int | None = None) -> None:
        super().__init__(message)
        self.upstream_status = upstream_status


class ResourceError(FrontendError):
    """A JSON:API resource or listing could not be fetched."""

    status_code = 502


class GatewayError(FrontendError):
    """Forwarding a request to the backend origin failed."""

    status_code = 502


DEFAULT_STATUS_MESSAGES: dict[int, str] = {
    400: "Request could not be processed.",
    404: "Page not found.",
    500: "Something went wrong.",
    502: "Upstream content service unavailable.",
    503: "Service temporarily unavailable. Please retry in a moment.",
}


def register_error_handlers(app: Flask) -> None:
    """Attach error handlers to the Flask application."""

    @app.errorhandler(FrontendError)
    def handle_frontend_error(error: FrontendError):
        logger.error(
            "Request failed: %s",
            error.message,
            extra={"event": "request.error", "error_type": type(error).__name__},
        )
        detail = error.message if app.debug else None
        message = DEFAULT_STATUS_MESSAGES.get(error.status_code, "Request failed.")

        if _wants_json():
            response = {"message": message}
            if detail:
                response["detail"] = detail
            if error.payload:
                response.update(error.payload)
            return jsonify(response), error.status_code

        return render_template("error.html", message=message, detail=detail), error.status_code

    @app.errorhandler(NotFound)
    def handle_not_found(error: NotFound):
        if _wants_json():
            return jsonify({"message": DEFAULT_STATUS_MESSAGES[404]}), 404
        return render_template("not_found.html"), 404


def _wants_json() -> bool:
    return request.path == "/api" or request.path.startswith("/api/")
