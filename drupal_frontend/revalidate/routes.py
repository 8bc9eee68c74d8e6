"""Route handlers for the revalidation webhook."""

from __future__ import annotations

import hmac
import logging
import re
import time

from flask import current_app, jsonify, make_response, request
from flask.views import MethodView

from drupal_frontend.backend.cache import ResponseCache, path_tag
from drupal_frontend.schemas import (
    ErrorMessageSchema,
    RevalidateRequestSchema,
    RevalidateResultSchema,
    RevalidateStatusSchema,
)
from drupal_frontend.settings import FrontendSettings

from . import blp

logger = logging.getLogger(__name__)

SECRET_HEADER = "X-Revalidation-Secret"
MAX_REVALIDATE_ITEMS = 50
MAX_PATH_LENGTH = 2048
MAX_TAG_LENGTH = 200

_TAG_PATTERN = re.compile(r"^[a-zA-Z0-9:_-]+$")


def normalize_path(value: object) -> str | None:
    """Accept only plain absolute paths without query, fragment or traversal."""

    if not isinstance(value, str):
        return None
    path = value.strip()
    if not path or len(path) > MAX_PATH_LENGTH:
        return None
    if not path.startswith("/") or path.startswith("//"):
        return None
    if any(marker in path for marker in ("?", "#", "\0", "\\", "..")):
        return None
    if any(ord(char) < 0x20 or ord(char) == 0x7F for char in path):
        return None
    return path


def normalize_tag(value: object) -> str | None:
    if not isinstance(value, str):
        return None
    tag = value.strip()
    if not tag or len(tag) > MAX_TAG_LENGTH:
        return None
    if not _TAG_PATTERN.match(tag):
        return None
    return tag


def _error(message: str, status: int):
    return make_response(jsonify({"error": message}), status)


def _items(value: object) -> list:
    return list(value[:MAX_REVALIDATE_ITEMS]) if isinstance(value, list) else []


@blp.route("")
class Revalidate(MethodView):
    @blp.response(200, RevalidateStatusSchema())
    def get(self):
        settings: FrontendSettings = current_app.extensions["frontend_settings"]
        if settings.revalidation_secret:
            return {"status": "ready", "message": "Revalidation endpoint is ready"}
        return {
            "status": "not_configured",
            "message": "REVALIDATION_SECRET environment variable not set",
        }

    @blp.response(200, RevalidateResultSchema())
    @blp.alt_response(400, schema=ErrorMessageSchema())
    @blp.alt_response(401, schema=ErrorMessageSchema())
    @blp.alt_response(500, schema=ErrorMessageSchema())
    def post(self):
        settings: FrontendSettings = current_app.extensions["frontend_settings"]
        expected = settings.revalidation_secret
        if not expected:
            logger.error(
                "Revalidation secret not configured",
                extra={"event": "revalidate", "status": "not_configured"},
            )
            return _error("Revalidation not configured", 500)

        provided = request.headers.get(SECRET_HEADER, "")
        if not provided or not hmac.compare_digest(
            provided.encode("utf-8"), expected.encode("utf-8")
        ):
            return _error("Invalid or missing secret", 401)

        raw = request.get_json(silent=True)
        if not isinstance(raw, dict):
            return _error("Invalid JSON payload", 400)
        payload = RevalidateRequestSchema().load(raw)

        raw_paths = payload["paths"] if isinstance(payload["paths"], list) else []
        raw_tags = payload["tags"] if isinstance(payload["tags"], list) else []
        if not raw_paths and not raw_tags:
            return _error("No paths or tags provided", 400)

        tags = [tag for tag in map(normalize_tag, _items(raw_tags)) if tag]
        paths = [path for path in map(normalize_path, _items(raw_paths)) if path]

        cache: ResponseCache = current_app.extensions["response_cache"]
        invalidated = cache.invalidate_tags([*tags, *(path_tag(path) for path in paths)])

        operation = payload["operation"] if isinstance(payload["operation"], str) else None
        entity = payload["entity"] if isinstance(payload["entity"], dict) else {}
        logger.info(
            "Revalidated",
            extra={
                "event": "revalidate",
                "status": "success",
                "operation": operation,
                "tag_count": len(tags),
                "path_count": len(paths),
                "invalidated": invalidated,
                "entity": "/".join(
                    str(entity.get(key)) for key in ("type", "bundle", "uuid")
                )
                if entity
                else None,
            },
        )

        return {
            "revalidated": True,
            "operation": operation,
            "paths": paths,
            "tags": tags,
            "invalidated": invalidated,
            "timestamp": int(time.time() * 1000),
        }
