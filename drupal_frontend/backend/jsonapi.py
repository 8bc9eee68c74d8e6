"""Fetch JSON:API resources and jsonapi_views listings."""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Mapping
from typing import Any

from ..errors import ResourceError
from ..settings import FrontendSettings
from .auth import backend_headers
from .cache import GLOBAL_TAG, ResponseCache
from .http_client import HTTPClient, HTTPClientConfig, HTTPClientError
from .schemas import JsonApiDocument

logger = logging.getLogger(__name__)

_RESOURCE_PATH = re.compile(r"/jsonapi/([^/]+)/([^/]+)(?:/([^/?]+))?")
_VIEW_PATH = re.compile(r"/jsonapi/views/([^/]+)/([^/?]+)")


def resource_cache_tags(locator: str) -> list[str]:
    """Cache tags for ``/jsonapi/{entity_type}/{bundle}[/{uuid}]`` locators."""

    tags = [GLOBAL_TAG]
    match = _RESOURCE_PATH.search(locator)
    if match:
        entity_type, bundle, uuid = match.groups()
        tags.append(f"type:{entity_type}--{bundle}")
        tags.append(f"bundle:{bundle}")
        if uuid:
            tags.append(f"{entity_type}:{uuid}")
            tags.append(f"uuid:{uuid}")
    return tags


def view_cache_tags(locator: str) -> list[str]:
    """Cache tags for ``/jsonapi/views/{view_id}/{display_id}`` locators."""

    tags = [GLOBAL_TAG, "views"]
    match = _VIEW_PATH.search(locator)
    if match:
        view_id, display_id = match.groups()
        tags.append(f"view:{view_id}")
        tags.append(f"view:{view_id}--{display_id}")
    return tags


class JsonApiClient:
    """Fetch single resources and listings from the backend."""

    def __init__(
        self,
        settings: FrontendSettings,
        client: HTTPClient | None = None,
        cache: ResponseCache | None = None,
    ) -> None:
        self._settings = settings
        self._client = client
        self._cache = cache

    @property
    def client(self) -> HTTPClient:
        if self._client is None:
            self._client = HTTPClient(
                HTTPClientConfig(
                    base_url=self._settings.require_base_url(),
                    timeout=self._settings.request_timeout,
                    headers=backend_headers(self._settings),
                ),
                cache=self._cache,
            )
        return self._client

    def fetch_resource(
        self,
        locator: str,
        *,
        include: Iterable[str] = (),
        fields: Mapping[str, Iterable[str]] | None = None,
        tags: Iterable[str] = (),
    ) -> JsonApiDocument:
        params: dict[str, Any] = {}
        include = list(include)
        if include:
            params["include"] = ",".join(include)
        for resource_type, names in (fields or {}).items():
            params[f"fields[{resource_type}]"] = ",".join(names)

        return self._fetch(
            locator, params, tags=[*resource_cache_tags(locator), *tags], label="Resource"
        )

    def fetch_view(
        self,
        locator: str,
        *,
        page: int | Mapping[str, int] | None = None,
        query: str | None = None,
        tags: Iterable[str] = (),
    ) -> JsonApiDocument:
        """Fetch a listing; ``query`` is an already-encoded query string to append."""

        params: dict[str, Any] = {}
        if isinstance(page, int):
            params["page[offset]"] = page
        elif page is not None:
            if page.get("offset") is not None:
                params["page[offset]"] = page["offset"]
            if page.get("limit") is not None:
                params["page[limit]"] = page["limit"]

        if query:
            separator = "&" if "?" in locator else "?"
            locator = f"{locator}{separator}{query}"

        return self._fetch(locator, params, tags=[*view_cache_tags(locator), *tags], label="View")

    def _fetch(
        self, locator: str, params: dict[str, Any], *, tags: list[str], label: str
    ) -> JsonApiDocument:
        client = self.client
        try:
            payload = client.get(
                locator,
                params=params or None,
                max_age=self._settings.jsonapi_cache_seconds,
                tags=tags,
            )
            return JsonApiDocument.from_payload(payload)
        except HTTPClientError as exc:
            raise ResourceError(f"{label} fetch failed: {exc}") from exc
        except ValueError as exc:
            raise ResourceError(f"{label} fetch returned an invalid document: {exc}") from exc
