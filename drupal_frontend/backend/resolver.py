"""Client for the ``jsonapi_frontend`` path resolver."""

from __future__ import annotations

import logging
from time import perf_counter

from ..errors import ResolutionError
from ..logging import backend_log_extra
from ..settings import FrontendSettings
from .auth import backend_headers
from .cache import GLOBAL_TAG, ResponseCache, path_tag
from .http_client import HTTPClient, HTTPClientConfig, HTTPClientError
from .schemas import ResolutionResult, parse_resolution

logger = logging.getLogger(__name__)

RESOLVE_ENDPOINT = "/jsonapi/resolve"
LAYOUT_RESOLVE_ENDPOINT = "/jsonapi/layout/resolve"


class ResolverClient:
    """Map frontend paths to resolution results."""

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

    def resolve(self, path: str, langcode: str | None = None) -> ResolutionResult:
        """Resolve ``path``.

        Raises:
            ConfigurationError: If no backend base URL is configured.
            ResolutionError: If the resolver fails or its answer is unusable.
        """

        return self._resolve(RESOLVE_ENDPOINT, path, langcode)

    def resolve_with_layout(self, path: str, langcode: str | None = None) -> ResolutionResult:
        """Resolve ``path`` including a Layout Builder tree when available.

        Falls back to the plain resolver when the layout add-on is not installed.
        """

        try:
            return self._resolve(LAYOUT_RESOLVE_ENDPOINT, path, langcode)
        except ResolutionError as exc:
            if exc.upstream_status == 404:
                return self.resolve(path, langcode)
            raise

    def resolve_for_render(self, path: str) -> ResolutionResult:
        """Resolve the way page rendering needs it, with the configured langcode."""

        if self._settings.layout_builder_enabled:
            return self.resolve_with_layout(path, self._settings.langcode)
        return self.resolve(path, self._settings.langcode)

    def _resolve(self, endpoint: str, path: str, langcode: str | None) -> ResolutionResult:
        client = self.client
        params = {"path": path, "_format": "json"}
        if langcode:
            params["langcode"] = langcode

        start = perf_counter()
        try:
            payload = client.get(
                endpoint,
                params=params,
                max_age=self._settings.resolver_cache_seconds,
                tags=(GLOBAL_TAG, path_tag(path)),
            )
            result = parse_resolution(payload)
        except HTTPClientError as exc:
            self._log_failure(path, start, str(exc))
            raise ResolutionError(
                f"Resolver failed: {exc}", upstream_status=exc.status_code
            ) from exc
        except ValueError as exc:
            self._log_failure(path, start, str(exc))
            raise ResolutionError(f"Resolver returned an unexpected body: {exc}") from exc

        logger.debug(
            "Path resolved",
            extra=backend_log_extra(
                event="resolver.resolve",
                status="success",
                duration_ms=(perf_counter() - start) * 1000,
                path=path,
                decision=result.kind or "unresolved",
            ),
        )
        return result

    @staticmethod
    def _log_failure(path: str, start: float, error: str) -> None:
        logger.warning(
            "Resolver call failed",
            extra=backend_log_extra(
                event="resolver.resolve",
                status="error",
                duration_ms=(perf_counter() - start) * 1000,
                path=path,
                error=error,
            ),
        )
