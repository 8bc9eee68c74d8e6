"""Shared HTTP client for JSON calls to the Drupal backend."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any, Dict, Optional
from urllib.parse import urljoin

import requests
from requests import Response, Session
from requests.exceptions import JSONDecodeError, RequestException

from .cache import ResponseCache

logger = logging.getLogger(__name__)


class HTTPClientError(RuntimeError):
    """Raised when the backend cannot satisfy a request.

    Messages never include the request URL.
    """

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


@dataclass(frozen=True)
class HTTPClientConfig:
    """Configuration for the shared HTTP client."""

    base_url: str
    timeout: float = 10.0
    headers: Mapping[str, str] = field(default_factory=dict)


class HTTPClient:
    """Single-attempt JSON client with an optional anonymous response cache."""

    def __init__(
        self,
        config: HTTPClientConfig,
        session: Optional[Session] = None,
        cache: Optional[ResponseCache] = None,
    ) -> None:
        self._config = config
        self._session = session or requests.Session()
        # Responses fetched with credentials must never be shared between visitors.
        self._cache = None if "Authorization" in config.headers else cache

    @property
    def caching_enabled(self) -> bool:
        return self._cache is not None

    def get(
        self,
        path: str,
        params: Optional[Mapping[str, Any]] = None,
        *,
        max_age: float = 0,
        tags: Iterable[str] = (),
    ) -> Dict[str, Any]:
        url = self.build_url(path, params)

        if self._cache is not None and max_age > 0:
            cached = self._cache.get(url)
            if cached is not None:
                return cached

        try:
            response = self._session.get(
                url,
                headers=dict(self._config.headers),
                timeout=self._config.timeout,
                allow_redirects=False,
            )
        except RequestException as exc:
            raise HTTPClientError(f"Backend unreachable ({type(exc).__name__})") from exc

        payload = self._handle_response(response)

        if self._cache is not None and max_age > 0:
            self._cache.set(url, payload, max_age=max_age, tags=tags)
        return payload

    def build_url(self, path: str, params: Optional[Mapping[str, Any]] = None) -> str:
        """Absolute URL for ``path`` (an absolute path replaces the base path)."""

        url = urljoin(self._config.base_url.rstrip("/") + "/", path)
        if not params:
            return url
        prepared = requests.Request("GET", url, params=dict(params)).prepare()
        return str(prepared.url)

    @staticmethod
    def _handle_response(response: Response) -> Dict[str, Any]:
        status = response.status_code
        if status >= 500:
            raise HTTPClientError(f"Server error {status}", status_code=status)
        if status >= 300:
            raise HTTPClientError(f"Unexpected status {status}", status_code=status)

        try:
            payload = response.json()
        except (JSONDecodeError, ValueError) as exc:
            raise HTTPClientError("Invalid JSON response", status_code=status) from exc

        if not isinstance(payload, dict):
            raise HTTPClientError("Unexpected JSON document", status_code=status)
        return payload
