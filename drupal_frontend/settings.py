"""Immutable runtime settings shared by the backend clients and the router."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from config import normalize_deployment_mode

from .errors import ConfigurationError

SPLIT_ROUTING = "split_routing"
FRONTEND_FIRST = "frontend_first"


def _clean(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _split_list(value: Any) -> tuple[str, ...]:
    if not value:
        return ()
    if isinstance(value, str):
        candidates = value.split(",")
    else:
        candidates = list(value)
    return tuple(item.strip() for item in candidates if item and item.strip())


def _to_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class FrontendSettings:
    """Configuration snapshot built once per application."""

    deployment_mode: str = SPLIT_ROUTING
    backend_base_url: str | None = None
    backend_origin_url: str | None = None
    proxy_secret: str | None = None
    jwt_token: str | None = None
    basic_username: str | None = None
    basic_password: str | None = None
    image_domains: tuple[str, ...] = ()
    langcode: str | None = None
    revalidation_secret: str | None = None
    request_timeout: float = 10.0
    proxy_timeout: float = 30.0
    resolver_cache_seconds: int = 60
    jsonapi_cache_seconds: int = 60
    jsonapi_includes: tuple[str, ...] = ()
    layout_builder_enabled: bool = False

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> FrontendSettings:
        base_url = _clean(config.get("DRUPAL_BASE_URL"))
        return cls(
            deployment_mode=normalize_deployment_mode(config.get("DEPLOYMENT_MODE")),
            backend_base_url=base_url.rstrip("/") if base_url else None,
            backend_origin_url=_clean(config.get("DRUPAL_ORIGIN_URL")),
            proxy_secret=_clean(config.get("DRUPAL_PROXY_SECRET")),
            jwt_token=_clean(config.get("DRUPAL_JWT_TOKEN")),
            basic_username=_clean(config.get("DRUPAL_BASIC_USERNAME")),
            basic_password=_clean(config.get("DRUPAL_BASIC_PASSWORD")),
            image_domains=tuple(
                domain.lower() for domain in _split_list(config.get("DRUPAL_IMAGE_DOMAIN"))
            ),
            langcode=_clean(config.get("DRUPAL_LANGCODE")),
            revalidation_secret=_clean(config.get("REVALIDATION_SECRET")),
            request_timeout=float(config.get("REQUEST_TIMEOUT_SECONDS", 10)),
            proxy_timeout=float(config.get("PROXY_TIMEOUT_SECONDS", 30)),
            resolver_cache_seconds=max(int(config.get("RESOLVER_CACHE_SECONDS", 60)), 0),
            jsonapi_cache_seconds=max(int(config.get("JSONAPI_CACHE_SECONDS", 60)), 0),
            jsonapi_includes=_split_list(config.get("JSONAPI_INCLUDES")),
            layout_builder_enabled=_to_bool(config.get("LAYOUT_BUILDER_ENABLED")),
        )

    @property
    def frontend_first(self) -> bool:
        return self.deployment_mode == FRONTEND_FIRST

    @property
    def forward_origin_url(self) -> str | None:
        """Proxy destination; defaults to the base URL."""

        return self.backend_origin_url or self.backend_base_url

    @property
    def has_credentials(self) -> bool:
        return bool(self.jwt_token or (self.basic_username and self.basic_password))

    def require_base_url(self) -> str:
        if not self.backend_base_url:
            raise ConfigurationError("Missing DRUPAL_BASE_URL environment variable")
        return self.backend_base_url
