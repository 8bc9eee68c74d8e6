"""Clients and data shapes for the Drupal backend."""

from .cache import ResponseCache
from .http_client import HTTPClient, HTTPClientConfig, HTTPClientError
from .jsonapi import JsonApiClient
from .resolver import ResolverClient
from .schemas import (
    EntityResolution,
    JsonApiDocument,
    JsonApiResource,
    RedirectResolution,
    RedirectTarget,
    ResolutionResult,
    RouteResolution,
    Unresolved,
    ViewResolution,
    parse_resolution,
)

__all__ = [
    "EntityResolution",
    "HTTPClient",
    "HTTPClientConfig",
    "HTTPClientError",
    "JsonApiClient",
    "JsonApiDocument",
    "JsonApiResource",
    "RedirectResolution",
    "RedirectTarget",
    "ResolutionResult",
    "ResolverClient",
    "ResponseCache",
    "RouteResolution",
    "Unresolved",
    "ViewResolution",
    "parse_resolution",
]
