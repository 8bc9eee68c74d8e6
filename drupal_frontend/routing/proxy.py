"""Forward requests the frontend does not render to the backend origin."""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from http.cookiejar import DefaultCookiePolicy
from time import perf_counter
from urllib.parse import quote, urlsplit, urlunsplit

import requests
from flask import Request, Response, stream_with_context
from requests import Session
from requests.exceptions import RequestException

from ..backend.auth import PROXY_SECRET_HEADER
from ..errors import GatewayError
from ..logging import backend_log_extra
from ..monitoring import timed_operation
from ..settings import FrontendSettings
from .guard import url_origin

logger = logging.getLogger(__name__)

FORWARD_REQUEST_HEADERS = (
    "accept",
    "accept-language",
    "content-type",
    "cookie",
    "x-requested-with",
    "x-csrf-token",
    "cache-control",
)

FORWARD_RESPONSE_HEADERS = (
    "content-type",
    "content-length",
    "cache-control",
    "set-cookie",
    "location",
    "vary",
    "x-drupal-cache",
    "x-drupal-dynamic-cache",
)

CLIENT_ADDRESS_HEADERS = ("x-forwarded-for", "x-real-ip", "cf-connecting-ip")
BODYLESS_METHODS = {"GET", "HEAD"}
STREAM_CHUNK_SIZE = 64 * 1024
# RFC 3986 pchar plus "/", minus "%" so decoded percent signs are re-escaped.
PATH_SAFE_CHARACTERS = "/:@!$&'()*+,;=-._~"


def build_target_url(origin_url: str, path: str, query_string: str = "") -> str | None:
    """Combine the origin of ``origin_url`` with the inbound path and query.

    The configured URL's own path is discarded. Returns ``None`` whenever the
    result would not land on exactly the configured origin.
    """

    allowed = url_origin(origin_url)
    if allowed is None or not path.startswith("/") or path.startswith("//"):
        return None

    origin = urlsplit(origin_url)
    target = urlunsplit((origin.scheme, origin.netloc, path, query_string, ""))
    if url_origin(target) != allowed:
        return None
    return target


def encode_path(path: str) -> str:
    """Re-escape a decoded request path so "?", "#" and "%" stay part of the path."""

    return quote(path, safe=PATH_SAFE_CHARACTERS)


def forwarded_request_headers(
    inbound_headers: Mapping[str, str],
    *,
    scheme: str,
    host: str,
    proxy_secret: str | None = None,
) -> dict[str, str]:
    """Allow-listed inbound headers plus forwarding metadata."""

    headers: dict[str, str] = {}
    for name in FORWARD_REQUEST_HEADERS:
        value = inbound_headers.get(name)
        if value:
            headers[name] = value

    client_address = next(
        (inbound_headers.get(name) for name in CLIENT_ADDRESS_HEADERS if inbound_headers.get(name)),
        "unknown",
    )
    headers["X-Forwarded-For"] = client_address
    headers["X-Forwarded-Proto"] = scheme
    headers["X-Forwarded-Host"] = host
    # Relay the body byte-for-byte so Content-Length stays valid.
    headers["Accept-Encoding"] = "identity"
    if proxy_secret:
        headers[PROXY_SECRET_HEADER] = proxy_secret
    return headers


def rewrite_location(location: str, backend_origin_url: str, frontend_origin_url: str) -> str:
    """Point backend-host redirects at the frontend host; path and query stay as-is."""

    try:
        parts = urlsplit(location)
        backend = urlsplit(backend_origin_url)
        frontend = urlsplit(frontend_origin_url)
    except ValueError:
        return location

    if not parts.scheme or not parts.netloc:
        return location
    if parts.netloc.lower() != backend.netloc.lower():
        return location
    return urlunsplit((frontend.scheme, frontend.netloc, parts.path, parts.query, parts.fragment))


def _iter_request_body(inbound: Request) -> Iterator[bytes]:
    while True:
        chunk = inbound.stream.read(STREAM_CHUNK_SIZE)
        if not chunk:
            return
        yield chunk


def _iter_response_body(upstream: requests.Response) -> Iterator[bytes]:
    try:
        for chunk in upstream.iter_content(STREAM_CHUNK_SIZE):
            if chunk:
                yield chunk
    finally:
        upstream.close()


class OriginProxy:
    """Single-hop forwarding of one inbound request to the backend origin."""

    def __init__(self, settings: FrontendSettings, session: Session | None = None) -> None:
        self._settings = settings
        self._session = session or requests.Session()
        # Visitor cookies only travel in the forwarded Cookie header; the shared jar stays empty.
        self._session.cookies.set_policy(DefaultCookiePolicy(allowed_domains=[]))

    def forward(self, inbound: Request) -> Response | None:
        """Forward ``inbound`` and relay the answer.

        Returns ``None`` when forwarding is not possible with the current
        configuration so the caller can fall back to local handling.

        Raises:
            GatewayError: If the backend origin cannot be reached.
        """

        origin_url = self._settings.forward_origin_url
        if not origin_url:
            logger.error(
                "Backend origin not configured, cannot proxy",
                extra=backend_log_extra(event="proxy.forward", status="skipped", path=inbound.path),
            )
            return None
        if url_origin(origin_url) is None:
            logger.error(
                "Backend origin must be an http(s) URL",
                extra=backend_log_extra(event="proxy.forward", status="skipped", path=inbound.path),
            )
            return None

        target = build_target_url(
            origin_url, encode_path(inbound.path), inbound.query_string.decode("latin-1")
        )
        if target is None:
            logger.error(
                "Refusing to proxy to unexpected origin",
                extra=backend_log_extra(event="proxy.forward", status="skipped", path=inbound.path),
            )
            return None

        headers = forwarded_request_headers(
            inbound.headers,
            scheme=inbound.scheme,
            host=inbound.host,
            proxy_secret=self._settings.proxy_secret,
        )
        body = None if inbound.method in BODYLESS_METHODS else _iter_request_body(inbound)

        start = perf_counter()
        try:
            with timed_operation("proxy.forward", metadata={"method": inbound.method}):
                upstream = self._session.request(
                    inbound.method,
                    target,
                    headers=headers,
                    data=body,
                    stream=True,
                    allow_redirects=False,
                    timeout=self._settings.proxy_timeout,
                )
        except RequestException as exc:
            logger.error(
                "Proxy error: %s",
                type(exc).__name__,
                extra=backend_log_extra(
                    event="proxy.forward",
                    status="error",
                    duration_ms=(perf_counter() - start) * 1000,
                    path=inbound.path,
                    error=type(exc).__name__,
                ),
            )
            raise GatewayError("Backend origin unreachable") from exc

        logger.info(
            "Request forwarded to backend",
            extra=backend_log_extra(
                event="proxy.forward",
                status=str(upstream.status_code),
                duration_ms=(perf_counter() - start) * 1000,
                path=inbound.path,
            ),
        )
        return self._relay(upstream, origin_url, inbound.host_url)

    def _relay(
        self, upstream: requests.Response, origin_url: str, frontend_origin_url: str
    ) -> Response:
        upstream_headers = upstream.raw.headers
        # iter_content decodes, so a length for an encoded body no longer applies.
        skip_length = bool(upstream_headers.get("content-encoding"))
        response_headers: list[tuple[str, str]] = []
        for name in FORWARD_RESPONSE_HEADERS:
            if name == "content-length" and skip_length:
                continue
            for value in upstream_headers.getlist(name):
                if name == "location" and 300 <= upstream.status_code < 400:
                    value = rewrite_location(value, origin_url, frontend_origin_url)
                response_headers.append((name, value))

        if upstream.request.method == "HEAD":
            upstream.close()
            response = Response(b"", status=upstream.status_code)
        else:
            response = Response(
                stream_with_context(_iter_response_body(upstream)),
                status=upstream.status_code,
            )

        response.headers.clear()
        for name, value in response_headers:
            response.headers.add(name, value)
        return response
