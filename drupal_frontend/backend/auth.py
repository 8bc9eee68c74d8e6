"""Credential headers for backend API calls."""

from __future__ import annotations

import base64

from ..settings import FrontendSettings

PROXY_SECRET_HEADER = "X-Proxy-Secret"


def auth_headers(settings: FrontendSettings) -> dict[str, str] | None:
    """Return an Authorization header for the configured credentials, if any.

    A JWT bearer token wins over HTTP basic credentials.
    """

    if settings.jwt_token:
        return {"Authorization": f"Bearer {settings.jwt_token}"}

    if settings.basic_username and settings.basic_password:
        raw = f"{settings.basic_username}:{settings.basic_password}".encode()
        return {"Authorization": f"Basic {base64.b64encode(raw).decode('ascii')}"}

    return None


def backend_headers(settings: FrontendSettings) -> dict[str, str]:
    """Headers sent with every resolver and JSON:API request."""

    headers = {"Accept": "application/vnd.api+json"}
    headers.update(auth_headers(settings) or {})
    if settings.proxy_secret:
        headers[PROXY_SECRET_HEADER] = settings.proxy_secret
    return headers
