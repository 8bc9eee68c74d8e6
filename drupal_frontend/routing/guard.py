"""Keep backend-suggested redirects on the backend origin."""

from __future__ import annotations

from urllib.parse import SplitResult, urljoin, urlsplit, urlunsplit

ALLOWED_SCHEMES = ("http", "https")
DEFAULT_PORTS = {"http": 80, "https": 443}


def url_origin(url: str) -> tuple[str, str, int] | None:
    """Return ``(scheme, host, port)`` for an absolute http(s) URL, else ``None``."""

    try:
        parts = urlsplit(url)
        port = parts.port
    except ValueError:
        return None
    scheme = parts.scheme.lower()
    if scheme not in ALLOWED_SCHEMES or not parts.hostname:
        return None
    return scheme, parts.hostname.lower(), port or DEFAULT_PORTS[scheme]


def _origin_prefix(parts: SplitResult) -> str:
    # Userinfo from the configured URL never reaches a visitor.
    host = parts.hostname or ""
    if ":" in host:
        host = f"[{host}]"
    if parts.port is not None:
        host = f"{host}:{parts.port}"
    return urlunsplit((parts.scheme, host, "/", "", ""))


def _has_unsafe_characters(value: str) -> bool:
    return any(ord(char) < 0x21 or ord(char) == 0x7F for char in value)


def safe_redirect_target(candidate: str | None, backend_base_url: str | None) -> str | None:
    """Resolve ``candidate`` against the backend origin and keep it only if it stays there.

    Relative candidates are resolved against the origin of ``backend_base_url``.
    Returns the absolute URL, or ``None`` when the base URL is unusable or the
    candidate points anywhere else. Callers treat ``None`` as not-found.
    """

    if not candidate or not backend_base_url:
        return None

    allowed = url_origin(backend_base_url)
    if allowed is None:
        return None
    if _has_unsafe_characters(candidate):
        return None

    resolved = urljoin(_origin_prefix(urlsplit(backend_base_url)), candidate)
    if url_origin(resolved) != allowed:
        return None
    return resolved
