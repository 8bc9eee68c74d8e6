"""Static path tables deciding who owns a path before anything is resolved."""

from __future__ import annotations

import re
from collections.abc import Iterable

# Always rendered by the backend; never worth a resolver call.
BACKEND_ONLY_PATHS: tuple[str, ...] = (
    # Backend asset paths, needed when proxied HTML references them.
    "/core",
    "/modules",
    "/themes",
    "/sites",
    "/libraries",
    "/admin",
    "/user",
    "/node/add",
    "/node/*/edit",
    "/node/*/delete",
    "/media/add",
    "/taxonomy/term/*/edit",
    "/batch",
    "/system",
    "/devel",
)

# Served by this application itself; never proxied.
FRONTEND_ONLY_PATHS: tuple[str, ...] = (
    "/static",
    "/api",
    "/favicon.ico",
    "/robots.txt",
    "/sitemap.xml",
)


class PathPatternSet:
    """Match paths against patterns where ``*`` stands for exactly one segment.

    A pattern matches the path itself or anything below it (``/admin`` matches
    ``/admin`` and ``/admin/content`` but not ``/administrator``).
    """

    def __init__(self, patterns: Iterable[str]) -> None:
        self.patterns = tuple(patterns)
        self._compiled = tuple(self._compile(pattern) for pattern in self.patterns)

    @staticmethod
    def _compile(pattern: str) -> re.Pattern[str]:
        body = "[^/]+".join(re.escape(part) for part in pattern.split("*"))
        return re.compile(f"^{body}(?:/|$)")

    def matches(self, path: str) -> bool:
        return any(regex.match(path) for regex in self._compiled)

    def __contains__(self, path: str) -> bool:
        return self.matches(path)


backend_only = PathPatternSet(BACKEND_ONLY_PATHS)
frontend_only = PathPatternSet(FRONTEND_ONLY_PATHS)
