"""Decide, per request, who renders a path.

Split handling (``decide_page``) turns a resolution into a page outcome.
Unified handling (``UnifiedDispatcher`` + ``init_dispatch``) runs before every
request in frontend-first deployments and either lets the request through to
the local handlers or forwards it to the backend origin.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from time import perf_counter

from flask import Flask, current_app, g, request

from ..backend.resolver import ResolverClient
from ..backend.schemas import EntityResolution, ResolutionResult, ViewResolution
from ..errors import ResolutionError
from ..logging import backend_log_extra
from ..monitoring import timed_operation
from ..settings import FrontendSettings
from .guard import safe_redirect_target
from .patterns import PathPatternSet, backend_only, frontend_only

logger = logging.getLogger(__name__)

NOT_FOUND = "not_found"
REDIRECT = "redirect"
RENDER_VIEW = "render_view"
RENDER_ENTITY = "render_entity"

PASS_THROUGH = "pass_through"
FORWARD = "forward"

BACKEND_REDIRECT_STATUS = 307


@dataclass(frozen=True)
class PageDecision:
    action: str
    target: str | None = None
    status: int | None = None


def decide_page(result: ResolutionResult, backend_base_url: str | None) -> PageDecision:
    """Map a resolution onto what the page handler should do.

    Every redirect built from backend data passes through the safe-redirect
    guard; a target that fails it turns the page into a not-found.
    """

    if not result.resolved:
        return PageDecision(NOT_FOUND)

    if result.redirect is not None:
        target = safe_redirect_target(result.redirect.to, backend_base_url)
        if target is None:
            return PageDecision(NOT_FOUND)
        return PageDecision(REDIRECT, target=target, status=result.redirect.status)

    if not result.headless:
        target = safe_redirect_target(result.backend_url, backend_base_url)
        if target is None:
            return PageDecision(NOT_FOUND)
        return PageDecision(REDIRECT, target=target, status=BACKEND_REDIRECT_STATUS)

    if isinstance(result, ViewResolution) and result.data_locator:
        return PageDecision(RENDER_VIEW, target=result.data_locator)
    if isinstance(result, EntityResolution) and result.resource_locator:
        return PageDecision(RENDER_ENTITY, target=result.resource_locator)

    return PageDecision(NOT_FOUND)


@dataclass(frozen=True)
class DispatchDecision:
    action: str
    reason: str
    result: ResolutionResult | None = None
    error: ResolutionError | None = None

    @property
    def forward(self) -> bool:
        return self.action == FORWARD


class UnifiedDispatcher:
    """Pass-through or forward decisions for frontend-first deployments."""

    def __init__(
        self,
        settings: FrontendSettings,
        resolver: ResolverClient,
        *,
        backend_paths: PathPatternSet = backend_only,
        frontend_paths: PathPatternSet = frontend_only,
    ) -> None:
        self._settings = settings
        self._resolver = resolver
        self._backend_paths = backend_paths
        self._frontend_paths = frontend_paths

    def decide(self, path: str) -> DispatchDecision:
        if path in self._frontend_paths:
            return DispatchDecision(PASS_THROUGH, "frontend_only")
        if path in self._backend_paths:
            return DispatchDecision(FORWARD, "backend_only")
        if not self._settings.backend_base_url:
            return DispatchDecision(PASS_THROUGH, "disabled")

        try:
            result = self._resolver.resolve_for_render(path)
        except ResolutionError as exc:
            # Resolver errors never name the backend; the message is safe to log.
            logger.warning(
                "Resolver failed during dispatch, handling locally: %s",
                exc.message,
                extra=backend_log_extra(
                    event="dispatch.decide",
                    status="error",
                    path=path,
                    decision=PASS_THROUGH,
                    error=type(exc).__name__,
                ),
            )
            return DispatchDecision(PASS_THROUGH, "resolver_error", error=exc)

        if not result.resolved:
            return DispatchDecision(PASS_THROUGH, "unresolved", result=result)
        if result.headless:
            return DispatchDecision(PASS_THROUGH, "headless", result=result)
        return DispatchDecision(FORWARD, "non_headless", result=result)


def resolve_for_request(resolver: ResolverClient, path: str) -> ResolutionResult:
    """Resolve ``path`` once per request.

    Reuses what unified dispatch already learned about the same path, including
    a resolver failure, instead of calling the resolver a second time.

    Raises:
        ConfigurationError: If no backend base URL is configured.
        ResolutionError: If the resolver fails.
    """

    stashed = getattr(g, "resolution", None)
    if stashed is not None and stashed[0] == path:
        return stashed[1]
    error = getattr(g, "resolution_error", None)
    if error is not None and error[0] == path:
        raise error[1]

    result = resolver.resolve_for_render(path)
    g.resolution = (path, result)
    return result


def init_dispatch(app: Flask) -> None:
    """Register the unified-mode dispatcher when the deployment asks for it."""

    settings: FrontendSettings = app.extensions["frontend_settings"]
    if not settings.frontend_first:
        return

    dispatcher = UnifiedDispatcher(settings, app.extensions["resolver_client"])
    app.extensions["unified_dispatcher"] = dispatcher

    @app.before_request
    def _dispatch_unified():
        path = request.path
        start = perf_counter()
        with timed_operation("dispatch.decide", metadata={"path": path}):
            decision = dispatcher.decide(path)

        g.dispatch_reason = decision.reason
        if decision.result is not None:
            g.resolution = (path, decision.result)
        if decision.error is not None:
            g.resolution_error = (path, decision.error)

        logger.debug(
            "Dispatch decided",
            extra=backend_log_extra(
                event="dispatch.decide",
                status="success",
                duration_ms=(perf_counter() - start) * 1000,
                path=path,
                decision=decision.action,
            ),
        )

        if not decision.forward:
            return None
        response = current_app.extensions["origin_proxy"].forward(request)
        if response is None:
            g.dispatch_reason = f"{decision.reason}:proxy_unavailable"
        return response


