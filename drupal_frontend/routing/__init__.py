"""Path ownership decisions, redirect safety and backend forwarding."""

from .dispatch import (
    DispatchDecision,
    PageDecision,
    UnifiedDispatcher,
    decide_page,
    init_dispatch,
    resolve_for_request,
)
from .guard import safe_redirect_target, url_origin
from .patterns import PathPatternSet, backend_only, frontend_only
from .proxy import OriginProxy, build_target_url, rewrite_location

__all__ = [
    "DispatchDecision",
    "OriginProxy",
    "PageDecision",
    "PathPatternSet",
    "UnifiedDispatcher",
    "backend_only",
    "build_target_url",
    "decide_page",
    "frontend_only",
    "init_dispatch",
    "resolve_for_request",
    "rewrite_location",
    "safe_redirect_target",
    "url_origin",
]
