"""Timing helpers for outbound backend calls."""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping, MutableMapping
from contextlib import contextmanager
from time import perf_counter
from typing import Any

from flask import current_app, g, has_app_context

LOG_EVENT_NAME = "performance.timing"
CONFIG_ENABLED_KEY = "TIMING_LOGS_ENABLED"
CONFIG_THRESHOLD_KEY = "TIMING_MIN_DURATION_MS"

logger = logging.getLogger(__name__)


def _is_enabled() -> bool:
    if not has_app_context():
        return False
    value = current_app.config.get(CONFIG_ENABLED_KEY, False)
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in {"1", "true", "yes", "on"}


def _threshold_ms() -> float | None:
    if not has_app_context():
        return None
    value = current_app.config.get(CONFIG_THRESHOLD_KEY)
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _should_log(duration_ms: float, *, enabled: bool, threshold_ms: float | None) -> bool:
    if enabled:
        return True
    if threshold_ms is None:
        return False
    return duration_ms >= threshold_ms


def _prepare_payload(
    *,
    event: str,
    duration_ms: float,
    metadata: Mapping[str, Any] | None,
    error: BaseException | None,
) -> MutableMapping[str, Any]:
    payload: MutableMapping[str, Any] = {
        "event": event or LOG_EVENT_NAME,
        "duration_ms": round(duration_ms, 3),
        "source": "performance",
        "status": "error" if error else "success",
    }
    request_id = getattr(g, "request_id", None) if has_app_context() else None
    if request_id:
        payload["request_id"] = request_id
    if metadata:
        for key, value in metadata.items():
            payload[str(key)] = value
    if error is not None:
        # Class name only: messages from the HTTP stack embed backend hosts.
        payload["error"] = type(error).__name__
    return payload


@contextmanager
def timed_operation(
    event: str,
    *,
    metadata: Mapping[str, Any] | None = None,
    log: logging.Logger | None = None,
) -> Iterator[None]:
    """Measure the wall time of a block and log it when timing logs are on."""

    enabled = _is_enabled()
    threshold_ms = _threshold_ms()
    log = log or logger
    start = perf_counter()
    error: BaseException | None = None
    try:
        yield
    except Exception as exc:
        error = exc
        raise
    finally:
        duration_ms = (perf_counter() - start) * 1000
        if _should_log(duration_ms, enabled=enabled, threshold_ms=threshold_ms):
            payload = _prepare_payload(
                event=event, duration_ms=duration_ms, metadata=metadata, error=error
            )
            if error:
                log.warning("Timing captured (error)", extra=payload)
            else:
                log.info("Timing captured", extra=payload)
