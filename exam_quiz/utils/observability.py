from __future__ import annotations

import json
import logging
import time
from functools import wraps
from typing import Any, Dict, Optional


def _safe_value(value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, (list, tuple, set)):
        return [_safe_value(v) for v in value]
    if isinstance(value, dict):
        return {str(k): _safe_value(v) for k, v in value.items()}
    if hasattr(value, "model_dump"):
        return _safe_value(value.model_dump(mode="json"))
    return str(value)


def log_event(logger, event: str, *, level: str = "info", **fields: Any) -> None:
    """
    Emit a single-line JSON log with a stable `event` key.
    None-valued fields are dropped. Never raises.
    """
    try:
        payload: Dict[str, Any] = {"event": event}
        for k, v in fields.items():
            if v is None:
                continue
            payload[str(k)] = _safe_value(v)
        line = json.dumps(payload, ensure_ascii=False, separators=(",", ":"))
        fn = getattr(logger, level, None) or getattr(logger, "info", None)
        if fn:
            fn(line)
    except Exception:
        return


def trace_span(name: str) -> Any:
    """
    Lightweight tracing decorator for synchronous callables.
    Emits trace_start/trace_end events via log_event.
    """

    def decorator(fn):
        logger = logging.getLogger(fn.__module__)

        @wraps(fn)
        def wrapper(*args, **kwargs):
            start = time.monotonic()
            log_event(logger, "trace_start", level="debug", span=name)
            try:
                result = fn(*args, **kwargs)
            except Exception as e:
                log_event(
                    logger,
                    "trace_end",
                    level="warning",
                    span=name,
                    elapsed_ms=int((time.monotonic() - start) * 1000),
                    error_type=e.__class__.__name__,
                    error=str(e),
                )
                raise
            log_event(
                logger,
                "trace_end",
                level="debug",
                span=name,
                elapsed_ms=int((time.monotonic() - start) * 1000),
            )
            return result

        return wrapper

    return decorator


def get_request_id_from_headers(headers: Any) -> Optional[str]:
    """
    Extract a correlation id from X-Request-Id / X-Correlation-Id.
    Returns stripped string or None.
    """
    if not hasattr(headers, "get"):
        return None
    for key in ("x-request-id", "x-correlation-id"):
        v = headers.get(key)
        if not v:
            continue
        s = str(v).strip()
        if s:
            return s
    return None
