"""Tracing utilities wrapping Opik."""
from __future__ import annotations

import logging
from contextlib import contextmanager
from time import perf_counter
from typing import TYPE_CHECKING, Any, Dict, Iterator, Optional

from saturway.core.context import get_request_id, get_user_id
from saturway.observability.client import get_opik_client

if TYPE_CHECKING:  # pragma: no cover - typing helper
    from opik.api_objects.trace.trace_client import Trace
else:  # pragma: no cover - typing helper
    Trace = object  # type: ignore[assignment]

logger = logging.getLogger(__name__)


def start_trace(name: str, metadata: Optional[Dict[str, Any]] = None) -> Optional["Trace"]:
    """Open a raw Opik trace, or return None when tracing is off."""
    client = get_opik_client()
    if not client:
        return None
    try:
        return client.trace(name=name, metadata=metadata or None)
    except Exception as exc:  # pragma: no cover - SDK failure must not break requests
        logger.debug("Unable to start Opik trace %s: %s", name, exc)
        return None


def _end(opik_trace: Optional["Trace"], name: str) -> None:
    if not opik_trace:
        return
    try:
        opik_trace.end()
    except Exception:  # pragma: no cover
        logger.debug("Failed to close Opik trace %s cleanly", name, exc_info=True)


@contextmanager
def trace(
    name: str,
    metadata: Optional[Dict[str, Any]] = None,
    user_id: Optional[str] = None,
    request_id: Optional[str] = None,
) -> Iterator[Optional["Trace"]]:
    """
    Create an Opik trace context manager.

    user_id and request_id default to the values bound to the current request.
    The elapsed time is attached as ``duration_ms`` when the block exits.
    When Opik is disabled or unavailable the context is a no-op.
    """
    trace_metadata = {key: value for key, value in (metadata or {}).items() if value is not None}
    resolved_user = user_id or get_user_id()
    resolved_request = request_id or get_request_id()
    if resolved_user:
        trace_metadata.setdefault("user_id", str(resolved_user))
    if resolved_request:
        trace_metadata.setdefault("request_id", resolved_request)

    opik_trace = start_trace(name, trace_metadata)
    started = perf_counter()

    try:
        yield opik_trace
    except Exception as exc:
        if opik_trace:
            try:
                opik_trace.update(error_info={"exception_type": type(exc).__name__, "message": str(exc)})
            except Exception:  # pragma: no cover
                logger.debug("Failed to attach error info to Opik trace %s", name, exc_info=True)
        raise
    finally:
        if opik_trace:
            try:
                opik_trace.update(metadata={**trace_metadata, "duration_ms": (perf_counter() - started) * 1000})
            except Exception:  # pragma: no cover
                logger.debug("Failed to attach duration to Opik trace %s", name, exc_info=True)
        _end(opik_trace, name)
