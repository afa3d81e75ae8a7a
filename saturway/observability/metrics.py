"""Lightweight metrics helpers."""
from __future__ import annotations

import logging
from contextlib import contextmanager
from time import perf_counter
from typing import Any, Dict, Iterator, Optional

from saturway.observability import tracing

logger = logging.getLogger(__name__)


def log_metric(name: str, value: float | int, metadata: Optional[Dict[str, Any]] = None) -> None:
    """Record a metric as a short-lived Opik trace if tracing is enabled."""
    client = tracing.get_opik_client()
    if not client:
        return

    payload: Dict[str, Any] = {"value": value}
    if metadata:
        payload.update({key: val for key, val in metadata.items() if val is not None})

    try:
        metric_trace = client.trace(name=f"metric:{name}", metadata=payload)
    except Exception as exc:  # pragma: no cover - SDK failure must not break requests
        logger.debug("Unable to record metric %s: %s", name, exc)
        return
    tracing._end(metric_trace, name)


@contextmanager
def timed(name: str, metadata: Optional[Dict[str, Any]] = None) -> Iterator[None]:
    """Log ``<name>.success`` and ``<name>.latency_ms`` around a block that completes."""
    started = perf_counter()
    yield
    log_metric(f"{name}.success", 1, metadata=metadata)
    log_metric(f"{name}.latency_ms", (perf_counter() - started) * 1000, metadata=metadata)
