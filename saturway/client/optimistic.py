"""Optimistic local mutations reconciled against the server.

Each mutation bumps a per-entity version. While mutations of an entity are in
flight the tracker keeps a base snapshot: the state before the first of them,
replaced by each newer server reply as it lands. A failure of the newest
in-flight mutation restores that base, so a chain of failed mutations never
leaves behind a state the server did not accept.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Hashable, Optional, Set, TypeVar

logger = logging.getLogger(__name__)

S = TypeVar("S")
R = TypeVar("R")


@dataclass
class _InFlight:
    base: Any
    confirmed: int = 0
    versions: Set[int] = field(default_factory=set)


class VersionTracker:
    def __init__(self) -> None:
        self._versions: Dict[Hashable, int] = {}
        self._in_flight: Dict[Hashable, _InFlight] = {}

    def bump(self, key: Hashable) -> int:
        version = self._versions.get(key, 0) + 1
        self._versions[key] = version
        return version

    def current(self, key: Hashable) -> int:
        return self._versions.get(key, 0)

    def begin(self, key: Hashable, version: int, snapshot: Any) -> None:
        """Register ``version`` as in flight. Only the first concurrent snapshot becomes the base."""
        entry = self._in_flight.get(key)
        if entry is None:
            entry = self._in_flight[key] = _InFlight(base=snapshot)
        entry.versions.add(version)

    def base(self, key: Hashable) -> Any:
        return self._in_flight[key].base

    def confirmed(self, key: Hashable) -> int:
        entry = self._in_flight.get(key)
        return entry.confirmed if entry else 0

    def confirm(self, key: Hashable, version: int, base: Any) -> None:
        entry = self._in_flight[key]
        entry.base = base
        entry.confirmed = version

    def newer_pending(self, key: Hashable, version: int) -> bool:
        entry = self._in_flight.get(key)
        return bool(entry) and any(other > version for other in entry.versions)

    def finish(self, key: Hashable, version: int) -> None:
        entry = self._in_flight.get(key)
        if entry is None:
            return
        entry.versions.discard(version)
        if not entry.versions:
            del self._in_flight[key]


def _settle_failure(key: Hashable, version: int, versions: VersionTracker, rollback: Callable[[Any], None]) -> None:
    try:
        if versions.newer_pending(key, version):
            logger.info("Not rolling back superseded mutation of %s (v%s)", key, version)
        elif versions.confirmed(key) > version:
            logger.info("Not rolling back %s (v%s): a newer reply already landed", key, version)
        else:
            rollback(versions.base(key))
    finally:
        versions.finish(key, version)


async def run_optimistic(
    *,
    key: Hashable,
    versions: VersionTracker,
    apply: Callable[[], S],
    call_remote: Callable[[], Awaitable[R]],
    reconcile: Callable[[R], None],
    rollback: Callable[[S], None],
    confirm: Optional[Callable[[R, S], S]] = None,
    on_error: Optional[Callable[[Exception], None]] = None,
) -> R:
    """Apply locally, call the server, then reconcile or roll back.

    ``apply`` mutates local state and returns the snapshot ``rollback`` needs.
    ``confirm`` turns a server reply into the snapshot to roll back to should a
    later mutation of the same entity fail; without it the base stays the
    pre-mutation state. A reply is reconciled only when it is the newest one
    and no newer mutation is still in flight. On failure the base is restored
    (unless a newer mutation is pending or already answered), ``on_error`` is
    told, and the exception re-raised.
    """
    version = versions.bump(key)
    versions.begin(key, version, apply())
    try:
        result = await call_remote()
    except asyncio.CancelledError:
        _settle_failure(key, version, versions, rollback)
        raise
    except Exception as exc:
        _settle_failure(key, version, versions, rollback)
        if on_error:
            on_error(exc)
        raise

    try:
        if version > versions.confirmed(key):
            base = versions.base(key)
            versions.confirm(key, version, confirm(result, base) if confirm else base)
        if versions.confirmed(key) == version and not versions.newer_pending(key, version):
            reconcile(result)
        else:
            logger.debug("Discarding stale reply for %s (v%s, latest v%s)", key, version, versions.current(key))
    finally:
        versions.finish(key, version)
    return result
