"""Tests ensuring observability wiring is safe by default."""
from __future__ import annotations

from typing import Any, Dict

import pytest

from saturway.observability import client as client_module
from saturway.observability import tracing


class _DummyTrace:
    def __init__(self, metadata: Dict[str, Any] | None = None):
        self.metadata = metadata or {}
        self.error_info: Dict[str, Any] | None = None
        self.ended = False

    def update(self, metadata=None, error_info=None, **kwargs):
        if metadata:
            self.metadata = metadata
        if error_info:
            self.error_info = error_info

    def end(self):
        self.ended = True


class _DummyOpik:
    def __init__(self, *args, **kwargs):
        self.kwargs = kwargs
        self.traces: list[_DummyTrace] = []

    def trace(self, **kwargs):
        trace = _DummyTrace(metadata=kwargs.get("metadata"))
        self.traces.append(trace)
        return trace


@pytest.fixture(autouse=True)
def _reset_client():
    client_module.reset_opik_client()
    yield
    client_module.reset_opik_client()


def test_init_opik_returns_none_when_disabled(monkeypatch) -> None:
    monkeypatch.setattr(client_module.settings, "opik_enabled", False)
    monkeypatch.setattr(client_module, "Opik", _DummyOpik)

    assert client_module.init_opik() is None
    assert client_module.get_opik_client() is None


def test_init_opik_requires_api_key(monkeypatch) -> None:
    monkeypatch.setattr(client_module.settings, "opik_enabled", True)
    monkeypatch.setattr(client_module.settings, "opik_api_key", None)
    monkeypatch.setattr(client_module, "Opik", _DummyOpik)

    assert client_module.init_opik() is None


def test_init_opik_builds_client_once(monkeypatch) -> None:
    monkeypatch.setattr(client_module.settings, "opik_enabled", True)
    monkeypatch.setattr(client_module.settings, "opik_api_key", "key")
    monkeypatch.setattr(client_module.settings, "opik_project", "saturway-test")
    monkeypatch.setattr(client_module, "Opik", _DummyOpik)

    first = client_module.init_opik()
    second = client_module.get_opik_client()

    assert isinstance(first, _DummyOpik)
    assert first is second
    assert first.kwargs["project_name"] == "saturway-test"


def test_trace_attaches_ids_and_duration(monkeypatch) -> None:
    dummy = _DummyOpik()
    monkeypatch.setattr(tracing, "get_opik_client", lambda: dummy)

    with tracing.trace("task.list", metadata={"route": "/tasks", "status": None}, user_id="u1", request_id="r1"):
        pass

    recorded = dummy.traces[0]
    assert recorded.metadata["route"] == "/tasks"
    assert "status" not in recorded.metadata
    assert recorded.metadata["user_id"] == "u1"
    assert recorded.metadata["request_id"] == "r1"
    assert recorded.metadata["duration_ms"] >= 0
    assert recorded.ended is True


def test_trace_records_error_and_reraises(monkeypatch) -> None:
    dummy = _DummyOpik()
    monkeypatch.setattr(tracing, "get_opik_client", lambda: dummy)

    with pytest.raises(ValueError):
        with tracing.trace("ai.chat"):
            raise ValueError("bad reply")

    assert dummy.traces[0].error_info == {"exception_type": "ValueError", "message": "bad reply"}
    assert dummy.traces[0].ended is True


def test_trace_is_noop_without_client(monkeypatch) -> None:
    monkeypatch.setattr(tracing, "get_opik_client", lambda: None)

    with tracing.trace("health") as opik_trace:
        assert opik_trace is None
