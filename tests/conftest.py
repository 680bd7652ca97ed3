"""Pytest configuration and fixtures."""

import sys
from pathlib import Path

import pytest

# Add project root to sys.path for imports
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from analyzer.metrics import MetricsRecorder  # noqa: E402
from analyzer.observability import ObservabilityStore  # noqa: E402
from analyzer.orchestrator import CallOrchestrator  # noqa: E402
from analyzer.tracing import SpanTracker, StoreTracer  # noqa: E402
from inference import StubModelBackend  # noqa: E402


@pytest.fixture
def store():
    return ObservabilityStore()


@pytest.fixture
def tracker(store):
    return SpanTracker(tracer=StoreTracer(store))


@pytest.fixture
def metrics():
    return MetricsRecorder()


@pytest.fixture
def make_orchestrator(tracker, metrics):
    """Build an orchestrator around a StubModelBackend configured per test."""

    def _make(timeout_s: float = 30.0, **stub_kwargs) -> CallOrchestrator:
        return CallOrchestrator(
            backend=StubModelBackend(**stub_kwargs),
            tracker=tracker,
            metrics=metrics,
            timeout_s=timeout_s,
        )

    return _make


@pytest.fixture(autouse=True)
def clear_active_span():
    """Each test starts without an active span."""
    from analyzer.tracing.span_tracker import _active_span

    token = _active_span.set(None)
    yield
    _active_span.reset(token)
