"""
tests/integration/test_concurrency.py

Many orchestrated calls in flight on one event loop.

Verifies:
✔ Counters add up exactly across 100 interleaved calls
✔ Every call gets its own trace id
✔ The active span seen inside the backend belongs to that call
✔ No span is left open
"""

import asyncio
import json

import pytest

from analyzer.orchestrator import CallOrchestrator, INNER_SPAN
from analyzer.tracing import SpanTracker
from analyzer.types import ErrorKind, Failure, Success
from inference import CallRequest, StubModelBackend

CALLS = 100


class ContextRecordingBackend(StubModelBackend):
    """Records which span is active while the call is suspended."""

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.seen = {}

    async def send(self, request):
        before = SpanTracker.current()
        body = await super().send(request)
        after = SpanTracker.current()
        self.seen[request.text] = (before, after)
        if request.text.endswith("7"):
            raise ConnectionRefusedError("simulated outage")
        return body


def make_request(i):
    return CallRequest(text=f"message {i}", model="claude-test-model", max_tokens=64)


class TestConcurrentCalls:
    @pytest.mark.asyncio
    async def test_counters_and_trace_isolation(self, tracker, metrics):
        backend = ContextRecordingBackend(
            reply_text=json.dumps({"sentiment": "positive", "confidence": 0.9, "analysis": "ok"}),
            delay_s=0.01,
        )
        orchestrator = CallOrchestrator(backend, tracker, metrics)

        outcomes = await asyncio.gather(
            *(orchestrator.run(make_request(i)) for i in range(CALLS))
        )

        failures = [o for o in outcomes if isinstance(o, Failure)]
        successes = [o for o in outcomes if isinstance(o, Success)]
        assert len(failures) == 10
        assert all(f.kind is ErrorKind.TRANSPORT for f in failures)

        snap = metrics.snapshot()
        assert snap.attempted == CALLS
        assert snap.succeeded == len(successes) == 90
        assert snap.failed == 10
        assert snap.duration.count == CALLS
        assert snap.completed == snap.attempted

        assert len({o.trace_id for o in outcomes}) == CALLS
        assert tracker.open_spans() == []

    @pytest.mark.asyncio
    async def test_backend_sees_its_own_span(self, tracker, metrics):
        backend = ContextRecordingBackend(delay_s=0.01)
        orchestrator = CallOrchestrator(backend, tracker, metrics)

        outcomes = await asyncio.gather(
            *(orchestrator.run(make_request(i)) for i in range(CALLS))
        )

        for i, outcome in enumerate(outcomes):
            before, after = backend.seen[f"message {i}"]
            # Same span on both sides of the suspension point
            assert before is after
            assert before.name == INNER_SPAN
            assert before.trace_id == outcome.trace_id
