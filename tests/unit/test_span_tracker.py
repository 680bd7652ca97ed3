"""
Tests for SpanTracker.

Verifies:
✔ Parent/child linkage via explicit parent and via the active span
✔ Root spans get fresh trace ids; children inherit the parent's
✔ end() sets end_time once; second end() is a reported no-op
✔ Closing a parent with an open child is reported and the child is closed
✔ Attributes/status after close are dropped and reported
✔ span() context manager marks ok / error
✔ end() restores the span active before begin(); active span is task-local
✔ Sink failures never propagate
"""

import asyncio
import contextvars
from unittest.mock import Mock

import pytest

from analyzer.tracing import SpanStatus, SpanTracker, Tracer, ViolationType
from analyzer.tracing.span_tracker import CLOSED_BY_PARENT


class TestHierarchy:
    def test_root_span_has_no_parent(self, tracker):
        span = tracker.begin("root")
        assert span.parent_id is None
        assert len(span.trace_id) == 32
        assert len(span.span_id) == 16
        tracker.end(span)

    def test_child_links_to_active_span(self, tracker):
        root = tracker.begin("root")
        child = tracker.begin("child")

        assert child.parent_id == root.span_id
        assert child.trace_id == root.trace_id

        tracker.end(child)
        tracker.end(root)

    def test_explicit_parent_wins_over_active(self, tracker):
        first = tracker.begin("first")
        tracker.end(first)
        other_root = tracker.begin("other")

        child = tracker.begin("child", parent=first)
        assert child.parent_id == first.span_id

        tracker.end(child)
        tracker.end(other_root)

    def test_explicit_trace_id_for_root(self, tracker):
        span = tracker.begin("root", trace_id="abc123")
        assert span.trace_id == "abc123"
        tracker.end(span)

    def test_span_ids_are_unique(self, tracker):
        spans = [tracker.begin(f"s{i}", parent=None) for i in range(50)]
        assert len({s.span_id for s in spans}) == 50
        for span in reversed(spans):
            tracker.end(span)


class TestLifecycle:
    def test_end_sets_end_time(self, tracker):
        span = tracker.begin("op")
        assert span.is_open
        tracker.end(span)

        assert not span.is_open
        assert span.end_time >= span.start_time
        assert tracker.open_spans() == []

    def test_double_end_is_reported_noop(self, tracker):
        span = tracker.begin("op")
        tracker.end(span)
        first_end = span.end_time

        tracker.end(span)

        assert span.end_time == first_end
        violations = tracker.alarms.get_violations()
        assert [v.violation_type for v in violations] == [ViolationType.SPAN_ENDED_TWICE]

    def test_parent_closed_with_open_child(self, tracker):
        parent = tracker.begin("parent")
        child = tracker.begin("child")

        tracker.end(parent)

        assert not child.is_open
        assert child.status == SpanStatus.ERROR
        assert child.status_detail == CLOSED_BY_PARENT
        assert child.end_time <= parent.end_time
        violation_types = [v.violation_type for v in tracker.alarms.get_violations()]
        assert ViolationType.PARENT_CLOSED_WITH_OPEN_CHILD in violation_types
        assert tracker.open_spans(parent.trace_id) == []

    def test_attribute_after_close_is_dropped(self, tracker):
        span = tracker.begin("op")
        tracker.set_attribute(span, "before", 1)
        tracker.end(span)

        tracker.set_attribute(span, "after", 2)
        tracker.set_status(span, SpanStatus.ERROR, "late")

        assert span.attributes == {"before": 1}
        assert span.status == SpanStatus.UNSET
        types = [v.violation_type for v in tracker.alarms.get_violations()]
        assert types == [ViolationType.MUTATION_OF_CLOSED_SPAN] * 2

    def test_attributes_keep_insertion_order(self, tracker):
        span = tracker.begin("op")
        for key in ("z", "a", "m"):
            tracker.set_attribute(span, key, key)
        assert list(span.attributes) == ["z", "a", "m"]
        tracker.end(span)


class TestScopedSpan:
    def test_clean_exit_marks_ok(self, tracker):
        with tracker.span("op", endpoint="/x") as span:
            assert tracker.current() is span
        assert span.status == SpanStatus.OK
        assert span.attributes == {"endpoint": "/x"}
        assert not span.is_open

    def test_exception_marks_error_and_propagates(self, tracker):
        with pytest.raises(RuntimeError):
            with tracker.span("op") as span:
                raise RuntimeError("boom")
        assert span.status == SpanStatus.ERROR
        assert span.status_detail == "boom"
        assert not span.is_open

    def test_explicit_status_is_kept(self, tracker):
        with tracker.span("op") as span:
            tracker.set_status(span, SpanStatus.ERROR, "handled")
        assert span.status_detail == "handled"


class TestActiveSpan:
    def test_end_restores_parent_as_active(self, tracker):
        root = tracker.begin("root")
        child = tracker.begin("child")
        assert tracker.current() is child

        tracker.end(child)
        assert tracker.current() is root

        tracker.end(root)
        assert tracker.current() is None

    def test_end_restores_span_active_before_begin(self, tracker):
        caller = tracker.begin("caller")
        # Opened in a fresh context: a separate root, caller stays active here
        other = contextvars.Context().run(tracker.begin, "other.root")

        child = tracker.begin("child", parent=other)
        assert tracker.current() is child

        tracker.end(child)
        assert tracker.current() is caller

        tracker.end(other)
        tracker.end(caller)
        assert tracker.current() is None

    def test_restored_span_skips_closed_ancestors(self, tracker):
        first = tracker.begin("first")
        second = tracker.begin("second", parent=None)
        inner = tracker.begin("inner", parent=first)

        # Closing "second" while "inner" is active leaves the active span alone
        tracker.end(second)
        assert tracker.current() is inner

        tracker.end(inner)
        assert tracker.current() is first
        tracker.end(first)

    def test_remote_parent_id(self, tracker):
        span = tracker.begin("controller", trace_id="a" * 32, parent_id="b" * 16)
        assert span.trace_id == "a" * 32
        assert span.parent_id == "b" * 16
        tracker.end(span)

    @pytest.mark.asyncio
    async def test_active_span_survives_await_and_is_task_local(self, tracker):
        seen = {}

        async def flow(name: str, delay: float):
            span = tracker.begin(name)
            await asyncio.sleep(delay)
            seen[name] = tracker.current()
            tracker.end(span)
            return span

        a, b = await asyncio.gather(flow("a", 0.02), flow("b", 0.01))

        assert seen["a"] is a
        assert seen["b"] is b
        assert a.trace_id != b.trace_id
        assert tracker.current() is None


class TestSinkFailures:
    def test_sink_exception_does_not_propagate(self):
        sink = Mock(spec=Tracer)
        sink.on_span_start.side_effect = RuntimeError("sink down")
        sink.on_span_end.side_effect = RuntimeError("sink down")
        sink.is_enabled.return_value = True

        tracker = SpanTracker(tracer=sink)
        span = tracker.begin("op")
        tracker.end(span)

        assert not span.is_open
        sink.on_span_end.assert_called_once_with(span)
