"""
Span-discipline alarm tests.

Core principle: alarms are smoke detectors, not sprinklers. Detection is
recorded and exported, never raised into the caller.
"""

import logging
from unittest.mock import Mock

import pytest

from analyzer.observability import ObservabilityStore
from analyzer.tracing import (
    InvariantAlarmSystem,
    InvariantViolationEvent,
    NoOpTracer,
    SpanTracker,
    StoreTracer,
    Tracer,
    ViolationType,
)


class TestAlarmDetectionNonBlocking:
    def test_detection_methods_complete_without_raising(self):
        alarm_system = InvariantAlarmSystem()

        alarm_system.detect_parent_closed_with_open_child("trace-123", "analyze", ["http.call"])
        alarm_system.detect_span_ended_twice("trace-123", "analyze")
        alarm_system.detect_mutation_of_closed_span("trace-123", "analyze", "ai.model")

        violations = alarm_system.get_violations()
        assert [v.violation_type for v in violations] == [
            ViolationType.PARENT_CLOSED_WITH_OPEN_CHILD,
            ViolationType.SPAN_ENDED_TWICE,
            ViolationType.MUTATION_OF_CLOSED_SPAN,
        ]
        assert violations[0].severity == "error"
        assert violations[0].context == {"open_children": ["http.call"]}

    def test_clear_violations(self):
        alarm_system = InvariantAlarmSystem()
        alarm_system.detect_span_ended_twice("trace-123", "analyze")

        alarm_system.clear_violations()

        assert alarm_system.get_violations() == []

    def test_sink_failure_is_swallowed(self):
        tracer = Mock(spec=Tracer)
        tracer.is_enabled.return_value = True
        tracer.record_event.side_effect = RuntimeError("sink down")
        alarm_system = InvariantAlarmSystem(tracer=tracer)

        alarm_system.detect_span_ended_twice("trace-123", "analyze")

        assert len(alarm_system.get_violations()) == 1

    def test_disabled_sink_not_called(self):
        tracer = Mock(spec=NoOpTracer)
        tracer.is_enabled.return_value = False
        alarm_system = InvariantAlarmSystem(tracer=tracer)

        alarm_system.detect_span_ended_twice("trace-123", "analyze")

        tracer.record_event.assert_not_called()

    def test_violations_are_logged(self, caplog):
        alarm_system = InvariantAlarmSystem()

        with caplog.at_level(logging.WARNING, logger="analyzer.tracing.alarms"):
            alarm_system.detect_parent_closed_with_open_child("trace-123", "analyze", ["http.call"])

        assert any(r.levelno == logging.ERROR for r in caplog.records)
        assert "analyze" in caplog.text


class TestViolationEventValidation:
    def test_trace_id_required(self):
        with pytest.raises(ValueError):
            InvariantViolationEvent(
                violation_type=ViolationType.SPAN_ENDED_TWICE,
                trace_id="",
                span_name="analyze",
                description="d",
                context={},
                severity="warn",
            )

    def test_invalid_severity(self):
        with pytest.raises(ValueError):
            InvariantViolationEvent(
                violation_type=ViolationType.SPAN_ENDED_TWICE,
                trace_id="t",
                span_name="analyze",
                description="d",
                context={},
                severity="fatal",
            )


class TestAlarmsReachTheStore:
    def test_tracker_violations_recorded_as_events(self):
        store = ObservabilityStore()
        tracker = SpanTracker(tracer=StoreTracer(store))

        span = tracker.begin("analyze")
        tracker.end(span)
        tracker.end(span)

        events = store.get_events()
        assert len(events) == 1
        assert events[0]["name"] == "invariant_violation.span_ended_twice"
        assert events[0]["trace_id"] == span.trace_id
        assert events[0]["metadata"]["severity"] == "warn"
