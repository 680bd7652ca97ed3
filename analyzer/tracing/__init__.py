"""Tracing infrastructure: spans, sinks, alarms."""

from analyzer.tracing.span import Span, SpanStatus
from analyzer.tracing.tracer import Tracer, TraceMetadata, NoOpTracer
from analyzer.tracing.logging_tracer import LoggingTracer
from analyzer.tracing.otel_tracer import OTelTracer
from analyzer.tracing.store_tracer import StoreTracer
from analyzer.tracing.span_tracker import SpanTracker
from analyzer.tracing.tracer_factory import create_tracer, get_tracer_backend, get_tracer_config
from analyzer.tracing.alarms import InvariantAlarmSystem, InvariantViolationEvent, ViolationType

__all__ = [
    "Span",
    "SpanStatus",
    "Tracer",
    "TraceMetadata",
    "NoOpTracer",
    "LoggingTracer",
    "OTelTracer",
    "StoreTracer",
    "SpanTracker",
    "create_tracer",
    "get_tracer_backend",
    "get_tracer_config",
    "InvariantAlarmSystem",
    "InvariantViolationEvent",
    "ViolationType",
]
