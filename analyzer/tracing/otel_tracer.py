"""
OpenTelemetry-backed tracing sink.

Every closed Span is rebuilt as an OpenTelemetry ReadableSpan that keeps the
tracker's own identity (trace id, span id, parent id), timing, attributes
and status, and is handed to a SpanProcessor for export (OTLP by default).

Constraints:
- Export happens on close only; open spans are never exported
- Attributes pass through the same deny list as the logging sink
- Events become zero-length spans inside their trace
- Failures are non-fatal (the tracker swallows and logs them)
"""

import time
import uuid
from typing import Any, Dict, Optional

from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import ReadableSpan, SpanProcessor
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.sdk.util.instrumentation import InstrumentationScope
from opentelemetry.trace import SpanContext, SpanKind, Status, StatusCode, TraceFlags

from analyzer.tracing.logging_tracer import filter_safe_metadata
from analyzer.tracing.span import Span, SpanStatus
from analyzer.tracing.tracer import TraceMetadata, Tracer

DEFAULT_SERVICE_NAME = "ai-sentiment-analyzer"

_STATUS_CODES = {
    SpanStatus.UNSET: StatusCode.UNSET,
    SpanStatus.OK: StatusCode.OK,
    SpanStatus.ERROR: StatusCode.ERROR,
}

# Span kinds by name; everything else is INTERNAL
_SPAN_KINDS = {
    "controller.process_request": SpanKind.SERVER,
    "http.call": SpanKind.CLIENT,
}


def _to_ns(seconds: float) -> int:
    return int(seconds * 1_000_000_000)


def _span_context(trace_id: str, span_id: str) -> SpanContext:
    return SpanContext(
        trace_id=int(trace_id, 16),
        span_id=int(span_id, 16),
        is_remote=False,
        trace_flags=TraceFlags(TraceFlags.SAMPLED),
    )


def _otel_attributes(attributes: Dict[str, Any]) -> Dict[str, Any]:
    """Safe attributes with None dropped (OpenTelemetry rejects None values)."""
    return {k: v for k, v in filter_safe_metadata(attributes).items() if v is not None}


class OTelTracer(Tracer):
    """
    OpenTelemetry implementation of the Tracer interface.

    Args:
        processor: Span processor to export through. Defaults to a
            BatchSpanProcessor over the OTLP/HTTP exporter, which reads
            OTEL_EXPORTER_OTLP_* settings from the environment.
        service_name: ``service.name`` resource attribute
    """

    def __init__(
        self,
        processor: Optional[SpanProcessor] = None,
        service_name: str = DEFAULT_SERVICE_NAME,
    ):
        self.processor = processor or BatchSpanProcessor(OTLPSpanExporter())
        self.resource = Resource.create({"service.name": service_name})
        self.scope = InstrumentationScope("analyzer.tracing")

    def on_span_start(self, span: Span) -> None:
        pass

    def on_span_end(self, span: Span) -> None:
        status = Status(
            _STATUS_CODES[span.status],
            span.status_detail if span.status is SpanStatus.ERROR else None,
        )
        self.processor.on_end(
            self._readable(
                name=span.name,
                trace_id=span.trace_id,
                span_id=span.span_id,
                parent_id=span.parent_id,
                attributes=span.attributes,
                status=status,
                start_time=span.start_time,
                end_time=span.end_time,
                kind=_SPAN_KINDS.get(span.name, SpanKind.INTERNAL),
            )
        )

    def record_event(
        self, name: str, metadata: Dict[str, Any], trace_metadata: TraceMetadata
    ) -> None:
        now = time.time()
        self.processor.on_end(
            self._readable(
                name=name,
                trace_id=trace_metadata.trace_id,
                span_id=uuid.uuid4().hex[:16],
                parent_id=trace_metadata.span_id,
                attributes=metadata,
                status=Status(StatusCode.UNSET),
                start_time=now,
                end_time=now,
                kind=SpanKind.INTERNAL,
            )
        )

    def is_enabled(self) -> bool:
        return True

    def shutdown(self) -> None:
        """Flush pending spans and stop the processor."""
        self.processor.shutdown()

    def _readable(
        self,
        name: str,
        trace_id: str,
        span_id: str,
        parent_id: Optional[str],
        attributes: Dict[str, Any],
        status: Status,
        start_time: float,
        end_time: float,
        kind: SpanKind,
    ) -> ReadableSpan:
        return ReadableSpan(
            name=name,
            context=_span_context(trace_id, span_id),
            parent=_span_context(trace_id, parent_id) if parent_id else None,
            resource=self.resource,
            attributes=_otel_attributes(attributes),
            kind=kind,
            status=status,
            start_time=_to_ns(start_time),
            end_time=_to_ns(end_time),
            instrumentation_scope=self.scope,
        )
