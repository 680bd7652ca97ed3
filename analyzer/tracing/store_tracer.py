"""Tracing sink that records spans into the local ObservabilityStore."""

from typing import Any, Dict, Optional

from analyzer.observability.store import ObservabilityStore
from analyzer.tracing.span import Span
from analyzer.tracing.tracer import TraceMetadata, Tracer


class StoreTracer(Tracer):
    """Forward span lifecycle and events to an ObservabilityStore."""

    def __init__(self, store: Optional[ObservabilityStore] = None):
        self.store = store or ObservabilityStore()

    def on_span_start(self, span: Span) -> None:
        self.store.record_span_start(span)

    def on_span_end(self, span: Span) -> None:
        self.store.record_span_end(span)

    def record_event(
        self, name: str, metadata: Dict[str, Any], trace_metadata: TraceMetadata
    ) -> None:
        self.store.record_event(name, trace_metadata.trace_id, metadata)

    def is_enabled(self) -> bool:
        return True
