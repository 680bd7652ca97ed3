"""
Tool-agnostic tracing sink abstraction.

A Tracer receives spans from the SpanTracker as they start and close.
Tracing is strictly passive:
- Never influences the orchestrated call
- Never mutates spans
- Failures are non-fatal (the tracker swallows and logs them)
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Optional

from analyzer.tracing.span import Span


@dataclass
class TraceMetadata:
    """Identity attached to a point-in-time event."""

    trace_id: str  # Mandatory: globally unique identifier
    span_id: Optional[str] = None


class Tracer(ABC):
    """
    Abstract tracing sink.

    Append-only: spans are handed over, never read back through this
    interface.
    """

    @abstractmethod
    def on_span_start(self, span: Span) -> None:
        """Called once when a span is opened."""
        pass

    @abstractmethod
    def on_span_end(self, span: Span) -> None:
        """
        Called once when a span is closed.

        The span's end_time and final status are set at this point.
        """
        pass

    @abstractmethod
    def record_event(
        self, name: str, metadata: Dict[str, Any], trace_metadata: TraceMetadata
    ) -> None:
        """
        Record a point-in-time event.

        Args:
            name: Event name (e.g. "invariant_violation.span_ended_twice")
            metadata: Event data
            trace_metadata: Trace identity
        """
        pass

    @abstractmethod
    def is_enabled(self) -> bool:
        """
        Check if tracing is enabled.

        Used for: avoiding expensive metadata construction when disabled
        """
        pass

    def shutdown(self) -> None:
        """Flush and release exporter resources. Called once at process exit."""
        pass


class NoOpTracer(Tracer):
    """
    No-op tracing sink (when tracing is disabled).

    Spans are still created and closed by the tracker; they just go nowhere.
    """

    def on_span_start(self, span: Span) -> None:
        """No-op implementation."""
        pass

    def on_span_end(self, span: Span) -> None:
        """No-op implementation."""
        pass

    def record_event(
        self, name: str, metadata: Dict[str, Any], trace_metadata: TraceMetadata
    ) -> None:
        """No-op implementation."""
        pass

    def is_enabled(self) -> bool:
        """Tracing is disabled."""
        return False
