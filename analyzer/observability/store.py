"""
In-memory observability store.

Collects span records handed over by the tracing sink.
- Bounded size (FIFO eviction)
- Thread-safe
- Non-blocking
- No persistence
- Metadata only (span attributes, never request text or model output)
"""

from collections import deque
from dataclasses import asdict, dataclass, field
from typing import TYPE_CHECKING, Any, Dict, List, Optional
import threading
import logging

if TYPE_CHECKING:
    from analyzer.tracing.span import Span

logger = logging.getLogger(__name__)


@dataclass
class SpanRecord:
    """Exported copy of a span."""

    span_id: str
    trace_id: str
    name: str
    start_time: float
    parent_id: Optional[str] = None
    attributes: Dict[str, Any] = field(default_factory=dict)
    status: str = "unset"
    status_detail: Optional[str] = None
    end_time: Optional[float] = None
    duration_ms: Optional[float] = None

    @classmethod
    def from_span(cls, span: "Span") -> "SpanRecord":
        return cls(**span.to_dict())


@dataclass
class EventRecord:
    """Point-in-time trace event (e.g. an invariant violation)."""

    name: str
    trace_id: str
    metadata: Dict[str, Any] = field(default_factory=dict)


class ObservabilityStore:
    """
    Thread-safe, bounded in-memory store for span metadata.

    Active spans are keyed by span id until they close; closed spans move
    into a bounded FIFO.
    """

    def __init__(self, max_spans: int = 1000, max_events: int = 500):
        """
        Initialize bounded store.

        Args:
            max_spans: Maximum number of completed spans to keep
            max_events: Maximum number of events to keep
        """
        self.max_spans = max_spans
        self.max_events = max_events

        self.spans: deque = deque(maxlen=max_spans)
        self.events: deque = deque(maxlen=max_events)

        self._lock = threading.RLock()
        self._active_spans: Dict[str, SpanRecord] = {}  # span_id -> SpanRecord

    def record_span_start(self, span: "Span") -> None:
        """Record span start."""
        try:
            with self._lock:
                self._active_spans[span.span_id] = SpanRecord.from_span(span)
        except Exception as e:
            logger.debug(f"Failed to record span start: {e}")

    def record_span_end(self, span: "Span") -> None:
        """Record span end and move to completed."""
        try:
            with self._lock:
                self._active_spans.pop(span.span_id, None)
                self.spans.append(SpanRecord.from_span(span))
        except Exception as e:
            logger.debug(f"Failed to record span end: {e}")

    def record_event(self, name: str, trace_id: str, metadata: Dict[str, Any]) -> None:
        """Record a trace event."""
        try:
            with self._lock:
                self.events.append(EventRecord(name=name, trace_id=trace_id, metadata=dict(metadata)))
        except Exception as e:
            logger.debug(f"Failed to record event: {e}")

    def get_recent_spans(self, limit: int = 100) -> List[Dict[str, Any]]:
        """Get recent completed spans."""
        with self._lock:
            spans = list(self.spans)[-limit:]
        return [asdict(s) for s in spans]

    def get_active_spans(self) -> List[Dict[str, Any]]:
        """Get currently open spans."""
        with self._lock:
            return [asdict(s) for s in self._active_spans.values()]

    def get_trace(self, trace_id: str) -> List[Dict[str, Any]]:
        """Completed spans of one trace, in close order."""
        with self._lock:
            return [asdict(s) for s in self.spans if s.trace_id == trace_id]

    def get_events(self, limit: int = 100) -> List[Dict[str, Any]]:
        """Get recent events."""
        with self._lock:
            events = list(self.events)[-limit:]
        return [asdict(e) for e in events]

    def clear(self) -> None:
        """Clear all stored data."""
        with self._lock:
            self.spans.clear()
            self.events.clear()
            self._active_spans.clear()

    def get_stats(self) -> Dict[str, int]:
        """Get store statistics."""
        with self._lock:
            return {
                "completed_spans": len(self.spans),
                "active_spans": len(self._active_spans),
                "events": len(self.events),
            }
