"""
Span hierarchy with a continuation-local active span.

The active span lives in a ContextVar, not in thread-local storage: an
asyncio task carries its own copy of the context across every await, so the
active span follows the logical call even when it resumes on a different
worker, and concurrent tasks never observe each other's active span.

Lifecycle rules enforced here:
- begin() links to the active span unless a parent is passed explicitly
- end() sets the end time exactly once; a second end() is a reported no-op
- end() hands the active span back to whatever was active before begin()
- closing a parent with open children is reported and the children are
  closed first with status error
- attributes/status written after close are dropped and reported
"""

import logging
import threading
import time
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Dict, Iterator, List, Optional

from analyzer.tracing.alarms import InvariantAlarmSystem
from analyzer.tracing.span import Span, SpanStatus
from analyzer.tracing.tracer import NoOpTracer, Tracer

logger = logging.getLogger(__name__)

_active_span: ContextVar[Optional[Span]] = ContextVar("active_span", default=None)

CLOSED_BY_PARENT = "closed by parent"


def _new_trace_id() -> str:
    return uuid.uuid4().hex


def _new_span_id() -> str:
    return uuid.uuid4().hex[:16]


class SpanTracker:
    """
    Creates, tags and closes spans, and forwards them to a tracing sink.

    One tracker is shared by the whole process; per-call state is the Span
    objects themselves plus the ContextVar.
    """

    def __init__(
        self,
        tracer: Optional[Tracer] = None,
        alarms: Optional[InvariantAlarmSystem] = None,
    ):
        self.tracer = tracer or NoOpTracer()
        self.alarms = alarms or InvariantAlarmSystem(tracer=self.tracer)
        self._lock = threading.Lock()
        self._open: Dict[str, Span] = {}

    # ── lifecycle ────────────────────────────────────────────

    def begin(
        self,
        name: str,
        parent: Optional[Span] = None,
        trace_id: Optional[str] = None,
        parent_id: Optional[str] = None,
    ) -> Span:
        """
        Open a span and make it the active span of the calling flow.

        Args:
            name: Span name (e.g. "analyze", "http.call")
            parent: Explicit parent; defaults to the active span
            trace_id: Trace id for a new root span; ignored when a parent exists
            parent_id: Id of a remote parent (e.g. from an inbound traceparent
                header); ignored when a local parent exists
        """
        if parent is None:
            parent = _active_span.get()

        span = Span(
            span_id=_new_span_id(),
            trace_id=parent.trace_id if parent else (trace_id or _new_trace_id()),
            name=name,
            start_time=time.time(),
            parent_id=parent.span_id if parent else parent_id,
            parent=parent,
        )

        with self._lock:
            self._open[span.span_id] = span
            if parent is not None and parent.is_open:
                parent.open_children.add(span.span_id)

        span.context_token = _active_span.set(span)
        self._notify(self.tracer.on_span_start, span)
        return span

    def end(self, span: Span) -> None:
        """Close ``span``. Must be called exactly once per begin()."""
        if not span.is_open:
            self.alarms.detect_span_ended_twice(span.trace_id, span.name)
            return

        with self._lock:
            children = [self._open[c] for c in span.open_children if c in self._open]

        if children:
            self.alarms.detect_parent_closed_with_open_child(
                span.trace_id, span.name, [child.name for child in children]
            )
            for child in children:
                if child.status is not SpanStatus.ERROR:
                    self.set_status(child, SpanStatus.ERROR, CLOSED_BY_PARENT)
                self.end(child)

        span.end_time = max(time.time(), span.start_time)

        with self._lock:
            self._open.pop(span.span_id, None)
            if span.parent is not None:
                span.parent.open_children.discard(span.span_id)

        if _active_span.get() is span:
            self._restore_active(span)

        self._notify(self.tracer.on_span_end, span)

    @contextmanager
    def span(
        self,
        name: str,
        parent: Optional[Span] = None,
        trace_id: Optional[str] = None,
        parent_id: Optional[str] = None,
        **attributes: Any,
    ) -> Iterator[Span]:
        """
        Scoped span: ``with tracker.span("name", key=value) as span:``

        Any exception (cancellation included) marks the span error before it
        propagates; a clean exit marks it ok unless a status was already set.
        """
        span = self.begin(name, parent=parent, trace_id=trace_id, parent_id=parent_id)
        for key, value in attributes.items():
            self.set_attribute(span, key, value)
        try:
            yield span
        except BaseException as e:
            self.set_status(span, SpanStatus.ERROR, str(e) or type(e).__name__)
            raise
        else:
            if span.status is SpanStatus.UNSET:
                self.set_status(span, SpanStatus.OK)
        finally:
            self.end(span)

    # ── tagging ──────────────────────────────────────────────

    def set_attribute(self, span: Span, key: str, value: Any) -> None:
        if not span.is_open:
            self.alarms.detect_mutation_of_closed_span(span.trace_id, span.name, key)
            return
        span.attributes[key] = value

    def set_status(
        self, span: Span, status: SpanStatus, detail: Optional[str] = None
    ) -> None:
        if not span.is_open:
            self.alarms.detect_mutation_of_closed_span(span.trace_id, span.name, "status")
            return
        span.status = status
        span.status_detail = detail

    # ── inspection ───────────────────────────────────────────

    @staticmethod
    def current() -> Optional[Span]:
        """Active span of the calling logical flow."""
        return _active_span.get()

    def open_spans(self, trace_id: Optional[str] = None) -> List[Span]:
        """Spans opened and not yet closed, optionally for one trace."""
        with self._lock:
            spans = list(self._open.values())
        if trace_id is None:
            return spans
        return [s for s in spans if s.trace_id == trace_id]

    # ── internals ────────────────────────────────────────────

    @staticmethod
    def _restore_active(span: Span) -> None:
        """Reinstate the span that was active when ``span`` began."""
        try:
            _active_span.reset(span.context_token)
        except (ValueError, RuntimeError, TypeError):
            # Ended from another context: the token belongs elsewhere
            _active_span.set(span.parent)
        span.context_token = None

        restored = _active_span.get()
        while restored is not None and not restored.is_open:
            restored = restored.parent
        if restored is not _active_span.get():
            _active_span.set(restored)

    @staticmethod
    def _notify(callback, span: Span) -> None:
        try:
            callback(span)
        except Exception as e:
            # Sink failure is non-fatal
            logger.debug(f"Tracing sink failed for span {span.name}: {e}")
