"""
Call orchestration.

Wraps ONE outbound sentiment call in spans, metrics and a deadline:

    attempt +1
    └── span "analyze"            ai.input.length, ai.model, ai.output.*
        └── span "http.call"      http.method, http.url
              (suspends here until response / timeout / cancellation)
    envelope → extract() → Success
    succeeded|failed +1, duration observed once

Per invocation: Idle → OuterSpanOpen → InnerSpanOpen →
{TimedOut | TransportFailed | ResponseReceived} → Extracted → Closed.

Guarantees:
- Every span opened is closed exactly once, children before parents
- Exactly one (attempt, outcome, duration) triple per invocation
- Timeout / transport / envelope problems return Failure, never raise
- Cancellation closes spans, counts a failure, then re-raises CancelledError
- No retries
"""

import asyncio
import logging
import time
from typing import Optional

import httpx

from analyzer.extraction import extract
from analyzer.metrics import MetricsRecorder
from analyzer.tracing import Span, SpanStatus, SpanTracker
from analyzer.types import ErrorKind, Failure, Outcome, Success
from inference import CallRequest, MalformedEnvelopeError, ModelBackend

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_S = 30.0

OUTER_SPAN = "analyze"
INNER_SPAN = "http.call"


class CallOrchestrator:
    """
    Top-level component: one request in, one Outcome out.

    Usage:
        orchestrator = CallOrchestrator(backend, SpanTracker(), MetricsRecorder())
        outcome = await orchestrator.run(CallRequest(text="Great!", model="..."))
    """

    def __init__(
        self,
        backend: ModelBackend,
        tracker: SpanTracker,
        metrics: MetricsRecorder,
        timeout_s: float = DEFAULT_TIMEOUT_S,
    ):
        self.backend = backend
        self.tracker = tracker
        self.metrics = metrics
        self.timeout_s = timeout_s

    async def run(self, request: CallRequest, parent: Optional[Span] = None) -> Outcome:
        """
        Analyze ``request.text`` through the model backend.

        Args:
            request: Validated call request
            parent: Explicit parent span; defaults to the caller's active span

        Returns:
            Success with the extracted result, or a classified Failure

        Raises:
            asyncio.CancelledError: after cleanup, if the caller cancelled
        """
        started = time.perf_counter()
        self.metrics.increment_attempted()

        outer = self.tracker.begin(OUTER_SPAN, parent=parent)
        self.tracker.set_attribute(outer, "ai.input.length", len(request.text))
        self.tracker.set_attribute(outer, "ai.model", request.model)
        inner: Optional[Span] = None

        logger.info(
            f"Starting sentiment analysis for text: {request.text[:50]}. "
            f"TraceId: {outer.trace_id}",
            extra={"trace_id": outer.trace_id},
        )

        try:
            inner = self.tracker.begin(INNER_SPAN, parent=outer)
            self.tracker.set_attribute(inner, "http.method", "POST")
            self.tracker.set_attribute(inner, "http.url", self.backend.endpoint)

            try:
                raw_body = await asyncio.wait_for(
                    self.backend.send(request), timeout=self.timeout_s
                )
            except (asyncio.TimeoutError, httpx.TimeoutException) as e:
                message = f"AI call timed out after {self.timeout_s:g}s"
                if isinstance(e, httpx.TimeoutException) and str(e):
                    message = f"{message}: {e}"
                return self._fail(ErrorKind.TIMEOUT, message, started, outer, inner)
            except httpx.HTTPStatusError as e:
                message = f"AI API returned HTTP {e.response.status_code}"
                return self._fail(ErrorKind.TRANSPORT, message, started, outer, inner)
            except httpx.HTTPError as e:
                message = f"AI API transport error: {type(e).__name__}: {e}"
                return self._fail(ErrorKind.TRANSPORT, message, started, outer, inner)
            except Exception as e:
                logger.exception(
                    f"Unexpected error from model backend. TraceId: {outer.trace_id}"
                )
                message = f"Unexpected error calling AI API: {type(e).__name__}"
                return self._fail(ErrorKind.TRANSPORT, message, started, outer, inner)

            self.tracker.set_status(inner, SpanStatus.OK)
            self.tracker.end(inner)
            inner = None

            try:
                text = self.backend.unwrap(raw_body)
            except MalformedEnvelopeError as e:
                return self._fail(ErrorKind.MALFORMED_ENVELOPE, str(e), started, outer)

            result = extract(text)

            self.tracker.set_attribute(outer, "ai.output.sentiment", result.sentiment)
            self.tracker.set_attribute(outer, "ai.output.confidence", result.confidence)
            self.tracker.set_attribute(outer, "ai.extraction.tier", result.tier.value)
            self.tracker.set_status(outer, SpanStatus.OK)
            self.tracker.end(outer)

            elapsed = time.perf_counter() - started
            self.metrics.increment_succeeded()
            self.metrics.record_duration(elapsed)

            logger.info(
                f"Sentiment analysis completed in {elapsed * 1000:.0f}ms. "
                f"Sentiment: {result.sentiment} ({result.tier.value}). "
                f"TraceId: {outer.trace_id}",
                extra={"trace_id": outer.trace_id},
            )
            return Success(result=result, duration_seconds=elapsed, trace_id=outer.trace_id)

        except asyncio.CancelledError:
            self._fail(ErrorKind.CANCELLED, "cancelled", started, outer, inner)
            raise

    def _fail(
        self,
        kind: ErrorKind,
        message: str,
        started: float,
        outer: Span,
        inner: Optional[Span] = None,
    ) -> Failure:
        """Mark and close open spans (inner first), count the failure, observe duration."""
        for span in (inner, outer):
            if span is not None and span.is_open:
                self.tracker.set_status(span, SpanStatus.ERROR, message)
                self.tracker.set_attribute(span, "error.kind", kind.value)
                self.tracker.end(span)

        elapsed = time.perf_counter() - started
        self.metrics.increment_failed()
        self.metrics.record_duration(elapsed)

        if kind is ErrorKind.CANCELLED:
            logger.info(
                f"Sentiment analysis cancelled by caller. TraceId: {outer.trace_id}",
                extra={"trace_id": outer.trace_id},
            )
        else:
            logger.error(
                f"Error during sentiment analysis ({kind.value}): {message}. "
                f"TraceId: {outer.trace_id}",
                extra={"trace_id": outer.trace_id},
            )
        return Failure(kind=kind, message=message, duration_seconds=elapsed, trace_id=outer.trace_id)
