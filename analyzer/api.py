"""
Sentiment HTTP boundary.

POST /api/sentiment/analyze  → orchestrated call, mapped to HTTP
GET  /api/sentiment/health   → static liveness payload

Flow:
  request (+ optional W3C traceparent) → controller span → CallOrchestrator.run → response / HTTP error

Status mapping:
  timeout            → 504
  transport          → 502
  malformed_envelope → 502
  invalid request    → 422 (pydantic)
"""

import logging
import time
from typing import Mapping, Optional, Tuple

from fastapi import APIRouter, Depends, HTTPException, Request
from opentelemetry import trace as otel_trace
from opentelemetry.trace.propagation.tracecontext import TraceContextTextMapPropagator
from pydantic import BaseModel, ConfigDict, Field

from analyzer.tracing import SpanStatus
from analyzer.types import ErrorKind, Failure
from inference import CallRequest, MAX_INPUT_CHARS
from infra import InfraBootstrap, bootstrap_infrastructure

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/sentiment", tags=["sentiment"])

ENDPOINT = "/api/sentiment/analyze"

_STATUS_BY_KIND = {
    ErrorKind.TIMEOUT: 504,
    ErrorKind.TRANSPORT: 502,
    ErrorKind.MALFORMED_ENVELOPE: 502,
}

_propagator = TraceContextTextMapPropagator()


class SentimentRequest(BaseModel):
    text: str = Field(..., min_length=1, max_length=MAX_INPUT_CHARS)


class SentimentResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    sentiment: str
    confidence: float
    analysis: str
    processing_time_ms: int = Field(..., alias="processingTimeMs")
    trace_id: str = Field(..., alias="traceId")


def get_infra() -> InfraBootstrap:
    """Process-wide components (overridable in tests)."""
    return bootstrap_infrastructure()


def remote_parent(headers: Mapping[str, str]) -> Tuple[Optional[str], Optional[str]]:
    """
    Trace id and parent span id carried by an inbound ``traceparent`` header.

    Returns (None, None) when the header is absent or invalid, in which case
    the controller span starts a new trace.
    """
    context = _propagator.extract(carrier=headers)
    span_context = otel_trace.get_current_span(context).get_span_context()
    if not span_context.is_valid:
        return None, None
    return (
        otel_trace.format_trace_id(span_context.trace_id),
        otel_trace.format_span_id(span_context.span_id),
    )


@router.post("/analyze", response_model=SentimentResponse)
async def analyze_sentiment(
    body: SentimentRequest,
    http_request: Request,
    infra: InfraBootstrap = Depends(get_infra),
) -> SentimentResponse:
    """Analyze the sentiment of ``body.text``."""
    started = time.perf_counter()
    infra.get_metrics().increment_endpoint(ENDPOINT)
    tracker = infra.get_tracker()
    config = infra.config
    trace_id, parent_id = remote_parent(dict(http_request.headers))

    try:
        request = CallRequest(
            text=body.text, model=config.ai_model, max_tokens=config.ai_max_tokens
        )
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e

    with tracker.span(
        "controller.process_request",
        trace_id=trace_id,
        parent_id=parent_id,
        **{"request.text.length": len(body.text), "endpoint": ENDPOINT},
    ) as span:
        logger.info(
            f"Received sentiment analysis request. TraceId: {span.trace_id}",
            extra={"trace_id": span.trace_id},
        )
        outcome = await infra.get_orchestrator().run(request, parent=span)
        processing_ms = int((time.perf_counter() - started) * 1000)

        if isinstance(outcome, Failure):
            tracker.set_status(span, SpanStatus.ERROR, outcome.message)
        else:
            tracker.set_attribute(span, "response.sentiment", outcome.result.sentiment)
            tracker.set_attribute(span, "response.processing_time_ms", processing_ms)

    if isinstance(outcome, Failure):
        raise HTTPException(
            status_code=_STATUS_BY_KIND.get(outcome.kind, 502),
            detail={
                "error": outcome.kind.value,
                "message": outcome.message,
                "traceId": outcome.trace_id,
            },
        )

    logger.info(
        f"Sentiment analysis completed in {processing_ms}ms. "
        f"Sentiment: {outcome.result.sentiment}. TraceId: {outcome.trace_id}",
        extra={"trace_id": outcome.trace_id},
    )
    return SentimentResponse(
        sentiment=outcome.result.sentiment,
        confidence=outcome.result.confidence,
        analysis=outcome.result.analysis,
        processing_time_ms=processing_ms,
        trace_id=outcome.trace_id,
    )


@router.get("/health")
async def health() -> dict:
    """Health check endpoint."""
    return {"status": "UP", "service": "AI Sentiment Analyzer"}
