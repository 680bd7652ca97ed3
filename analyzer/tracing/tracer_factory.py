"""
Tracer factory and initialization logic.

Implements the TRACER_BACKEND setting:
- "memory" (default): spans recorded in the local ObservabilityStore
- "logging": one log record per closed span
- "noop": spans are tracked but exported nowhere
- "otel": closed spans exported through OpenTelemetry (OTLP)
"""

import logging
import os
from typing import Optional

from analyzer.observability.store import ObservabilityStore
from analyzer.tracing.logging_tracer import LoggingTracer
from analyzer.tracing.otel_tracer import OTelTracer
from analyzer.tracing.store_tracer import StoreTracer
from analyzer.tracing.tracer import NoOpTracer, Tracer

logger = logging.getLogger(__name__)

VALID_BACKENDS = {"noop", "logging", "memory", "otel"}


def get_tracer_backend() -> str:
    """
    Get the configured tracer backend.

    Environment Variable:
        TRACER_BACKEND: "memory" (default), "logging", "otel", or "noop"

    Returns:
        Backend name (lowercase); unknown values fall back to "memory"
    """
    backend = os.getenv("TRACER_BACKEND", "memory").lower().strip()
    if backend not in VALID_BACKENDS:
        logger.warning(f"Unknown TRACER_BACKEND '{backend}', using 'memory'")
        return "memory"
    return backend


def create_tracer(
    backend: Optional[str] = None, store: Optional[ObservabilityStore] = None
) -> Tracer:
    """
    Create a tracing sink.

    Args:
        backend: Explicit backend name; defaults to TRACER_BACKEND
        store: Store used by the "memory" backend

    Returns:
        Tracer instance (never None)
    """
    backend = (backend or get_tracer_backend()).lower()

    if backend == "logging":
        return LoggingTracer(enabled=True)
    if backend == "noop":
        return NoOpTracer()
    if backend == "otel":
        return OTelTracer()
    return StoreTracer(store=store)


def get_tracer_config() -> dict:
    """Current tracer configuration for health/debug endpoints."""
    backend = get_tracer_backend()
    return {
        "tracer_backend": backend,
        "enabled": backend != "noop",
    }
