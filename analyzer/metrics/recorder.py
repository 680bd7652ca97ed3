"""
Call metrics.

Three monotonically increasing counters (attempted, succeeded, failed) and a
duration timer for the orchestrated call.

- Thread-safe: one lock guards the in-process counters
- Never raises: a failing Prometheus update is logged at debug level
- Process-wide: one recorder is injected into the orchestrator; values reset
  only with the process

Prometheus metrics (text exposition via render_prometheus()):
    1. ai_requests_attempted_total (Counter)
    2. ai_requests_succeeded_total (Counter)
    3. ai_requests_failed_total (Counter)
    4. ai_response_time_seconds (Histogram)
    5. ai_endpoint_requests_total (Counter, label: endpoint)
"""

import logging
import math
import threading
from typing import Dict, Optional

from prometheus_client import CollectorRegistry, Counter, Histogram, generate_latest
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

DURATION_BUCKETS = (0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 20.0, 30.0, 60.0)


class DurationSummary(BaseModel):
    count: int = 0
    total_seconds: float = 0.0
    min_seconds: Optional[float] = None
    max_seconds: Optional[float] = None

    @property
    def mean_seconds(self) -> Optional[float]:
        if self.count == 0:
            return None
        return self.total_seconds / self.count


class MetricSnapshot(BaseModel):
    """Point-in-time copy of the counters."""

    attempted: int = 0
    succeeded: int = 0
    failed: int = 0
    duration: DurationSummary = Field(default_factory=DurationSummary)
    endpoints: Dict[str, int] = Field(default_factory=dict)

    @property
    def completed(self) -> int:
        return self.succeeded + self.failed

    def to_dict(self) -> dict:
        data = self.model_dump()
        data["duration"]["mean_seconds"] = self.duration.mean_seconds
        return data


class MetricsRecorder:
    """
    Shared metrics handle for the orchestrated call.

    Args:
        registry: Prometheus registry to register on. A private registry is
            created when omitted so several recorders can coexist (tests).
        namespace: Metric name prefix
    """

    def __init__(self, registry: Optional[CollectorRegistry] = None, namespace: str = "ai"):
        self.registry = registry if registry is not None else CollectorRegistry()
        self._lock = threading.Lock()
        self._attempted = 0
        self._succeeded = 0
        self._failed = 0
        self._duration = DurationSummary()
        self._endpoints: Dict[str, int] = {}

        self._attempted_counter = Counter(
            f"{namespace}_requests_attempted",
            "Total number of AI API requests",
            registry=self.registry,
        )
        self._succeeded_counter = Counter(
            f"{namespace}_requests_succeeded",
            "Successful AI API requests",
            registry=self.registry,
        )
        self._failed_counter = Counter(
            f"{namespace}_requests_failed",
            "Failed AI API requests",
            registry=self.registry,
        )
        self._response_time = Histogram(
            f"{namespace}_response_time_seconds",
            "AI call duration from start to final resolution",
            buckets=DURATION_BUCKETS,
            registry=self.registry,
        )
        self._endpoint_counter = Counter(
            f"{namespace}_endpoint_requests",
            "Number of requests to the sentiment endpoint",
            ["endpoint"],
            registry=self.registry,
        )

    def increment_attempted(self) -> None:
        with self._lock:
            self._attempted += 1
        self._export(self._attempted_counter.inc)

    def increment_succeeded(self) -> None:
        with self._lock:
            self._succeeded += 1
        self._export(self._succeeded_counter.inc)

    def increment_failed(self) -> None:
        with self._lock:
            self._failed += 1
        self._export(self._failed_counter.inc)

    def increment_endpoint(self, endpoint: str) -> None:
        """Count one inbound request to ``endpoint``."""
        with self._lock:
            self._endpoints[endpoint] = self._endpoints.get(endpoint, 0) + 1
        self._export(lambda: self._endpoint_counter.labels(endpoint=endpoint).inc())

    def record_duration(self, elapsed_seconds: float) -> None:
        """
        Observe one completed invocation. Negative values are clamped to 0;
        non-numeric or non-finite values are dropped with a debug log.
        """
        try:
            elapsed = float(elapsed_seconds)
        except (TypeError, ValueError, OverflowError) as e:
            logger.debug(f"Dropped duration {elapsed_seconds!r}: {e}")
            return
        if not math.isfinite(elapsed):
            logger.debug(f"Dropped non-finite duration {elapsed_seconds!r}")
            return
        elapsed = max(0.0, elapsed)
        with self._lock:
            d = self._duration
            d.count += 1
            d.total_seconds += elapsed
            d.min_seconds = elapsed if d.min_seconds is None else min(d.min_seconds, elapsed)
            d.max_seconds = elapsed if d.max_seconds is None else max(d.max_seconds, elapsed)
        self._export(self._response_time.observe, elapsed)

    def snapshot(self) -> MetricSnapshot:
        with self._lock:
            return MetricSnapshot(
                attempted=self._attempted,
                succeeded=self._succeeded,
                failed=self._failed,
                duration=self._duration.model_copy(),
                endpoints=dict(self._endpoints),
            )

    def render_prometheus(self) -> bytes:
        """Prometheus text exposition of this recorder's registry."""
        return generate_latest(self.registry)

    @staticmethod
    def _export(update, *args) -> None:
        try:
            update(*args)
        except Exception as e:
            logger.debug(f"Failed to export metric: {e}")
