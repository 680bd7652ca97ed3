"""
Infrastructure configuration system.

Environment-based backend selection with sensible defaults.
"""

import os
from typing import Literal, Optional
from dataclasses import dataclass

from prometheus_client import CollectorRegistry

from analyzer.metrics import MetricsRecorder
from analyzer.observability import ObservabilityStore
from analyzer.orchestrator import DEFAULT_TIMEOUT_S, CallOrchestrator
from analyzer.tracing import SpanTracker, Tracer, create_tracer
from inference import AnthropicModelBackend, ModelBackend, StubModelBackend
from inference.anthropic import DEFAULT_API_URL

LLMBackendType = Literal["stub", "anthropic"]
TracerBackendType = Literal["noop", "logging", "memory", "otel"]

DEFAULT_MODEL = "claude-3-5-sonnet-20241022"


@dataclass
class InfraConfig:
    """Infrastructure configuration from environment."""

    # LLM
    llm_backend: LLMBackendType
    ai_api_url: str
    ai_api_key: str
    ai_model: str
    ai_max_tokens: int
    ai_timeout_s: float

    # Tracing
    tracer_backend: TracerBackendType

    @classmethod
    def from_env(cls) -> "InfraConfig":
        """
        Load configuration from environment variables.

        Defaults:
        - LLM: anthropic Messages API, 1024 max tokens, 30 s deadline
        - Tracing: in-memory store ("otel" exports through OTLP)
        """
        return cls(
            # LLM Configuration
            llm_backend=os.getenv("LLM_BACKEND", "anthropic").lower(),  # type: ignore
            ai_api_url=os.getenv("AI_API_URL", DEFAULT_API_URL),
            ai_api_key=os.getenv("AI_API_KEY", ""),
            ai_model=os.getenv("AI_MODEL", DEFAULT_MODEL),
            ai_max_tokens=int(os.getenv("AI_MAX_TOKENS", "1024")),
            ai_timeout_s=float(os.getenv("AI_TIMEOUT_S", str(DEFAULT_TIMEOUT_S))),

            # Tracing Configuration
            tracer_backend=os.getenv("TRACER_BACKEND", "memory").lower(),  # type: ignore
        )

    def create_model_backend(self) -> ModelBackend:
        """Create model backend instance based on configuration."""
        if self.llm_backend == "stub":
            return StubModelBackend()
        # Default to anthropic
        return AnthropicModelBackend(api_key=self.ai_api_key, api_url=self.ai_api_url)

    def create_tracer(self, store: Optional[ObservabilityStore] = None) -> Tracer:
        """Create tracing sink based on configuration."""
        return create_tracer(self.tracer_backend, store=store)

    def create_orchestrator(
        self,
        tracker: SpanTracker,
        metrics: MetricsRecorder,
        backend: Optional[ModelBackend] = None,
    ) -> CallOrchestrator:
        """Wire the orchestrator around shared tracker and metrics."""
        return CallOrchestrator(
            backend=backend or self.create_model_backend(),
            tracker=tracker,
            metrics=metrics,
            timeout_s=self.ai_timeout_s,
        )

    @staticmethod
    def create_metrics(registry: Optional[CollectorRegistry] = None) -> MetricsRecorder:
        return MetricsRecorder(registry=registry)


def get_config() -> InfraConfig:
    """Get global infrastructure configuration."""
    return InfraConfig.from_env()
