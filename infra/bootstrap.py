"""
Infrastructure initialization and bootstrap.

Singleton pattern for the process-wide tracker, metrics and orchestrator.
"""

import logging
from typing import Optional

from analyzer.metrics import MetricsRecorder
from analyzer.observability import ObservabilityStore
from analyzer.orchestrator import CallOrchestrator
from analyzer.tracing import SpanTracker

from .config import InfraConfig, get_config

logger = logging.getLogger(__name__)


class InfraBootstrap:
    """
    Bootstrap infrastructure based on configuration.

    Singleton pattern - single instance per process.
    """

    _instance: Optional["InfraBootstrap"] = None

    def __init__(self, config: Optional[InfraConfig] = None):
        """Initialize bootstrap with configuration."""
        self.config = config or get_config()
        self.store = ObservabilityStore()
        self.tracer = self.config.create_tracer(store=self.store)
        self.tracker = SpanTracker(tracer=self.tracer)
        self.metrics = self.config.create_metrics()
        self.orchestrator = self.config.create_orchestrator(self.tracker, self.metrics)

    @classmethod
    def get_instance(cls, config: Optional[InfraConfig] = None) -> "InfraBootstrap":
        """
        Get singleton instance.

        Args:
            config: Optional custom configuration (only used first time)

        Returns:
            Singleton InfraBootstrap instance
        """
        if cls._instance is None:
            cls._instance = cls(config)
        return cls._instance

    @classmethod
    def reset(cls):
        """Reset singleton (for testing)."""
        cls._instance = None

    def get_orchestrator(self) -> CallOrchestrator:
        return self.orchestrator

    def get_tracker(self) -> SpanTracker:
        return self.tracker

    def get_metrics(self) -> MetricsRecorder:
        return self.metrics

    def get_store(self) -> ObservabilityStore:
        return self.store

    async def shutdown(self) -> None:
        """Close the model client and flush the tracing sink."""
        await self.orchestrator.backend.aclose()
        try:
            self.tracer.shutdown()
        except Exception as e:
            logger.warning(f"Tracer shutdown failed: {e}")

    def __repr__(self) -> str:
        """String representation showing configured backends."""
        return (
            f"InfraBootstrap(llm={self.config.llm_backend}, "
            f"model={self.config.ai_model}, "
            f"tracer={self.config.tracer_backend}, "
            f"timeout_s={self.config.ai_timeout_s:g})"
        )


def bootstrap_infrastructure(config: Optional[InfraConfig] = None) -> InfraBootstrap:
    """
    Bootstrap the process-wide components.

    Args:
        config: Optional custom configuration

    Returns:
        InfraBootstrap instance with all components initialized
    """
    return InfraBootstrap.get_instance(config)
