"""
Infrastructure module exports.

Configuration and bootstrap for the model backend, tracing and metrics.
"""

from .config import InfraConfig, get_config, LLMBackendType, TracerBackendType
from .bootstrap import InfraBootstrap, bootstrap_infrastructure

__all__ = [
    "InfraConfig",
    "get_config",
    "LLMBackendType",
    "TracerBackendType",
    "InfraBootstrap",
    "bootstrap_infrastructure",
]
