"""
Infrastructure configuration and bootstrap tests.

Verifies:
✔ InfraConfig.from_env defaults and overrides
✔ Backend/tracer selection from configuration
✔ Bootstrap wires one shared tracker and metrics recorder
✔ Singleton get_instance / reset
"""

import pytest

from analyzer.orchestrator import DEFAULT_TIMEOUT_S
from analyzer.tracing import LoggingTracer, NoOpTracer, StoreTracer
from inference import AnthropicModelBackend, StubModelBackend
from inference.anthropic import DEFAULT_API_URL
from infra import InfraBootstrap, InfraConfig, bootstrap_infrastructure
from infra.config import DEFAULT_MODEL

ENV_VARS = (
    "LLM_BACKEND",
    "AI_API_URL",
    "AI_API_KEY",
    "AI_MODEL",
    "AI_MAX_TOKENS",
    "AI_TIMEOUT_S",
    "TRACER_BACKEND",
)


@pytest.fixture
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


@pytest.fixture
def fresh_singleton():
    InfraBootstrap.reset()
    yield
    InfraBootstrap.reset()


def stub_config(**overrides):
    values = dict(
        llm_backend="stub",
        ai_api_url=DEFAULT_API_URL,
        ai_api_key="",
        ai_model="claude-test-model",
        ai_max_tokens=256,
        ai_timeout_s=5.0,
        tracer_backend="memory",
    )
    values.update(overrides)
    return InfraConfig(**values)


class TestInfraConfigFromEnv:
    def test_defaults(self, clean_env):
        config = InfraConfig.from_env()

        assert config.llm_backend == "anthropic"
        assert config.ai_api_url == DEFAULT_API_URL
        assert config.ai_model == DEFAULT_MODEL
        assert config.ai_max_tokens == 1024
        assert config.ai_timeout_s == DEFAULT_TIMEOUT_S
        assert config.tracer_backend == "memory"

    def test_overrides(self, clean_env):
        clean_env.setenv("LLM_BACKEND", "STUB")
        clean_env.setenv("AI_MODEL", "claude-other")
        clean_env.setenv("AI_MAX_TOKENS", "64")
        clean_env.setenv("AI_TIMEOUT_S", "2.5")
        clean_env.setenv("TRACER_BACKEND", "logging")

        config = InfraConfig.from_env()

        assert config.llm_backend == "stub"
        assert config.ai_model == "claude-other"
        assert config.ai_max_tokens == 64
        assert config.ai_timeout_s == 2.5
        assert config.tracer_backend == "logging"


class TestComponentFactories:
    def test_stub_backend(self):
        assert isinstance(stub_config().create_model_backend(), StubModelBackend)

    def test_anthropic_backend(self):
        backend = stub_config(llm_backend="anthropic", ai_api_key="k").create_model_backend()
        assert isinstance(backend, AnthropicModelBackend)
        assert backend.endpoint == DEFAULT_API_URL

    @pytest.mark.parametrize(
        "name,expected",
        [("memory", StoreTracer), ("logging", LoggingTracer), ("noop", NoOpTracer)],
    )
    def test_tracer_selection(self, name, expected):
        assert isinstance(stub_config(tracer_backend=name).create_tracer(), expected)


class TestInfraBootstrap:
    def test_wiring(self, fresh_singleton):
        infra = InfraBootstrap(stub_config())

        orchestrator = infra.get_orchestrator()
        assert orchestrator.tracker is infra.get_tracker()
        assert orchestrator.metrics is infra.get_metrics()
        assert orchestrator.timeout_s == 5.0
        assert infra.get_tracker().tracer.store is infra.get_store()
        assert "llm=stub" in repr(infra)

    def test_singleton(self, fresh_singleton):
        first = bootstrap_infrastructure(stub_config())
        second = bootstrap_infrastructure(stub_config(ai_model="ignored"))

        assert first is second
        assert second.config.ai_model == "claude-test-model"

    def test_reset(self, fresh_singleton):
        first = bootstrap_infrastructure(stub_config())
        InfraBootstrap.reset()
        assert bootstrap_infrastructure(stub_config()) is not first
