"""Shared pytest fixtures."""

import json
from collections.abc import Callable
from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from config.config_loader import AppConfig, DefaultsConfig, ModelConfig
from moderated_panel.agents.catalog import build_default_resolver
from moderated_panel.metrics import RunMetrics
from moderated_panel.models import (
    MODERATOR,
    SUMMARIZER,
    AgentRequest,
    CallResult,
    ModelResponse,
    RunConfig,
)
from moderated_panel.providers.base import AIProvider
from moderated_panel.resolver import AgentResolver


def moderator_json(speaker: str = "panel_2", comment: str = "Let's hear more on that.", responds: bool = True) -> str:
    return json.dumps({
        "moderator_response": comment,
        "next_speaker": speaker,
        "moderator_responds": responds,
    })


class ScriptedCaller:
    """Stand-in for the external text-generation call.

    Replies by role; ``moderator`` may be a string or a function of the step id.
    ``fail_on`` returns an error result and ``raise_on`` raises, both matched
    against the step id.
    """

    def __init__(
        self,
        moderator: str | Callable[[str], str] = moderator_json(),
        panelist: str = "Panel response",
        summary: str = "Final summary",
        fail_on: Callable[[str], bool] | None = None,
        raise_on: Callable[[str], bool] | None = None,
    ) -> None:
        self._moderator = moderator
        self._panelist = panelist
        self._summary = summary
        self._fail_on = fail_on
        self._raise_on = raise_on
        self.calls: list[tuple[str, str | None, AgentRequest]] = []

    @property
    def step_ids(self) -> list[str]:
        return [step_id for step_id, _, _ in self.calls]

    def requests_for(self, role: str) -> list[AgentRequest]:
        return [request for _, r, request in self.calls if r == role]

    async def __call__(self, request: AgentRequest, step_id: str, role: str | None = None) -> CallResult:
        self.calls.append((step_id, role, request))
        if self._raise_on and self._raise_on(step_id):
            raise ConnectionError("connection reset by peer")
        if self._fail_on and self._fail_on(step_id):
            return CallResult(step_id=step_id, error="boom")
        if role == MODERATOR:
            reply = self._moderator(step_id) if callable(self._moderator) else self._moderator
        elif role == SUMMARIZER:
            reply = self._summary
        else:
            reply = self._panelist
        return CallResult(step_id=step_id, message=reply, latency_sec=0.01, provider="scripted")


@pytest.fixture
def resolver() -> AgentResolver:
    return build_default_resolver()


@pytest.fixture
def metrics() -> RunMetrics:
    return RunMetrics()


@pytest.fixture
def caller() -> ScriptedCaller:
    return ScriptedCaller()


@pytest.fixture
def run_config() -> RunConfig:
    return RunConfig(
        source_text="Remote work adoption has plateaued at roughly 30% of paid days.",
        discussion_subject="Is remote work here to stay?",
        panel_interactions=4,
        panel_type="discussion",
    )


@pytest.fixture
def sample_model_config() -> ModelConfig:
    return ModelConfig(
        name="test_model",
        sdk="openai",
        model="test-model-1",
        api_key_env="TEST_API_KEY",
        timeout_sec=30,
        max_tokens=1024,
        base_url=None,
    )


@pytest.fixture
def sample_defaults_config(tmp_path: Path) -> DefaultsConfig:
    return DefaultsConfig(
        panel_type="discussion",
        output_dir=tmp_path / "output",
        input_dir=tmp_path / "input",
        archive_dir=tmp_path / "input" / "archive",
        provider="openrouter",
    )


@pytest.fixture
def sample_app_config(sample_defaults_config: DefaultsConfig) -> AppConfig:
    model_cfg = ModelConfig(
        name="openrouter",
        sdk="openai",
        model="openai/gpt-4.1",
        api_key_env="OPENROUTER_API_KEY",
        timeout_sec=60,
        max_tokens=4096,
        base_url="https://openrouter.ai/api/v1",
        use_agent_models=True,
    )
    return AppConfig(
        defaults=sample_defaults_config,
        models={"openrouter": model_cfg},
        available_providers={"openrouter"},
    )


@pytest.fixture
def sample_request() -> AgentRequest:
    return AgentRequest(
        agent="panel/panel2_analyst",
        system_prompt="You are The Analyst.",
        user_prompt="Weigh the evidence.",
        temperature=0.6,
        model="anthropic/claude-3-5-sonnet",
    )


class MockProvider(AIProvider):
    """Test double AIProvider."""

    def __init__(self, provider_name: str = "mock", response_content: str = "Mock response") -> None:
        self._name = provider_name
        self._response_content = response_content
        # Shadow the class method with an AsyncMock at the instance level.
        # ABC check passes because generate is defined in the class body below.
        self.generate = AsyncMock(  # type: ignore[assignment]
            return_value=ModelResponse(
                provider=provider_name,
                model="mock-model",
                step_id="step",
                content=response_content,
                latency_sec=0.1,
                token_count=10,
            )
        )

    def name(self) -> str:
        return self._name

    def model_string(self) -> str:
        return "mock-model"

    async def generate(self, request: AgentRequest, step_id: str) -> ModelResponse:  # type: ignore[override]
        """Default implementation; replaced by AsyncMock in __init__."""
        return ModelResponse(
            provider=self._name,
            model="mock-model",
            step_id=step_id,
            content=self._response_content,
            latency_sec=0.1,
            token_count=10,
        )


@pytest.fixture
def mock_provider() -> MockProvider:
    return MockProvider()
