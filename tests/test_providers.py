"""Unit tests for moderated_panel/providers/, with the SDK clients mocked."""

import asyncio
import dataclasses
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from moderated_panel.models import AgentRequest
from moderated_panel.providers.anthropic import AnthropicProvider
from moderated_panel.providers.base import ProviderError, chat_messages
from moderated_panel.providers.openai_provider import OpenAIProvider


def _openai_response(content: str | None) -> SimpleNamespace:
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=content))],
        usage=SimpleNamespace(total_tokens=17),
    )


@pytest.fixture
def openai_provider(sample_model_config, monkeypatch) -> OpenAIProvider:
    monkeypatch.setenv("TEST_API_KEY", "sk-test")
    provider = OpenAIProvider(sample_model_config)
    provider._client = MagicMock()
    provider._client.chat.completions.create = AsyncMock(return_value=_openai_response("Hello"))
    return provider


def test_missing_api_key(sample_model_config, monkeypatch):
    monkeypatch.delenv("TEST_API_KEY", raising=False)
    with pytest.raises(ProviderError, match="Missing API key"):
        OpenAIProvider(sample_model_config)


def test_chat_messages_replays_history(sample_request):
    request = dataclasses.replace(sample_request, history=[
        {"role": "user", "content": "Earlier question"},
        {"role": "assistant", "content": "Earlier answer"},
        {"role": "system", "content": "ignored"},
    ])
    assert chat_messages(request) == [
        {"role": "user", "content": "Earlier question"},
        {"role": "assistant", "content": "Earlier answer"},
        {"role": "user", "content": "Weigh the evidence."},
    ]


async def test_openai_sends_system_prompt_and_temperature(openai_provider, sample_request):
    response = await openai_provider.generate(sample_request, "analyst_interaction_1")

    kwargs = openai_provider._client.chat.completions.create.call_args.kwargs
    assert kwargs["messages"][0] == {"role": "system", "content": "You are The Analyst."}
    assert kwargs["temperature"] == 0.6
    assert kwargs["model"] == "test-model-1"
    assert "response_format" not in kwargs
    assert response.content == "Hello"
    assert response.step_id == "analyst_interaction_1"
    assert response.token_count == 17


async def test_openai_json_mode(openai_provider, sample_request):
    request = dataclasses.replace(sample_request, json_response=True)

    await openai_provider.generate(request, "moderator_setup")

    kwargs = openai_provider._client.chat.completions.create.call_args.kwargs
    assert kwargs["response_format"] == {"type": "json_object"}


async def test_router_honours_agent_model(openai_provider, sample_request):
    openai_provider._config = dataclasses.replace(openai_provider._config, use_agent_models=True)

    response = await openai_provider.generate(sample_request, "s")

    assert openai_provider._client.chat.completions.create.call_args.kwargs["model"] == "anthropic/claude-3-5-sonnet"
    assert response.model == "anthropic/claude-3-5-sonnet"


async def test_openai_empty_content(openai_provider, sample_request):
    openai_provider._client.chat.completions.create = AsyncMock(return_value=_openai_response(None))
    with pytest.raises(ProviderError, match="Empty response"):
        await openai_provider.generate(sample_request, "s")


async def test_openai_api_failure_wrapped(openai_provider, sample_request):
    openai_provider._client.chat.completions.create = AsyncMock(side_effect=RuntimeError("502"))
    with pytest.raises(ProviderError, match="API call failed: 502"):
        await openai_provider.generate(sample_request, "s")


async def test_openai_timeout(openai_provider, sample_request):
    openai_provider._config = dataclasses.replace(openai_provider._config, timeout_sec=0.01)

    async def slow(**kwargs):
        await asyncio.sleep(1)

    openai_provider._client.chat.completions.create = slow
    with pytest.raises(ProviderError, match="timed out"):
        await openai_provider.generate(sample_request, "s")


async def test_anthropic_passes_system_separately(sample_model_config, sample_request, monkeypatch):
    monkeypatch.setenv("TEST_API_KEY", "sk-ant-test")
    provider = AnthropicProvider(dataclasses.replace(sample_model_config, sdk="anthropic"))
    provider._client = MagicMock()
    provider._client.messages.create = AsyncMock(return_value=SimpleNamespace(
        content=[SimpleNamespace(type="text", text="Part one"), SimpleNamespace(type="text", text="Part two")],
        usage=SimpleNamespace(input_tokens=5, output_tokens=7),
    ))

    response = await provider.generate(sample_request, "panel_summary")

    kwargs = provider._client.messages.create.call_args.kwargs
    assert kwargs["system"] == "You are The Analyst."
    assert kwargs["messages"] == [{"role": "user", "content": "Weigh the evidence."}]
    assert response.content == "Part one\nPart two"
    assert response.token_count == 12
