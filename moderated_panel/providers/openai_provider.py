"""OpenAI-compatible provider using the openai SDK with native async.

Also covers routers and vendors that speak the chat-completions protocol
(OpenRouter, xAI, DeepSeek) through ``base_url``.
"""

import asyncio
import logging
import os
import time

from openai import AsyncOpenAI

from config.config_loader import ModelConfig
from moderated_panel.models import AgentRequest, ModelResponse
from moderated_panel.providers.base import AIProvider, ProviderError, chat_messages

logger = logging.getLogger(__name__)


class OpenAIProvider(AIProvider):
    """Chat-completions provider via the openai SDK."""

    def __init__(self, config: ModelConfig) -> None:
        self._config = config
        api_key = os.environ.get(config.api_key_env, "").strip()
        if not api_key:
            raise ProviderError(config.name, f"Missing API key: {config.api_key_env}")
        self._client = AsyncOpenAI(api_key=api_key, base_url=config.base_url)

    def name(self) -> str:
        return self._config.name

    def model_string(self) -> str:
        return self._config.model

    def _model_for(self, request: AgentRequest) -> str:
        # Agent model hints are router ids ("openai/gpt-4.1"); only routers understand them.
        if self._config.use_agent_models and request.model:
            return request.model
        return self._config.model

    async def generate(self, request: AgentRequest, step_id: str) -> ModelResponse:
        model = self._model_for(request)
        messages = [{"role": "system", "content": request.system_prompt}, *chat_messages(request)]
        kwargs = {}
        if request.json_response:
            kwargs["response_format"] = {"type": "json_object"}

        start = time.monotonic()
        try:
            response = await asyncio.wait_for(
                self._client.chat.completions.create(
                    model=model,
                    messages=messages,
                    max_tokens=self._config.max_tokens,
                    temperature=request.temperature,
                    **kwargs,
                ),
                timeout=self._config.timeout_sec,
            )
        except TimeoutError as exc:
            raise ProviderError(self._config.name, f"Request timed out after {self._config.timeout_sec}s") from exc
        except Exception as exc:
            raise ProviderError(self._config.name, f"API call failed: {exc}") from exc

        latency = time.monotonic() - start

        choice = response.choices[0] if response.choices else None
        if not choice or not choice.message.content:
            raise ProviderError(self._config.name, "Empty response content")

        token_count: int | None = None
        if response.usage:
            token_count = response.usage.total_tokens

        logger.info("%s %s (%s): %.2fs, %s tokens", self._config.name, step_id, model, latency, token_count)

        return ModelResponse(
            provider=self._config.name,
            model=model,
            step_id=step_id,
            content=choice.message.content,
            latency_sec=latency,
            token_count=token_count,
        )
