"""Abstract base for text-generation providers."""

from abc import ABC, abstractmethod

from moderated_panel.models import AgentRequest, ModelResponse


class ProviderError(Exception):
    """Raised when a provider call fails."""

    def __init__(self, provider_name: str, message: str) -> None:
        self.provider_name = provider_name
        super().__init__(f"[{provider_name}] {message}")


class AIProvider(ABC):
    """Abstract base for all text-generation providers."""

    @abstractmethod
    def name(self) -> str:
        """Return the short provider name (e.g. 'openrouter', 'claude')."""
        ...

    @abstractmethod
    def model_string(self) -> str:
        """Return the model identifier used when the request carries no hint."""
        ...

    @abstractmethod
    async def generate(self, request: AgentRequest, step_id: str) -> ModelResponse:
        """Run one request built by a prompt builder.

        Args:
            request: System prompt, user prompt, replayed history and sampling
                settings for the call.
            step_id: Identifier of the orchestration step, for logs.

        Returns:
            ModelResponse dataclass with content and metadata.

        Raises:
            ProviderError: On API failure, timeout, or empty response.
        """
        ...


def chat_messages(request: AgentRequest) -> list[dict[str, str]]:
    """History followed by the user prompt, in chat-completions shape."""
    messages = [
        {"role": m["role"], "content": m["content"]}
        for m in request.history
        if m.get("role") in ("user", "assistant") and m.get("content")
    ]
    messages.append({"role": "user", "content": request.user_prompt})
    return messages
