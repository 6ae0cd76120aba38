"""Prompt builders: turn a role's input into an AgentRequest for the external call."""

import re
import uuid
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass

from moderated_panel.models import AgentRequest

MODERATOR_JSON_CONTRACT = """CRITICAL: You MUST always respond with valid JSON in this exact format:
{
  "moderator_response": "Your response as moderator (can be empty string if you don't want to speak)",
  "next_speaker": "panel_1|panel_2|panel_3",
  "moderator_responds": true|false
}

Remember: Your JSON response controls the entire conversation flow. Invalid JSON will break the system."""

MODERATOR_USER_TEMPLATE = """Current conversation state:

{message}

Please analyze this conversation state and provide your moderation decision as a JSON response with the required format:
- moderator_response: Your guidance/transition/question (or empty string)
- next_speaker: Choose panel_1, panel_2, or panel_3 based on who should speak next
- moderator_responds: true if you want to speak, false if you just want to select next speaker"""


def sanitize_message(message: str) -> str:
    if not isinstance(message, str):
        return ""
    return re.sub(r"[\r\n]+", "\n", message.strip())


class PromptBuilder(ABC):
    """Builds the request descriptor for one role of one panel type."""

    name: str

    @abstractmethod
    def build_request(
        self,
        message: str,
        context: str = "",
        history: list[dict[str, str]] | None = None,
    ) -> AgentRequest:
        """Build the request for this agent.

        Args:
            message: The full turn prompt (transcript, source material, instructions).
            context: Short discussion context, usually the subject.
            history: Prior chat messages to replay, oldest first.

        Raises:
            ValueError: If message is empty.
        """
        ...


class FunctionPromptBuilder(PromptBuilder):
    """Adapts a plain ``(message, context, history) -> AgentRequest`` callable."""

    def __init__(self, fn: Callable[..., AgentRequest], name: str | None = None) -> None:
        self._fn = fn
        self.name = name or getattr(fn, "__name__", "agent")

    def build_request(self, message, context="", history=None) -> AgentRequest:
        return self._fn(message, context, list(history or []))


@dataclass
class PersonaAgent(PromptBuilder):
    """Data-driven prompt builder used by every shipped persona."""

    name: str
    system_prompt: str
    user_template: str
    temperature: float = 0.7
    model: str | None = None
    json_response: bool = False
    context_label: str = "Discussion Context"

    def build_request(self, message, context="", history=None) -> AgentRequest:
        text = sanitize_message(message)
        if not text:
            raise ValueError(f"Agent '{self.name}' requires non-empty input")
        system = self.system_prompt.strip()
        if context:
            system = f"{system}\n\n{self.context_label}: {context}"
        return AgentRequest(
            agent=self.name,
            system_prompt=system,
            user_prompt=self.user_template.format(message=text),
            history=list(history or []),
            temperature=self.temperature,
            model=self.model,
            json_response=self.json_response,
            call_id=f"{self.name.replace('/', '-')}-{uuid.uuid4().hex[:12]}",
        )


def moderator_agent(
    name: str,
    persona: str,
    guidelines: str,
    context_label: str = "Discussion Topic",
    model: str | None = "openai/gpt-4.1",
) -> PersonaAgent:
    """Moderators share the JSON contract and user prompt; only the persona differs."""
    return PersonaAgent(
        name=name,
        system_prompt=f"{persona.strip()}\n\n{MODERATOR_JSON_CONTRACT}\n\nGuidelines:\n{guidelines.strip()}",
        user_template=MODERATOR_USER_TEMPLATE,
        temperature=0.7,
        model=model,
        json_response=True,
        context_label=context_label,
    )
