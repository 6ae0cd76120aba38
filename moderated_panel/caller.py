"""The external text-generation call used by the orchestrator.

The orchestrator only sees ``await caller(request, step_id, role=...) ->
CallResult``. ProviderCaller is the shipped implementation: it routes each
role to a configured provider and turns provider failures into an error
result instead of an exception.
"""

import logging
from collections.abc import Mapping

from moderated_panel.models import AgentRequest, CallResult
from moderated_panel.providers.base import AIProvider, ProviderError

logger = logging.getLogger(__name__)


class ProviderCaller:
    """Route requests to providers by role, with a default provider."""

    def __init__(
        self,
        default: AIProvider,
        role_providers: Mapping[str, AIProvider] | None = None,
    ) -> None:
        self._default = default
        self._role_providers = dict(role_providers or {})

    def provider_for(self, role: str | None) -> AIProvider:
        if role is None:
            return self._default
        return self._role_providers.get(role, self._default)

    async def __call__(self, request: AgentRequest, step_id: str, role: str | None = None) -> CallResult:
        provider = self.provider_for(role)
        logger.debug("Calling %s for %s (%s)", provider.name(), step_id, request.agent)
        try:
            response = await provider.generate(request, step_id)
        except ProviderError as exc:
            logger.warning("%s failed: %s", step_id, exc)
            return CallResult(step_id=step_id, error=str(exc), provider=provider.name())
        return CallResult(
            step_id=step_id,
            message=response.content,
            latency_sec=response.latency_sec,
            provider=provider.name(),
        )
