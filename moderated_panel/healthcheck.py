"""Provider health checks: ping each API before starting a panel."""

import asyncio
import logging

from moderated_panel.models import AgentRequest
from moderated_panel.providers.base import AIProvider

logger = logging.getLogger(__name__)

_PING_REQUEST = AgentRequest(
    agent="healthcheck",
    system_prompt="You are a connectivity check.",
    user_prompt="Reply with the word OK only.",
    temperature=0.0,
)
_TIMEOUT_SEC = 15.0


async def _check_one(name: str, provider: AIProvider) -> tuple[str, bool, str]:
    """Ping a single provider. Returns (name, ok, error_message)."""
    try:
        await asyncio.wait_for(
            provider.generate(_PING_REQUEST, step_id="healthcheck"),
            timeout=_TIMEOUT_SEC,
        )
        return name, True, ""
    except Exception as exc:
        logger.debug("Health check failed for %s: %s", name, exc)
        return name, False, str(exc) or type(exc).__name__


async def run_health_checks(
    providers: dict[str, AIProvider],
) -> dict[str, tuple[bool, str]]:
    """Ping all providers in parallel.

    Returns:
        Dict mapping provider name -> (ok, error_message).
        error_message is "" when ok is True.
    """
    results = await asyncio.gather(*(_check_one(n, p) for n, p in providers.items()))
    return {name: (ok, err) for name, ok, err in results}
