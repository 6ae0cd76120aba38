"""Role -> prompt-builder resolution with a type-specific tier and a shared fallback tier.

Resolution order for ``(panel_type, role)``:

1. a binding registered for that panel type and role;
2. a fallback binding registered for the role alone.

Resolved bindings are cached per ``(panel_type, role)`` for the lifetime of the
resolver. The cache is filled with ``dict.setdefault`` so two runs racing on the
same cold key end up sharing one binding.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass

from moderated_panel.agents.base import FunctionPromptBuilder, PromptBuilder
from moderated_panel.errors import AgentNotFoundError
from moderated_panel.models import ROLES

logger = logging.getLogger(__name__)

TYPE_SPECIFIC = "type-specific"
FALLBACK = "fallback"


@dataclass(frozen=True)
class AgentBinding:
    panel_type: str
    role: str
    builder: PromptBuilder
    source: str                      # TYPE_SPECIFIC or FALLBACK

    @property
    def name(self) -> str:
        return getattr(self.builder, "name", f"{self.panel_type}/{self.role}")


class AgentResolver:
    """Registry of prompt builders keyed by panel type and role."""

    def __init__(self) -> None:
        self._typed: dict[tuple[str, str], PromptBuilder] = {}
        self._fallback: dict[str, PromptBuilder] = {}
        self._cache: dict[tuple[str, str], AgentBinding] = {}
        self._hits = 0
        self._misses = 0

    # ==================
    # Registration
    # ==================

    def register(
        self,
        role: str,
        builder: PromptBuilder | Callable,
        panel_type: str | None = None,
    ) -> None:
        """Register a builder for a role.

        Args:
            role: One of moderator, panel1, panel2, panel3, summarizer.
            builder: A PromptBuilder or a ``(message, context, history)`` callable.
            panel_type: Panel type the binding is specific to; None registers
                the shared fallback binding.

        Raises:
            ValueError: If role is unknown.
        """
        if role not in ROLES:
            raise ValueError(f"Unknown role '{role}'. Expected one of: {', '.join(ROLES)}")
        if not isinstance(builder, PromptBuilder):
            builder = FunctionPromptBuilder(builder)

        if panel_type is None:
            self._fallback[role] = builder
            logger.debug("Registered fallback agent for %s: %s", role, builder.name)
        else:
            self._typed[(panel_type.lower(), role)] = builder
            logger.debug("Registered %s agent for %s: %s", panel_type, role, builder.name)

    def registered_panel_types(self) -> list[str]:
        return sorted({panel_type for panel_type, _ in self._typed})

    # ==================
    # Resolution
    # ==================

    def resolve_binding(self, panel_type: str, role: str) -> AgentBinding:
        key = (panel_type.lower(), role)
        cached = self._cache.get(key)
        if cached is not None:
            self._hits += 1
            return cached
        self._misses += 1

        builder = self._typed.get(key)
        source = TYPE_SPECIFIC
        if builder is None:
            builder = self._fallback.get(role)
            source = FALLBACK
        if builder is None:
            raise AgentNotFoundError(panel_type, role)

        binding = self._cache.setdefault(key, AgentBinding(key[0], role, builder, source))
        logger.info("Resolved %s agent for %s panel: %s (%s)", role, key[0], binding.name, binding.source)
        return binding

    def resolve(self, panel_type: str, role: str) -> PromptBuilder:
        """Return the prompt builder for a role.

        Raises:
            AgentNotFoundError: If neither tier has a binding.
        """
        return self.resolve_binding(panel_type, role).builder

    # ==================
    # Diagnostics
    # ==================

    def binding_source(self, panel_type: str, role: str) -> str | None:
        """Which tier would serve the role, without resolving or caching it."""
        if (panel_type.lower(), role) in self._typed:
            return TYPE_SPECIFIC
        if role in self._fallback:
            return FALLBACK
        return None

    def describe(self, panel_type: str) -> dict:
        agents = {}
        for role in ROLES:
            agents[role] = {
                "type_specific": (panel_type.lower(), role) in self._typed,
                "fallback_available": role in self._fallback,
                "will_use": self.binding_source(panel_type, role),
            }
        return {"panel_type": panel_type.lower(), "agents": agents}

    def cache_stats(self) -> dict:
        lookups = self._hits + self._misses
        return {
            "cache_size": len(self._cache),
            "cache_hits": self._hits,
            "cache_misses": self._misses,
            "hit_rate": f"{self._hits / lookups * 100:.2f}%" if lookups else "0%",
        }

    def clear_cache(self) -> None:
        self._cache.clear()
        self._hits = 0
        self._misses = 0
