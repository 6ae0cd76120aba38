"""Wire the shipped agents into an AgentResolver."""

from moderated_panel.agents import discussion, fallback, security, techreview
from moderated_panel.resolver import AgentResolver

TYPE_SPECIFIC_AGENTS = {
    "discussion": discussion.AGENTS,
    "security": security.AGENTS,
    "techreview": techreview.AGENTS,
}


def register_default_agents(resolver: AgentResolver) -> AgentResolver:
    for role, agent in fallback.AGENTS.items():
        resolver.register(role, agent)
    for panel_type, agents in TYPE_SPECIFIC_AGENTS.items():
        for role, agent in agents.items():
            resolver.register(role, agent, panel_type=panel_type)
    return resolver


def build_default_resolver() -> AgentResolver:
    return register_default_agents(AgentResolver())
