"""Tests for the prompt builders in moderated_panel/agents/."""

import pytest

from moderated_panel.agents import fallback, security, techreview
from moderated_panel.agents.base import MODERATOR_JSON_CONTRACT, PersonaAgent, sanitize_message
from moderated_panel.agents.catalog import TYPE_SPECIFIC_AGENTS
from moderated_panel.models import ROLES


def test_persona_agent_builds_request():
    agent = PersonaAgent(
        name="test/agent",
        system_prompt="You are a tester.",
        user_template="Input:\n{message}\nDone.",
        temperature=0.3,
        model="openai/gpt-4.1",
    )

    request = agent.build_request("  check this  ", context="Release 2.0", history=[{"role": "user", "content": "hi"}])

    assert request.agent == "test/agent"
    assert request.system_prompt == "You are a tester.\n\nDiscussion Context: Release 2.0"
    assert request.user_prompt == "Input:\ncheck this\nDone."
    assert request.history == [{"role": "user", "content": "hi"}]
    assert request.temperature == 0.3
    assert request.model == "openai/gpt-4.1"
    assert request.call_id.startswith("test-agent-")


def test_persona_agent_without_context():
    agent = PersonaAgent(name="a", system_prompt="Sys", user_template="{message}")
    assert agent.build_request("m").system_prompt == "Sys"


def test_persona_agent_positional_fields():
    agent = PersonaAgent("panel/a", "Sys", "{message}")

    assert (agent.name, agent.system_prompt, agent.user_template) == ("panel/a", "Sys", "{message}")
    assert agent.temperature == 0.7


@pytest.mark.parametrize("message", ["", "   ", None])
def test_empty_message_rejected(message):
    with pytest.raises(ValueError, match="non-empty"):
        fallback.ANALYST.build_request(message)


def test_call_ids_are_unique():
    first = fallback.ANALYST.build_request("x")
    second = fallback.ANALYST.build_request("x")
    assert first.call_id != second.call_id


def test_sanitize_collapses_line_breaks():
    assert sanitize_message(" a\r\n\r\nb \n") == "a\nb"


@pytest.mark.parametrize("agent", [fallback.MODERATOR, security.MODERATOR, techreview.MODERATOR])
def test_moderators_request_json(agent):
    request = agent.build_request("state", context="topic")
    assert request.json_response is True
    assert MODERATOR_JSON_CONTRACT in request.system_prompt
    assert "panel_1" in request.system_prompt


def test_panelists_do_not_request_json():
    assert not fallback.CHALLENGER.build_request("x").json_response


@pytest.mark.parametrize("agents", [fallback.AGENTS, *TYPE_SPECIFIC_AGENTS.values()])
def test_agent_maps_use_known_roles(agents):
    assert set(agents) <= set(ROLES)


def test_complete_tiers():
    assert set(fallback.AGENTS) == set(ROLES)
    assert set(TYPE_SPECIFIC_AGENTS["security"]) == set(ROLES)
    assert set(TYPE_SPECIFIC_AGENTS["techreview"]) == set(ROLES)
    assert set(TYPE_SPECIFIC_AGENTS["discussion"]) == {"panel3", "summarizer"}


def test_techreview_context_label():
    request = techreview.ARCHITECT.build_request("design", context="Queue service")
    assert request.system_prompt.endswith("Technical Review Context: Queue service")
