"""Tests for moderated_panel/parser.py."""

import json
import logging

import pytest

from moderated_panel.models import DEFAULT_SPEAKING_PROMPT
from moderated_panel.parser import (
    DEFAULT_FALLBACK_SPEAKER,
    FALLBACK_COMMENT,
    ModeratorResponseParser,
    parse_moderator_response,
)


def test_numbered_schema_maps_alias_to_key():
    raw = json.dumps({
        "moderator_response": "Mike, walk us through the numbers.",
        "next_speaker": "panel_2",
        "moderator_responds": True,
    })
    decision = parse_moderator_response(raw, "decision_1")
    assert decision.next_speaker == "analyst"
    assert decision.comment == "Mike, walk us through the numbers."
    assert decision.speaking_prompt == DEFAULT_SPEAKING_PROMPT
    assert decision.responds is True
    assert decision.parsing_error is None
    assert decision.context == "decision_1"


def test_named_schema_keeps_key_verbatim():
    raw = json.dumps({
        "moderator_comment": "Lisa, imagine it differently.",
        "next_speaker": "explorer",
        "speaking_prompt": "What would a four-day week change?",
        "reasoning": "Need a creative angle",
    })
    decision = parse_moderator_response(raw, "setup")
    assert decision.next_speaker == "explorer"
    assert decision.speaking_prompt == "What would a four-day week change?"
    assert decision.reasoning == "Need a creative angle"
    assert decision.parsing_error is None


def test_named_schema_blank_prompt_gets_default():
    raw = json.dumps({"moderator_comment": "", "next_speaker": "challenger", "speaking_prompt": "   "})
    assert parse_moderator_response(raw, "setup").speaking_prompt == DEFAULT_SPEAKING_PROMPT


def test_code_fenced_json_is_accepted():
    raw = '```json\n{"moderator_response": "Go", "next_speaker": "panel_1", "moderator_responds": false}\n```'
    decision = parse_moderator_response(raw, "setup")
    assert decision.next_speaker == "challenger"
    assert decision.parsing_error is None


def test_fallback_finds_alias_in_prose():
    decision = parse_moderator_response("Let's go to panel_3 for a wild idea.", "decision_2")
    assert decision.next_speaker == "explorer"
    assert decision.parsing_error
    assert decision.comment == FALLBACK_COMMENT
    assert decision.context == "decision_2_fallback"
    assert decision.reasoning.startswith("Fallback selection due to parsing error:")


def test_fallback_alias_match_is_case_insensitive():
    assert parse_moderator_response("PANEL_1 next", "setup").next_speaker == "challenger"


def test_fallback_finds_key_name():
    assert parse_moderator_response("The Challenger should respond.", "setup").next_speaker == "challenger"


def test_fallback_defaults_to_analyst():
    decision = parse_moderator_response("No idea who should talk.", "setup")
    assert decision.next_speaker == DEFAULT_FALLBACK_SPEAKER == "analyst"
    assert decision.parsing_error
    assert decision.speaking_prompt == DEFAULT_SPEAKING_PROMPT


def test_unknown_alias_is_a_parsing_failure():
    raw = json.dumps({"moderator_response": "hi", "next_speaker": "panel_4"})
    decision = parse_moderator_response(raw, "setup")
    assert "panel_4" in decision.parsing_error
    assert decision.next_speaker == "analyst"


@pytest.mark.parametrize("raw", [
    json.dumps({"moderator_comment": "hi", "next_speaker": "Sarah"}),
    json.dumps({"moderator_comment": "hi"}),
    json.dumps(["panel_1"]),
    "",
    None,
])
def test_malformed_replies_never_raise(raw):
    decision = parse_moderator_response(raw, "setup")
    assert decision.next_speaker in ("challenger", "analyst", "explorer")
    assert decision.parsing_error


def test_oversized_json_falls_back():
    deeply_nested = "[" * 100_000 + "]" * 100_000
    huge_number = '{"next_speaker": "panel_1", "x": ' + "9" * 5000 + "}"

    assert parse_moderator_response(deeply_nested, "setup").parsing_error
    decision = parse_moderator_response(huge_number, "decision_2")
    assert decision.parsing_error
    assert decision.next_speaker == "challenger"


def test_json_array_reports_type():
    decision = parse_moderator_response("[1, 2]", "setup")
    assert "Expected a JSON object" in decision.parsing_error


def test_responds_requires_literal_true():
    raw = json.dumps({"moderator_response": "", "next_speaker": "panel_1", "moderator_responds": "yes"})
    assert parse_moderator_response(raw, "setup").responds is False


def test_fallback_is_logged(caplog):
    with caplog.at_level(logging.WARNING, logger="moderated_panel.parser"):
        parse_moderator_response("nonsense", "decision_5")
    assert "decision_5" in caplog.text


def test_parser_object_delegates():
    raw = json.dumps({"moderator_response": "", "next_speaker": "panel_3"})
    assert ModeratorResponseParser().parse(raw, "setup").next_speaker == "explorer"
