"""Tests for moderated_panel/panel_types.py: descriptors and run-config validation."""

import pytest

from config.config_loader import PanelOverride
from moderated_panel.errors import ConfigValidationError
from moderated_panel.models import DEFAULT_SUMMARY_FOCUS
from moderated_panel.panel_types import (
    BUILTIN_PANEL_TYPES,
    apply_overrides,
    available_panel_types,
    build_run_config,
    get_panel_type,
)


def _payload(**extra) -> dict:
    return {"sourceText": "Some article text", "discussionSubject": "The subject", **extra}


def test_builtin_types_are_valid():
    assert available_panel_types() == ["discussion", "security", "techreview"]
    for descriptor in BUILTIN_PANEL_TYPES.values():
        assert descriptor.validate() == []


def test_get_panel_type_is_case_insensitive():
    assert get_panel_type(" TechReview ").name == "techreview"


def test_get_panel_type_unknown_lists_supported():
    with pytest.raises(ConfigValidationError) as exc_info:
        get_panel_type("podcast")
    assert "discussion, security, techreview" in exc_info.value.errors[0]


def test_display_names_by_role_and_key():
    security = get_panel_type("security")
    assert security.display_name("panel1") == "Red Team"
    assert security.display_name("challenger") == "Red Team"
    assert security.participant_for("explorer").name == "Risk Assessment"
    assert security.display_name("summarizer") == "Summarizer"


def test_descriptor_to_dict():
    data = get_panel_type("discussion").to_dict()
    assert data["participants"]["panel3"]["name"] == "Lisa"
    assert data["inputDirectory"] == "input/discussion"
    assert data["outputDirectory"] == "output/panel/discussion"


def test_build_run_config_camel_case():
    config = build_run_config(_payload(panelInteractions=7, summaryFocus="Risks", panelType="Security"))
    assert config.panel_interactions == 7
    assert config.summary_focus == "Risks"
    assert config.panel_type == "security"
    assert config.source == "job"


def test_build_run_config_snake_case():
    config = build_run_config({
        "source_text": "  text  ",
        "discussion_subject": "subject",
        "panel_interactions": 3,
        "expected_duration_sec": 90,
    })
    assert config.source_text == "text"
    assert config.panel_interactions == 3
    assert config.expected_duration_sec == 90.0


def test_defaults_come_from_panel_type():
    config = build_run_config(_payload(panelType="techreview"))
    assert config.panel_interactions == 5
    assert "70%" in config.summary_focus


def test_default_panel_type_is_discussion():
    config = build_run_config(_payload())
    assert config.panel_type == "discussion"
    assert config.panel_interactions == 4
    assert config.summary_focus != DEFAULT_SUMMARY_FOCUS


@pytest.mark.parametrize("interactions", [2, 15])
def test_interaction_bounds_inclusive(interactions):
    assert build_run_config(_payload(panelInteractions=interactions)).panel_interactions == interactions


@pytest.mark.parametrize("interactions", [0, 1, 16, "4", 4.0, True])
def test_interactions_rejected(interactions):
    with pytest.raises(ConfigValidationError, match="panelInteractions"):
        build_run_config(_payload(panelInteractions=interactions))


def test_all_violations_collected():
    with pytest.raises(ConfigValidationError) as exc_info:
        build_run_config({
            "sourceText": "",
            "panelType": "nope",
            "summaryFocus": "   ",
            "expectedDuration": -1,
        })
    errors = exc_info.value.errors
    assert len(errors) == 5
    assert any("sourceText" in e for e in errors)
    assert any("discussionSubject" in e for e in errors)
    assert any("Unsupported panel type" in e for e in errors)
    assert any("summaryFocus" in e for e in errors)
    assert any("expectedDuration" in e for e in errors)


def test_apply_overrides_renames_participants():
    overrides = {"discussion": PanelOverride(default_interactions=6, participant_names={"panel1": "Sam"})}
    panel_types = apply_overrides(overrides)
    assert panel_types["discussion"].display_name("challenger") == "Sam"
    assert panel_types["discussion"].default_interactions == 6
    assert BUILTIN_PANEL_TYPES["discussion"].display_name("challenger") == "Sarah"


def test_apply_overrides_ignores_unknown_type():
    panel_types = apply_overrides({"podcast": PanelOverride(default_interactions=3)})
    assert "podcast" not in panel_types


def test_apply_overrides_rejects_invalid_default():
    with pytest.raises(ConfigValidationError):
        apply_overrides({"security": PanelOverride(default_interactions=40)})
