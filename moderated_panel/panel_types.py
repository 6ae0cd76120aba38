"""Panel type descriptors and run-config validation.

A panel type swaps the personas that fill the moderator, panel1-3 and
summarizer roles without changing the conversation protocol. The three
built-in types mirror the panels the tool ships agents for; settings.yaml can
rename participants and change per-type defaults.
"""

import dataclasses
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from config.config_loader import PanelOverride
from moderated_panel.errors import ConfigValidationError
from moderated_panel.models import (
    DEFAULT_SUMMARY_FOCUS,
    MODERATOR,
    PANEL_ROLES,
    ROLE_FOR_PANELIST,
    RunConfig,
)

logger = logging.getLogger(__name__)

MIN_INTERACTIONS = 2
MAX_INTERACTIONS = 15


@dataclass(frozen=True)
class Participant:
    name: str
    description: str


@dataclass(frozen=True)
class PanelTypeDescriptor:
    name: str
    title: str
    participants: dict[str, Participant]       # moderator, panel1, panel2, panel3
    default_interactions: int = 4
    summary_focus: str = DEFAULT_SUMMARY_FOCUS
    focus: str = ""

    @property
    def input_dir(self) -> str:
        return f"input/{self.name}"

    @property
    def output_dir(self) -> str:
        return f"output/panel/{self.name}"

    def participant_for(self, panelist_key: str) -> Participant:
        return self.participants[ROLE_FOR_PANELIST[panelist_key]]

    def display_name(self, role_or_key: str) -> str:
        """Human-facing name for a role ("panel1") or panelist key ("challenger")."""
        role = ROLE_FOR_PANELIST.get(role_or_key, role_or_key)
        participant = self.participants.get(role)
        return participant.name if participant else role_or_key.title()

    def validate(self) -> list[str]:
        errors: list[str] = []
        for role in (MODERATOR, *PANEL_ROLES):
            if role not in self.participants:
                errors.append(f"{self.name} panel missing required role: {role}")
        if not MIN_INTERACTIONS <= self.default_interactions <= MAX_INTERACTIONS:
            errors.append(
                f"{self.name} panel default_interactions must be between "
                f"{MIN_INTERACTIONS} and {MAX_INTERACTIONS}"
            )
        return errors

    def to_dict(self) -> dict[str, Any]:
        return {
            "panelType": self.name,
            "title": self.title,
            "focus": self.focus,
            "participants": {
                role: {"name": p.name, "role": p.description}
                for role, p in self.participants.items()
            },
            "defaultInteractions": self.default_interactions,
            "summaryFocus": self.summary_focus,
            "inputDirectory": self.input_dir,
            "outputDirectory": self.output_dir,
        }


BUILTIN_PANEL_TYPES: dict[str, PanelTypeDescriptor] = {
    "discussion": PanelTypeDescriptor(
        name="discussion",
        title="tl;dr podcast discussion",
        focus="moderated podcast-style discussion",
        participants={
            "moderator": Participant("Host", "Podcast host and conversation facilitator"),
            "panel1": Participant("Sarah", "The Challenger - questions assumptions, high disagreeableness"),
            "panel2": Participant("Mike", "The Analyst - balanced, evidence-based approach"),
            "panel3": Participant("Lisa", "The Explorer - creative, unconventional thinking"),
        },
        default_interactions=4,
        summary_focus=(
            "Summarize key insights and conclusions from this panel discussion "
            "in a podcast-style format"
        ),
    ),
    "security": PanelTypeDescriptor(
        name="security",
        title="Security review panel",
        focus="security analysis",
        participants={
            "moderator": Participant("Security Lead", "Security assessment coordinator"),
            "panel1": Participant("Red Team", "Offensive security - vulnerabilities and attack vectors"),
            "panel2": Participant("Blue Team", "Defensive security - detection and mitigation"),
            "panel3": Participant("Risk Assessment", "Business impact and strategic risk evaluation"),
        },
        default_interactions=6,
        summary_focus=(
            "Provide a comprehensive security assessment summary with risk "
            "analysis and recommendations"
        ),
    ),
    "techreview": PanelTypeDescriptor(
        name="techreview",
        title="Technical architecture review panel",
        focus="technical architecture review",
        participants={
            "moderator": Participant("Tech Lead", "Technical review coordinator (70% conservative, 30% innovation)"),
            "panel1": Participant("System Architect", "Design patterns, best practices, maintainability"),
            "panel2": Participant("Performance Engineer", "Code quality, performance, reliability"),
            "panel3": Participant("Innovation Engineer", "Creative solutions and alternatives (about 30% of turns)"),
        },
        default_interactions=5,
        summary_focus=(
            "Provide actionable technical recommendations with 70% focus on proven "
            "best practices and 30% innovative alternatives"
        ),
    ),
}


def available_panel_types(
    panel_types: Mapping[str, PanelTypeDescriptor] = BUILTIN_PANEL_TYPES,
) -> list[str]:
    return sorted(panel_types)


def get_panel_type(
    name: str,
    panel_types: Mapping[str, PanelTypeDescriptor] = BUILTIN_PANEL_TYPES,
) -> PanelTypeDescriptor:
    """Look up a descriptor by name (case-insensitive)."""
    key = (name or "").strip().lower()
    if key not in panel_types:
        raise ConfigValidationError([
            f"Unsupported panel type: {name!r}. "
            f"Supported types: {', '.join(available_panel_types(panel_types))}"
        ])
    return panel_types[key]


def apply_overrides(
    overrides: Mapping[str, PanelOverride],
    panel_types: Mapping[str, PanelTypeDescriptor] = BUILTIN_PANEL_TYPES,
) -> dict[str, PanelTypeDescriptor]:
    """Return descriptors with settings.yaml overrides applied.

    Overrides for unknown panel types are ignored with a warning; an override
    that would make a descriptor invalid raises ConfigValidationError.
    """
    result = dict(panel_types)
    for name, override in overrides.items():
        base = result.get(name)
        if base is None:
            logger.warning("Ignoring settings for unknown panel type '%s'", name)
            continue
        participants = dict(base.participants)
        for role, new_name in override.participant_names.items():
            if role in participants:
                participants[role] = dataclasses.replace(participants[role], name=new_name)
            else:
                logger.warning("Ignoring unknown participant role '%s' for panel type '%s'", role, name)
        updated = dataclasses.replace(
            base,
            participants=participants,
            default_interactions=override.default_interactions or base.default_interactions,
            summary_focus=override.summary_focus or base.summary_focus,
        )
        errors = updated.validate()
        if errors:
            raise ConfigValidationError(errors)
        result[name] = updated
    return result


def _pick(payload: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in payload and payload[key] is not None:
            return payload[key]
    return None


def build_run_config(
    payload: Mapping[str, Any],
    panel_types: Mapping[str, PanelTypeDescriptor] = BUILTIN_PANEL_TYPES,
    default_panel_type: str = "discussion",
    default_expected_duration: float = 240.0,
) -> RunConfig:
    """Validate a raw run payload and build a RunConfig.

    Accepts camelCase (job payloads) or snake_case keys. Every violation is
    collected before raising ConfigValidationError.
    """
    errors: list[str] = []

    source_text = _pick(payload, "sourceText", "source_text")
    if not isinstance(source_text, str) or not source_text.strip():
        errors.append("sourceText is required and must be a non-empty string")

    subject = _pick(payload, "discussionSubject", "discussion_subject")
    if not isinstance(subject, str) or not subject.strip():
        errors.append("discussionSubject is required and must be a non-empty string")

    panel_type_name = _pick(payload, "panelType", "panel_type") or default_panel_type
    descriptor: PanelTypeDescriptor | None = None
    if not isinstance(panel_type_name, str):
        errors.append("panelType must be a string")
    else:
        try:
            descriptor = get_panel_type(panel_type_name, panel_types)
        except ConfigValidationError as exc:
            errors.extend(exc.errors)

    interactions = _pick(payload, "panelInteractions", "panel_interactions")
    if interactions is None:
        interactions = descriptor.default_interactions if descriptor else 4
    if isinstance(interactions, bool) or not isinstance(interactions, int):
        errors.append("panelInteractions must be an integer")
    elif not MIN_INTERACTIONS <= interactions <= MAX_INTERACTIONS:
        errors.append(
            f"panelInteractions must be between {MIN_INTERACTIONS} and {MAX_INTERACTIONS}"
        )

    summary_focus = _pick(payload, "summaryFocus", "summary_focus")
    if summary_focus is None:
        summary_focus = descriptor.summary_focus if descriptor else DEFAULT_SUMMARY_FOCUS
    elif not isinstance(summary_focus, str) or not summary_focus.strip():
        errors.append("summaryFocus must be a non-empty string")

    expected = _pick(payload, "expectedDuration", "expected_duration_sec")
    if expected is None:
        expected = default_expected_duration
    elif isinstance(expected, bool) or not isinstance(expected, (int, float)) or expected <= 0:
        errors.append("expectedDuration must be a positive number of seconds")

    if errors:
        raise ConfigValidationError(errors)

    return RunConfig(
        source_text=source_text.strip(),
        discussion_subject=subject.strip(),
        panel_interactions=interactions,
        summary_focus=summary_focus,
        panel_type=descriptor.name,
        expected_duration_sec=float(expected),
        source=str(payload.get("source", "job")),
    )

