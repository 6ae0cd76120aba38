"""Decode a moderator's raw reply into a ModeratorDecision.

Moderator output comes from an external text generator, so this never raises.
Structured JSON is tried against the known reply shapes in order; when none
fits, a pattern-matching extractor guesses the next speaker and the decision
is flagged with ``parsing_error``.

Known shapes:

* numbered: ``{"moderator_response", "next_speaker": "panel_1|panel_2|panel_3",
  "moderator_responds"}``
* named: ``{"moderator_comment", "next_speaker": "challenger|analyst|explorer",
  "speaking_prompt", "reasoning"}``
"""

import json
import logging
import re
from collections.abc import Callable
from typing import Any

from moderated_panel.models import (
    DEFAULT_SPEAKING_PROMPT,
    PANELIST_KEYS,
    ModeratorDecision,
)

logger = logging.getLogger(__name__)

# Shared by every panel type: aliases are slots, not personas.
NUMBERED_ALIASES: dict[str, str] = {
    "panel_1": "challenger",
    "panel_2": "analyst",
    "panel_3": "explorer",
}
DEFAULT_FALLBACK_SPEAKER = "analyst"
FALLBACK_COMMENT = "Continuing discussion... (fallback mode)"

_ALIAS_PATTERN = re.compile(r"panel_([123])", re.IGNORECASE)
_KEY_PATTERN = re.compile(r"challenger|analyst|explorer", re.IGNORECASE)
_FENCE_PATTERN = re.compile(r"^```[\w-]*\s*\n?(.*?)\n?```$", re.DOTALL)


class DecodeError(ValueError):
    """The reply didn't match any known structured shape."""


def _strip_code_fence(text: str) -> str:
    match = _FENCE_PATTERN.match(text.strip())
    return match.group(1).strip() if match else text.strip()


def _decode_numbered(parsed: dict[str, Any]) -> dict[str, Any] | None:
    speaker = parsed.get("next_speaker")
    if not isinstance(speaker, str) or not speaker.startswith("panel_"):
        return None
    if speaker not in NUMBERED_ALIASES:
        raise DecodeError(f"Invalid speaker: {speaker}. Expected panel_1, panel_2, or panel_3")
    return {
        "next_speaker": NUMBERED_ALIASES[speaker],
        "comment": parsed.get("moderator_response") or "",
        "speaking_prompt": DEFAULT_SPEAKING_PROMPT,
    }


def _decode_named(parsed: dict[str, Any]) -> dict[str, Any] | None:
    speaker = parsed.get("next_speaker")
    if speaker not in PANELIST_KEYS:
        return None
    return {
        "next_speaker": speaker,
        "comment": parsed.get("moderator_comment") or "",
        "speaking_prompt": parsed.get("speaking_prompt") or DEFAULT_SPEAKING_PROMPT,
    }


# Priority order matters: numbered first, as current moderators emit it.
_VARIANTS: tuple[Callable[[dict[str, Any]], dict[str, Any] | None], ...] = (
    _decode_numbered,
    _decode_named,
)


def _decode(raw_text: str) -> tuple[dict[str, Any], dict[str, Any]]:
    """Return (variant fields, full parsed object) or raise DecodeError."""
    try:
        parsed = json.loads(_strip_code_fence(raw_text))
    except (ValueError, RecursionError, TypeError) as exc:
        raise DecodeError(f"Invalid JSON: {exc}") from exc
    if not isinstance(parsed, dict):
        raise DecodeError(f"Expected a JSON object, got {type(parsed).__name__}")

    for variant in _VARIANTS:
        fields = variant(parsed)
        if fields is not None:
            return fields, parsed
    raise DecodeError("Missing or invalid next_speaker field")


def _fallback_speaker(raw_text: str) -> str:
    alias = _ALIAS_PATTERN.search(raw_text)
    if alias:
        return NUMBERED_ALIASES[f"panel_{alias.group(1)}"]
    key = _KEY_PATTERN.search(raw_text)
    if key:
        return key.group(0).lower()
    return DEFAULT_FALLBACK_SPEAKER


def parse_moderator_response(raw_text: str | None, context: str) -> ModeratorDecision:
    """Parse a moderator reply. Never raises.

    Args:
        raw_text: The moderator's raw reply.
        context: Label for the decision point, e.g. "setup" or "decision_3".

    Returns:
        A ModeratorDecision whose next_speaker is always a panelist key and
        whose speaking_prompt is never empty. Degraded decisions carry
        ``parsing_error`` and a ``<context>_fallback`` context label.
    """
    text = raw_text if isinstance(raw_text, str) else ""
    try:
        fields, parsed = _decode(text)
    except DecodeError as exc:
        logger.warning("Failed to parse moderator JSON in %s: %s", context, exc)
        logger.debug("Raw moderator content: %r", text)
        return ModeratorDecision(
            comment=FALLBACK_COMMENT,
            next_speaker=_fallback_speaker(text),
            speaking_prompt=DEFAULT_SPEAKING_PROMPT,
            reasoning=f"Fallback selection due to parsing error: {exc}",
            responds=False,
            context=f"{context}_fallback",
            parsing_error=str(exc),
        )

    reasoning = parsed.get("reasoning")
    return ModeratorDecision(
        comment=str(fields["comment"]),
        next_speaker=fields["next_speaker"],
        speaking_prompt=str(fields["speaking_prompt"]).strip() or DEFAULT_SPEAKING_PROMPT,
        reasoning=reasoning if isinstance(reasoning, str) else "",
        responds=parsed.get("moderator_responds") is True,
        context=context,
    )


class ModeratorResponseParser:
    """Object form of parse_moderator_response, for injection into the orchestrator."""

    def parse(self, raw_text: str | None, context: str) -> ModeratorDecision:
        return parse_moderator_response(raw_text, context)
