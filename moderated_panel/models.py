"""Dataclasses for the moderated panel engine. No I/O."""

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

# Logical roles every panel type fills.
MODERATOR = "moderator"
SUMMARIZER = "summarizer"
PANEL_ROLES = ("panel1", "panel2", "panel3")
ROLES = (MODERATOR, *PANEL_ROLES, SUMMARIZER)

# Internal panelist keys, in panel1..panel3 order.
PANELIST_KEYS = ("challenger", "analyst", "explorer")
ROLE_FOR_PANELIST = dict(zip(PANELIST_KEYS, PANEL_ROLES))

DEFAULT_SPEAKING_PROMPT = "Please continue the discussion based on the context provided."
DEFAULT_SUMMARY_FOCUS = (
    "Key insights, diverse perspectives, points of agreement/disagreement, "
    "and actionable recommendations from the panel discussion"
)


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class AgentRequest:
    """Opaque request descriptor handed to the text-generation call."""

    agent: str                      # e.g. "security/moderator"
    system_prompt: str
    user_prompt: str
    history: list[dict[str, str]] = field(default_factory=list)
    temperature: float = 0.7
    model: str | None = None        # router-style model hint, e.g. "openai/gpt-4.1"
    json_response: bool = False
    call_id: str = ""


@dataclass
class ModelResponse:
    provider: str
    model: str
    step_id: str
    content: str
    latency_sec: float
    token_count: int | None


@dataclass(frozen=True)
class CallResult:
    """Outcome of one external call: exactly one of message / error is set."""

    step_id: str
    message: str | None = None
    error: str | None = None
    latency_sec: float = 0.0
    provider: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.message is not None


class TurnKind(str, Enum):
    SETUP = "setup"
    PANEL_RESPONSE = "panel_response"
    TRANSITION = "transition"


@dataclass(frozen=True)
class Turn:
    role: str                 # "moderator" or a panelist key
    kind: TurnKind
    content: str
    timestamp: str = field(default_factory=utc_now)

    def to_dict(self) -> dict[str, str]:
        return {
            "role": self.role,
            "type": self.kind.value,
            "content": self.content,
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True)
class ModeratorDecision:
    comment: str
    next_speaker: str
    speaking_prompt: str
    reasoning: str = ""
    responds: bool = False
    context: str = ""
    timestamp: str = field(default_factory=utc_now)
    parsing_error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "moderator_comment": self.comment,
            "next_speaker": self.next_speaker,
            "speaking_prompt": self.speaking_prompt,
            "reasoning": self.reasoning,
            "moderator_responds": self.responds,
            "context": self.context,
            "timestamp": self.timestamp,
        }
        if self.parsing_error is not None:
            data["parsing_error"] = self.parsing_error
        return data


@dataclass
class RunConfig:
    source_text: str
    discussion_subject: str
    panel_interactions: int = 4
    summary_focus: str = DEFAULT_SUMMARY_FOCUS
    panel_type: str = "discussion"
    expected_duration_sec: float = 240.0
    source: str = "cli"        # "cli", "job" or an inbox file path


@dataclass(frozen=True)
class StepRecord:
    step_id: str
    agent: str
    status: str               # "completed" or "failed"
    latency_sec: float
    error: str | None = None


@dataclass(frozen=True)
class PerformanceVerdict:
    valid: bool
    message: str
    actual_duration: float | None = None
    expected_duration: float | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "valid": self.valid,
            "message": self.message,
            "actualDuration": self.actual_duration,
            "expectedDuration": self.expected_duration,
        }


@dataclass(frozen=True)
class FileGenerationStatus:
    success: bool
    timestamp: str
    output_dir: str | None = None
    files: dict[str, str] = field(default_factory=dict)
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": "success" if self.success else "failed",
            "outputDir": self.output_dir,
            "files": dict(self.files),
            "error": self.error,
            "timestamp": self.timestamp,
        }


class RunState(str, Enum):
    SETUP = "setup"
    LOOP = "loop"
    SUMMARY = "summary"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class PanelRunResult:
    """Immutable record of a finished (or failed) panel run."""

    run_id: str
    status: str                                # "completed" or "failed"
    panel_type: str
    panel_interactions: int
    conversation: tuple[Turn, ...]
    moderator_decisions: tuple[ModeratorDecision, ...]
    panel_stats: dict[str, int]
    summary: str
    steps: tuple[StepRecord, ...]
    started_at: str
    ended_at: str
    duration_sec: float
    summary_focus: str = DEFAULT_SUMMARY_FOCUS
    performance: PerformanceVerdict | None = None
    expected_duration_sec: float | None = None
    error: str | None = None
    error_type: str | None = None
    failed_state: str | None = None
    file_generation: FileGenerationStatus | None = None

    @property
    def succeeded(self) -> bool:
        return self.status == "completed"

    @property
    def planned_api_calls(self) -> int:
        # setup + N panelists + (N - 1) moderator decisions + summary
        return 2 * self.panel_interactions + 1

    def metadata(self) -> dict[str, Any]:
        return {
            "panelType": self.panel_type,
            "panelInteractions": self.panel_interactions,
            "summaryFocus": self.summary_focus,
            "totalMessages": len(self.conversation),
            "apiCalls": self.planned_api_calls,
            "actualApiCalls": len(self.steps),
            "runId": self.run_id,
            "startTime": self.started_at,
            "endTime": self.ended_at,
            "performance": {
                "expectedDuration": self.expected_duration_sec,
                "actualDuration": self.duration_sec,
                "validation": self.performance.to_dict() if self.performance else None,
            },
        }

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status,
            "conversation": [t.to_dict() for t in self.conversation],
            "summary": self.summary,
            "moderatorDecisions": [d.to_dict() for d in self.moderator_decisions],
            "panelStats": dict(self.panel_stats),
            "metadata": self.metadata(),
            "steps": [asdict(s) for s in self.steps],
            "error": self.error,
            "errorType": self.error_type,
            "fileGenerationStatus": self.file_generation.to_dict() if self.file_generation else None,
        }
