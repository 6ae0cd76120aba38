"""Moderated panel run: SETUP -> LOOP(1..N) -> SUMMARY -> DONE, FAILED from any state.

Every prompt depends on the transcript so far, so calls within a run are
strictly serialized. Panelist turns spend the interaction budget; moderator
turns are free, and no moderator call follows the N-th panelist turn, so a
completed run always holds exactly N decisions and N panel responses.
"""

import dataclasses
import logging
import time
import uuid
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from moderated_panel.errors import (
    AgentNotFoundError,
    ConfigValidationError,
    ExternalCallError,
)
from moderated_panel.metrics import ParticipationTracker, RunMetrics
from moderated_panel.models import (
    MODERATOR,
    PANELIST_KEYS,
    ROLE_FOR_PANELIST,
    ROLES,
    SUMMARIZER,
    AgentRequest,
    CallResult,
    ModeratorDecision,
    PanelRunResult,
    PerformanceVerdict,
    RunConfig,
    RunState,
    StepRecord,
    Turn,
    TurnKind,
    utc_now,
)
from moderated_panel.panel_types import (
    BUILTIN_PANEL_TYPES,
    PanelTypeDescriptor,
    build_run_config,
    get_panel_type,
)
from moderated_panel.parser import ModeratorResponseParser
from moderated_panel.reports import save_reports
from moderated_panel.resolver import AgentBinding, AgentResolver

logger = logging.getLogger(__name__)

# await caller(request, step_id, role=role) -> CallResult
Caller = Callable[..., Awaitable[CallResult]]


@dataclass
class RunRecord:
    """Live state of one run. Owned by a single orchestrator call."""

    config: RunConfig
    run_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    state: RunState = RunState.SETUP
    turns: list[Turn] = field(default_factory=list)
    decisions: list[ModeratorDecision] = field(default_factory=list)
    participation: ParticipationTracker = field(default_factory=ParticipationTracker)
    steps: list[StepRecord] = field(default_factory=list)
    summary: str = ""
    started_at: str = field(default_factory=utc_now)
    _start: float = field(default_factory=time.monotonic, repr=False)
    error: str | None = None
    error_type: str | None = None
    failed_state: RunState | None = None

    def add_turn(self, role: str, kind: TurnKind, content: str) -> Turn:
        turn = Turn(role=role, kind=kind, content=content)
        self.turns.append(turn)
        return turn

    def add_step(self, step_id: str, agent: str, latency: float, error: str | None = None) -> None:
        status = "failed" if error is not None else "completed"
        self.steps.append(StepRecord(step_id, agent, status, latency, error))

    def fail(self, exc: Exception) -> None:
        self.failed_state = self.state
        self.state = RunState.FAILED
        self.error = str(exc)
        self.error_type = getattr(exc, "kind", type(exc).__name__)

    @property
    def elapsed(self) -> float:
        return time.monotonic() - self._start

    def finalize(
        self,
        performance: PerformanceVerdict | None = None,
        duration_sec: float | None = None,
    ) -> PanelRunResult:
        return PanelRunResult(
            run_id=self.run_id,
            status="completed" if self.state is RunState.DONE else "failed",
            panel_type=self.config.panel_type,
            panel_interactions=self.config.panel_interactions,
            conversation=tuple(self.turns),
            moderator_decisions=tuple(self.decisions),
            panel_stats=self.participation.as_dict(),
            summary=self.summary,
            steps=tuple(self.steps),
            started_at=self.started_at,
            ended_at=utc_now(),
            duration_sec=self.elapsed if duration_sec is None else duration_sec,
            summary_focus=self.config.summary_focus,
            performance=performance,
            expected_duration_sec=self.config.expected_duration_sec,
            error=self.error,
            error_type=self.error_type,
            failed_state=self.failed_state.value if self.failed_state else None,
        )


# ==================
# Prompt text
# ==================

def render_transcript(turns: list[Turn], descriptor: PanelTypeDescriptor) -> str:
    lines = []
    for turn in turns:
        speaker = "Moderator" if turn.role == MODERATOR else descriptor.display_name(turn.role)
        lines.append(f"{speaker}: {turn.content}")
    return "\n\n".join(lines)


def _panel_roster(descriptor: PanelTypeDescriptor) -> str:
    lines = []
    for index, key in enumerate(PANELIST_KEYS, start=1):
        participant = descriptor.participant_for(key)
        lines.append(f"- {participant.name} (panel_{index}, {key}): {participant.description}")
    return "\n".join(lines)


def _stats_lines(tracker: ParticipationTracker, descriptor: PanelTypeDescriptor, suffix: str) -> str:
    return "\n".join(
        f"- {descriptor.display_name(key)}: {tracker.count(key)} {suffix}" for key in PANELIST_KEYS
    )


def setup_prompt(config: RunConfig, descriptor: PanelTypeDescriptor) -> str:
    return f"""Source Text: {config.source_text}

Discussion Subject: {config.discussion_subject}

This is the beginning of a {descriptor.title}. Please:
1. Provide a brief opening comment to set the stage
2. Select the first speaker from the panel
3. Give them a specific prompt to start the discussion

The panel members available are:
{_panel_roster(descriptor)}

Please select strategically based on what would make for the most engaging opening."""


def panelist_prompt(record: RunRecord, descriptor: PanelTypeDescriptor, speaker: str, prompt: str) -> str:
    config = record.config
    return f"""Discussion Context:
{render_transcript(record.turns, descriptor)}

Source Text: {config.source_text}
Discussion Subject: {config.discussion_subject}

Current Prompt: {prompt}

Please provide your response as {descriptor.display_name(speaker)}, the {speaker} panel member."""


def decision_prompt(record: RunRecord, descriptor: PanelTypeDescriptor, interaction: int) -> str:
    config = record.config
    return f"""Current Discussion:
{render_transcript(record.turns, descriptor)}

Source Text: {config.source_text}
Discussion Subject: {config.discussion_subject}

We are {interaction} interactions into a {config.panel_interactions}-interaction panel discussion.

Current speaker statistics:
{_stats_lines(record.participation, descriptor, "times")}

Please select the next speaker and provide them with a specific prompt. Consider:
1. Who would provide the most valuable next perspective?
2. Ensuring balanced participation
3. Building on what was just said
4. Maintaining conversation flow"""


def summary_prompt(record: RunRecord, descriptor: PanelTypeDescriptor) -> str:
    config = record.config
    return f"""Full Panel Discussion:
{render_transcript(record.turns, descriptor)}

Source Text: {config.source_text}
Discussion Subject: {config.discussion_subject}

Panel Statistics:
{_stats_lines(record.participation, descriptor, "contributions")}

Summary Focus: {config.summary_focus}

Please provide a comprehensive summary of this moderated panel discussion that captures the diverse perspectives and key insights."""


# ==================
# Orchestrator
# ==================

class PanelOrchestrator:
    """Drives one panel run at a time per ``run()`` call.

    The resolver and metrics are shared and may serve concurrent runs; all
    per-run state lives in the RunRecord created by ``run()``.
    """

    def __init__(
        self,
        resolver: AgentResolver,
        caller: Caller,
        metrics: RunMetrics | None = None,
        parser: ModeratorResponseParser | None = None,
        panel_types: Mapping[str, PanelTypeDescriptor] = BUILTIN_PANEL_TYPES,
    ) -> None:
        self._resolver = resolver
        self._caller = caller
        self._metrics = metrics if metrics is not None else RunMetrics()
        self._parser = parser or ModeratorResponseParser()
        self._panel_types = panel_types

    @property
    def metrics(self) -> RunMetrics:
        return self._metrics

    async def run(self, config: RunConfig) -> PanelRunResult:
        """Run a panel to completion.

        Raises:
            ConfigValidationError: Before any external call, if the budget is
                below 1 or the panel type is unknown.

        Returns:
            A completed result, or a failed one carrying the partial
            transcript when a role can't be resolved or a call errors.
        """
        if config.panel_interactions < 1:
            raise ConfigValidationError(["panelInteractions must be at least 1"])
        descriptor = get_panel_type(config.panel_type, self._panel_types)

        record = RunRecord(config=dataclasses.replace(config, panel_type=descriptor.name))
        op_id = f"pipeline_execution_{record.run_id}"
        logger.info(
            "Starting %s panel %s: %d interactions, %d planned calls",
            descriptor.name, record.run_id, config.panel_interactions, 2 * config.panel_interactions + 1,
        )

        self._metrics.start_timer(op_id)
        try:
            await self._execute(record, descriptor)
        except (AgentNotFoundError, ExternalCallError) as exc:
            record.fail(exc)
            logger.error("Panel %s failed during %s: %s", record.run_id, record.failed_state.value, exc)
        finally:
            timed = self._metrics.end_timer(op_id, status=record.state.value)
        duration = timed.duration if timed else record.elapsed

        if record.state is RunState.DONE:
            self._metrics.record_operation(descriptor.name, "pipeline_execution", duration)
        verdict = self._metrics.validate_performance(descriptor.name, config.expected_duration_sec)
        if not verdict.valid:
            logger.warning(verdict.message)

        result = record.finalize(performance=verdict, duration_sec=duration)
        logger.info(
            "Panel %s %s in %.1fs (%d calls, stats %s)",
            record.run_id, result.status, duration, len(result.steps), result.panel_stats,
        )
        return result

    async def _execute(self, record: RunRecord, descriptor: PanelTypeDescriptor) -> None:
        bindings = self._resolve_all(record, descriptor)
        config = record.config

        # SETUP
        raw = await self._call(record, bindings[MODERATOR], MODERATOR, setup_prompt(config, descriptor), "moderator_setup")
        decision = self._parser.parse(raw, "setup")
        record.decisions.append(decision)
        record.add_turn(MODERATOR, TurnKind.SETUP, decision.comment)
        speaker, prompt = decision.next_speaker, decision.speaking_prompt

        # LOOP
        record.state = RunState.LOOP
        for interaction in range(1, config.panel_interactions + 1):
            logger.info(
                "Panel interaction %d/%d: %s speaking",
                interaction, config.panel_interactions, descriptor.display_name(speaker),
            )
            role = ROLE_FOR_PANELIST[speaker]
            reply = await self._call(
                record, bindings[role], role,
                panelist_prompt(record, descriptor, speaker, prompt),
                f"{speaker}_interaction_{interaction}",
            )
            record.participation.record(speaker)
            record.add_turn(speaker, TurnKind.PANEL_RESPONSE, reply)

            if interaction == config.panel_interactions:
                break

            raw = await self._call(
                record, bindings[MODERATOR], MODERATOR,
                decision_prompt(record, descriptor, interaction),
                f"moderator_decision_{interaction}",
            )
            decision = self._parser.parse(raw, f"decision_{interaction}")
            record.decisions.append(decision)
            if decision.comment.strip():
                record.add_turn(MODERATOR, TurnKind.TRANSITION, decision.comment)
            speaker, prompt = decision.next_speaker, decision.speaking_prompt

        # SUMMARY
        record.state = RunState.SUMMARY
        record.summary = await self._call(
            record, bindings[SUMMARIZER], SUMMARIZER, summary_prompt(record, descriptor), "panel_summary",
        )
        record.state = RunState.DONE

    def _resolve_all(self, record: RunRecord, descriptor: PanelTypeDescriptor) -> dict[str, AgentBinding]:
        with self._metrics.timer(
            f"agent_resolution_{record.run_id}", panel_type=descriptor.name, operation="agent_resolution",
        ):
            bindings = {role: self._resolver.resolve_binding(descriptor.name, role) for role in ROLES}
        for role, binding in bindings.items():
            logger.debug("%s -> %s (%s)", role, binding.name, binding.source)
        return bindings

    async def _call(
        self,
        record: RunRecord,
        binding: AgentBinding,
        role: str,
        message: str,
        step_id: str,
    ) -> str:
        try:
            request: AgentRequest = binding.builder.build_request(
                message, context=record.config.discussion_subject, history=[],
            )
        except Exception as exc:
            raise ExternalCallError(step_id, f"Could not build request for {binding.name}: {exc}") from exc
        start = time.monotonic()
        try:
            result = await self._caller(request, step_id, role=role)
        except Exception as exc:
            record.add_step(step_id, binding.name, time.monotonic() - start, str(exc))
            raise ExternalCallError(step_id, f"Transport failure: {exc}") from exc
        latency = result.latency_sec or time.monotonic() - start

        if result.error is not None or result.message is None:
            error = result.error or "Empty response"
            record.add_step(step_id, binding.name, latency, error)
            raise ExternalCallError(step_id, error)
        record.add_step(step_id, binding.name, latency)
        return result.message


async def run_panel(
    payload: Mapping[str, Any] | RunConfig,
    resolver: AgentResolver,
    caller: Caller,
    metrics: RunMetrics | None = None,
    output_dir: Path | None = None,
    panel_types: Mapping[str, PanelTypeDescriptor] = BUILTIN_PANEL_TYPES,
) -> PanelRunResult:
    """Validate a job payload, run the panel, and save reports for completed runs.

    Raises:
        ConfigValidationError: With every violation in the payload.
    """
    config = payload if isinstance(payload, RunConfig) else build_run_config(payload, panel_types)
    orchestrator = PanelOrchestrator(resolver, caller, metrics=metrics, panel_types=panel_types)
    result = await orchestrator.run(config)
    if output_dir is None or not result.succeeded:
        return result
    status = save_reports(result, config, output_dir, panel_types=panel_types)
    return dataclasses.replace(result, file_generation=status)
