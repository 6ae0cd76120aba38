"""Rich console output and report files for panel runs."""

import json
import logging
from collections.abc import Mapping
from datetime import datetime
from pathlib import Path

from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.rule import Rule
from rich.table import Table
from rich.text import Text

from moderated_panel.errors import FileGenerationError
from moderated_panel.models import (
    MODERATOR,
    PANELIST_KEYS,
    FileGenerationStatus,
    PanelRunResult,
    RunConfig,
    Turn,
    utc_now,
)
from moderated_panel.panel_types import BUILTIN_PANEL_TYPES, PanelTypeDescriptor

logger = logging.getLogger(__name__)

console = Console(legacy_windows=False)

_MAX_FOLDER_ATTEMPTS = 100

REPORT_FILES = {
    "conversation": "conversation.md",
    "summary": "summary.md",
    "moderatorDecisions": "moderator_decisions.json",
    "data": "data.json",
}


def _descriptor(panel_type: str, panel_types: Mapping[str, PanelTypeDescriptor]) -> PanelTypeDescriptor | None:
    return panel_types.get(panel_type)


def _speaker(turn: Turn, descriptor: PanelTypeDescriptor | None) -> str:
    if turn.role == MODERATOR:
        return descriptor.display_name(MODERATOR) if descriptor else "Moderator"
    return descriptor.display_name(turn.role) if descriptor else turn.role.title()


def _preview(text: str, words: int = 50) -> str:
    all_words = text.split()
    preview = " ".join(all_words[:words])
    if len(all_words) > words:
        preview += "..."
    return preview


# ==================
# Console
# ==================

def print_turn(turn: Turn, descriptor: PanelTypeDescriptor | None = None) -> None:
    """Print a short preview of one transcript turn."""
    style = "cyan" if turn.role == MODERATOR else "dim"
    console.print(
        Panel(
            _preview(turn.content),
            title=f"[bold]{_speaker(turn, descriptor)}[/bold] ({turn.kind.value})",
            border_style=style,
        )
    )


def print_conversation(result: PanelRunResult, descriptor: PanelTypeDescriptor | None = None) -> None:
    console.print(Rule("[bold cyan]Panel Conversation[/bold cyan]"))
    for turn in result.conversation:
        print_turn(turn, descriptor)


def print_stats(result: PanelRunResult, descriptor: PanelTypeDescriptor | None = None) -> None:
    table = Table(title="Participation", show_header=True, header_style="bold")
    table.add_column("Panelist")
    table.add_column("Turns", justify="right")
    for key in PANELIST_KEYS:
        name = descriptor.display_name(key) if descriptor else key.title()
        table.add_row(f"{name} ({key})", str(result.panel_stats.get(key, 0)))
    console.print(table)


def print_summary(result: PanelRunResult) -> None:
    """Print the summary (or the failure) using Rich markdown."""
    if not result.succeeded:
        console.print(Rule("[bold red]Panel Failed[/bold red]"))
        console.print(
            Text(
                f"{result.error_type}: {result.error} "
                f"(state: {result.failed_state}, turns kept: {len(result.conversation)})",
                style="red",
            )
        )
        return

    console.print(Rule("[bold green]Panel Summary[/bold green]"))
    meta = result.metadata()
    console.print(
        Text(
            f"Panel: {result.panel_type} | "
            f"Interactions: {result.panel_interactions} | "
            f"Calls: {meta['actualApiCalls']}/{meta['apiCalls']} | "
            f"Duration: {result.duration_sec:.1f}s",
            style="dim",
        )
    )
    if result.performance and not result.performance.valid:
        console.print(f"[yellow]{result.performance.message}[/yellow]")
    console.print(Markdown(result.summary))


# ==================
# Files
# ==================

def conversation_markdown(
    result: PanelRunResult,
    config: RunConfig,
    descriptor: PanelTypeDescriptor | None = None,
) -> str:
    lines: list[str] = [
        "# Panel Discussion Conversation",
        "",
        "## Metadata",
        f"- **Run ID**: {result.run_id}",
        f"- **Panel Type**: {result.panel_type}",
        f"- **Generated**: {result.ended_at}",
        f"- **Discussion Subject**: {config.discussion_subject}",
        f"- **Panel Interactions**: {result.panel_interactions}",
        f"- **Summary Focus**: {result.summary_focus}",
        "",
        "## Panel Statistics",
    ]
    for key in PANELIST_KEYS:
        name = descriptor.display_name(key) if descriptor else key.title()
        lines.append(f"- **{name}** ({key}): {result.panel_stats.get(key, 0)} contributions")
    lines += [
        f"- **Total Messages**: {len(result.conversation)}",
        f"- **Moderator Decisions**: {len(result.moderator_decisions)}",
        "",
        "## Source Material",
        config.source_text,
        "",
        "## Conversation",
        "",
    ]
    for turn in result.conversation:
        lines += [f"## {_speaker(turn, descriptor)} ({turn.kind.value})", "", turn.content, "", "---", ""]
    return "\n".join(lines)


def summary_markdown(
    result: PanelRunResult,
    config: RunConfig,
    descriptor: PanelTypeDescriptor | None = None,
) -> str:
    lines: list[str] = [
        "# Panel Discussion Summary",
        "",
        "## Metadata",
        f"- **Run ID**: {result.run_id}",
        f"- **Panel Type**: {result.panel_type}",
        f"- **Generated**: {result.ended_at}",
        f"- **Discussion Subject**: {config.discussion_subject}",
        f"- **Panel Interactions**: {result.panel_interactions}",
        f"- **Summary Focus**: {result.summary_focus}",
        f"- **Duration**: {result.duration_sec:.1f}s",
        "",
        "## Panel Statistics",
    ]
    for key in PANELIST_KEYS:
        name = descriptor.display_name(key) if descriptor else key.title()
        lines.append(f"- **{name}** ({key}): {result.panel_stats.get(key, 0)} contributions")
    lines += [
        f"- **Moderator Decisions**: {len(result.moderator_decisions)}",
        "",
        "## Summary",
        "",
        result.summary,
        "",
        "## Context",
        f"- **Source Material Length**: {len(config.source_text)} characters",
        f"- **API Calls**: {len(result.steps)} of {result.planned_api_calls} planned",
        "",
    ]
    return "\n".join(lines)


def _create_run_folder(base_dir: Path, panel_type: str, now: datetime) -> Path:
    parent = base_dir / panel_type
    parent.mkdir(parents=True, exist_ok=True)
    stamp = now.strftime("%y_%m_%d_%H_%M_%S")
    for attempt in range(1, _MAX_FOLDER_ATTEMPTS + 1):
        folder = parent / f"{stamp}_{attempt}"
        try:
            folder.mkdir()
        except FileExistsError:
            continue
        return folder
    raise FileGenerationError(
        f"Could not create a unique output folder under {parent} after {_MAX_FOLDER_ATTEMPTS} attempts"
    )


def _write_json(path: Path, data) -> None:
    path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")


def save_reports(
    result: PanelRunResult,
    config: RunConfig,
    base_dir: Path,
    panel_types: Mapping[str, PanelTypeDescriptor] = BUILTIN_PANEL_TYPES,
    now: datetime | None = None,
) -> FileGenerationStatus:
    """Write the four report files for a run. Never raises.

    Files land in ``<base_dir>/<panel_type>/<YY_MM_DD_HH_MM_SS>_<n>/``.

    Returns:
        FileGenerationStatus with the written paths, or success=False and
        the error when anything on disk fails.
    """
    descriptor = _descriptor(result.panel_type, panel_types)
    logger.info("Saving reports for panel run %s", result.run_id)
    try:
        folder = _create_run_folder(Path(base_dir), result.panel_type, now or datetime.now())
        paths = {key: folder / name for key, name in REPORT_FILES.items()}
        paths["conversation"].write_text(conversation_markdown(result, config, descriptor), encoding="utf-8")
        paths["summary"].write_text(summary_markdown(result, config, descriptor), encoding="utf-8")
        _write_json(paths["moderatorDecisions"], [d.to_dict() for d in result.moderator_decisions])
        _write_json(paths["data"], result.to_dict())
    except (OSError, FileGenerationError) as exc:
        logger.error("Report generation failed for %s: %s", result.run_id, exc)
        return FileGenerationStatus(success=False, timestamp=utc_now(), error=str(exc))

    logger.info("Reports saved to: %s", folder)
    return FileGenerationStatus(
        success=True,
        timestamp=utc_now(),
        output_dir=str(folder),
        files={key: str(path) for key, path in paths.items()},
    )
