"""Click CLI: config loading, provider routing, panel runs, and report output."""

import asyncio
import json
import logging
import sys
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import click
from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import Progress, SpinnerColumn, TextColumn, TimeElapsedColumn
from rich.table import Table

from config.config_loader import AppConfig, load_config
from moderated_panel.agents.catalog import build_default_resolver
from moderated_panel.caller import ProviderCaller
from moderated_panel.errors import ConfigValidationError
from moderated_panel.healthcheck import run_health_checks
from moderated_panel.inbox import archive_file, build_payload, ensure_dirs, panel_inbox, scan_inbox
from moderated_panel.metrics import RunMetrics
from moderated_panel.models import ROLES, PanelRunResult
from moderated_panel.orchestrator import run_panel
from moderated_panel.panel_types import (
    PanelTypeDescriptor,
    apply_overrides,
    available_panel_types,
    get_panel_type,
)
from moderated_panel.providers.anthropic import AnthropicProvider
from moderated_panel.providers.base import AIProvider
from moderated_panel.providers.gemini import GeminiProvider
from moderated_panel.providers.openai_provider import OpenAIProvider
from moderated_panel.reports import print_conversation, print_stats, print_summary
from moderated_panel.resolver import AgentResolver

logger = logging.getLogger(__name__)

console = Console(legacy_windows=False)

# Keyed by the ``sdk`` field of a models entry in settings.yaml.
PROVIDER_CLASSES: dict[str, type[AIProvider]] = {
    "openai": OpenAIProvider,
    "anthropic": AnthropicProvider,
    "gemini": GeminiProvider,
}


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
    )


def _build_all_providers(config: AppConfig) -> dict[str, AIProvider]:
    """Build all providers that have API keys. Returns dict keyed by name."""
    providers: dict[str, AIProvider] = {}
    for name in sorted(config.available_providers):
        model_cfg = config.models[name]
        provider_cls = PROVIDER_CLASSES.get(model_cfg.sdk)
        if provider_cls is None:
            logger.warning("Provider '%s' uses unknown sdk '%s', skipping", name, model_cfg.sdk)
            continue
        try:
            providers[name] = provider_cls(model_cfg)
        except Exception as exc:
            logger.warning("Failed to instantiate provider '%s': %s", name, exc)
    return providers


def _build_caller(config: AppConfig, providers: Mapping[str, AIProvider]) -> ProviderCaller:
    """Default provider from settings (or the first available), plus per-role routing."""
    default = providers.get(config.defaults.provider)
    if default is None:
        fallback_name = sorted(providers)[0]
        logger.warning(
            "Default provider '%s' unavailable, using '%s'", config.defaults.provider, fallback_name,
        )
        default = providers[fallback_name]

    role_providers: dict[str, AIProvider] = {}
    for role, provider_name in config.roles.items():
        if role not in ROLES:
            logger.warning("Ignoring routing for unknown role '%s'", role)
        elif provider_name in providers:
            role_providers[role] = providers[provider_name]
        else:
            logger.warning("Provider '%s' for role '%s' unavailable, using default", provider_name, role)
    return ProviderCaller(default, role_providers)


def _check_and_filter_providers(all_providers: dict[str, AIProvider]) -> dict[str, AIProvider]:
    """Run health checks, print results, and ask what to do on failures.

    Returns the working providers. Exits if the user declines to continue or
    no provider passes.
    """
    console.print("\n[bold]Checking providers...[/bold]")
    results: dict[str, tuple[bool, str]] = asyncio.run(run_health_checks(all_providers))

    failed_names: list[str] = []
    for name in sorted(results):
        ok, err = results[name]
        if ok:
            console.print(f"  [green]OK  [/green] {name}")
        else:
            short_err = err.splitlines()[0][:120] if err else "unknown error"
            console.print(f"  [red]FAIL[/red] {name}: {short_err}")
            failed_names.append(name)

    if not failed_names:
        console.print()
        return all_providers

    working = {n: p for n, p in all_providers.items() if n not in failed_names}
    if not working:
        console.print("\n[bold red]Error:[/bold red] No providers passed the health check.")
        sys.exit(1)

    console.print(f"\n[yellow]{len(failed_names)} provider(s) failed:[/yellow] {', '.join(failed_names)}")
    console.print(f"Working providers: {', '.join(sorted(working))}")
    if not click.confirm("Continue with working providers only?", default=True):
        sys.exit(0)
    console.print()
    return working


def _cli_overrides(
    panel_type: str | None,
    interactions: int | None,
    focus: str | None,
    expected_duration: float | None,
) -> dict[str, Any]:
    """Only the flags the user actually passed, as payload keys."""
    overrides: dict[str, Any] = {}
    if panel_type is not None:
        overrides["panelType"] = panel_type
    if interactions is not None:
        overrides["panelInteractions"] = interactions
    if focus is not None:
        overrides["summaryFocus"] = focus
    if expected_duration is not None:
        overrides["expectedDuration"] = expected_duration
    return overrides


def _print_panel_types(panel_types: Mapping[str, PanelTypeDescriptor]) -> None:
    table = Table(title="Panel types", show_header=True, header_style="bold")
    table.add_column("Type")
    table.add_column("Title")
    table.add_column("Participants")
    table.add_column("Interactions", justify="right")
    for name in available_panel_types(panel_types):
        descriptor = panel_types[name]
        participants = ", ".join(p.name for p in descriptor.participants.values())
        table.add_row(name, descriptor.title, participants, str(descriptor.default_interactions))
    console.print(table)


def _print_agent_info(resolver: AgentResolver, panel_type: str) -> None:
    info = resolver.describe(panel_type)
    table = Table(title=f"Agents for '{info['panel_type']}'", show_header=True, header_style="bold")
    table.add_column("Role")
    table.add_column("Type-specific")
    table.add_column("Fallback")
    table.add_column("Will use")
    for role, entry in info["agents"].items():
        table.add_row(
            role,
            "yes" if entry["type_specific"] else "no",
            "yes" if entry["fallback_available"] else "no",
            entry["will_use"] or "[red]missing[/red]",
        )
    console.print(table)


async def _run_single(
    payload: dict[str, Any],
    resolver: AgentResolver,
    caller: ProviderCaller,
    metrics: RunMetrics,
    output_dir: Path,
    panel_types: Mapping[str, PanelTypeDescriptor],
) -> PanelRunResult:
    """Run one panel, print it, and return the result.

    Raises:
        ConfigValidationError: If the payload is invalid.
    """
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        TimeElapsedColumn(),
        console=console,
        transient=True,
    ) as progress:
        progress.add_task(f"Running {payload.get('panelType', 'panel')} discussion...", total=None)
        result = await run_panel(
            payload, resolver, caller, metrics=metrics, output_dir=output_dir, panel_types=panel_types,
        )

    descriptor = panel_types.get(result.panel_type)
    print_conversation(result, descriptor)
    print_stats(result, descriptor)
    print_summary(result)
    if result.file_generation is not None:
        if result.file_generation.success:
            console.print(f"\n[dim]Saved to: {result.file_generation.output_dir}[/dim]")
        else:
            console.print(f"\n[yellow]Report files not written:[/yellow] {result.file_generation.error}")
    return result


async def _run_inbox(
    config: AppConfig,
    resolver: AgentResolver,
    caller: ProviderCaller,
    metrics: RunMetrics,
    inbox_dir: Path,
    output_dir: Path,
    panel_types: Mapping[str, PanelTypeDescriptor],
    panel_type: str,
    overrides: dict[str, Any],
) -> int:
    """Process every .md file in the panel type's inbox folder.

    Precedence for per-file settings: CLI flag > frontmatter > panel-type default.
    Returns the number of failed files.
    """
    archive_dir = config.defaults.archive_dir
    ensure_dirs(inbox_dir, archive_dir)
    files = scan_inbox(inbox_dir)
    if not files:
        click.echo(f"No files in inbox: {inbox_dir}")
        return 0

    failures = 0
    for file_path in files:
        try:
            payload = {**build_payload(file_path, panel_type), **overrides}
            result = await _run_single(payload, resolver, caller, metrics, output_dir, panel_types)
        except (ConfigValidationError, OSError, ValueError) as exc:
            logger.error("Failed: %s -- %s", file_path.name, exc)
            archive_file(file_path, archive_dir, failed=True)
            failures += 1
            continue

        archived = archive_file(file_path, archive_dir, failed=not result.succeeded)
        if result.succeeded:
            click.echo(f"Processed: {file_path.name} (archived: {archived.name})")
        else:
            failures += 1
            click.echo(f"Failed: {file_path.name} (archived: {archived.name})")
    return failures


@click.command()
@click.argument("subject", required=False)
@click.option("--source", "source_text", default=None, help="Source material as text")
@click.option("--source-file", type=click.Path(exists=True, dir_okay=False),
              help="Read source material (and optional frontmatter) from a .md file")
@click.option("--type", "panel_type", default=None, help="Panel type (default: from config)")
@click.option("--interactions", default=None, type=int, help="Panelist turns, 2-15 (default: per panel type)")
@click.option("--focus", default=None, help="Summary focus (default: per panel type)")
@click.option("--expected-duration", default=None, type=float,
              help="Expected run duration ceiling in seconds (default: from config)")
@click.option("--output", "output_path", default=None, help="Output directory (default: from config)")
@click.option("--inbox", "use_inbox", is_flag=True, default=False,
              help="Process all .md files in the panel type's inbox folder")
@click.option("--inbox-dir", "inbox_dir_override", default=None,
              help="Override inbox folder path (default: <input_dir>/<panel type>)")
@click.option("--list-types", is_flag=True, default=False, help="List panel types and exit")
@click.option("--agent-info", is_flag=True, default=False,
              help="Show which agent serves each role for the panel type and exit")
@click.option("--skip-health-check", is_flag=True, default=False,
              help="Skip the API connectivity check at startup")
@click.option("--verbose", is_flag=True, help="Enable DEBUG-level logging")
def main(
    subject: str | None,
    source_text: str | None,
    source_file: str | None,
    panel_type: str | None,
    interactions: int | None,
    focus: str | None,
    expected_duration: float | None,
    output_path: str | None,
    use_inbox: bool,
    inbox_dir_override: str | None,
    list_types: bool,
    agent_info: bool,
    skip_health_check: bool,
    verbose: bool,
) -> None:
    """Moderated Panel -- a moderator-led discussion between three AI panelists.

    \b
    Examples:
      moderated-panel "Is remote work here to stay?" --source-file article.md
      moderated-panel "Review the auth flow" --type security --source-file design.md
      moderated-panel "Queue redesign" --type techreview --interactions 6 --source "..."
      moderated-panel --inbox --type security
      moderated-panel --list-types
      moderated-panel --agent-info --type discussion
    """
    if sys.platform == "win32":
        if hasattr(sys.stdout, "reconfigure"):
            sys.stdout.reconfigure(encoding="utf-8", errors="replace")
        if hasattr(sys.stderr, "reconfigure"):
            sys.stderr.reconfigure(encoding="utf-8", errors="replace")

    load_dotenv()
    _setup_logging(verbose)

    try:
        config = load_config()
        panel_types = apply_overrides(config.panel_types)
        effective_type = get_panel_type(panel_type or config.defaults.panel_type, panel_types).name
    except (FileNotFoundError, ConfigValidationError) as exc:
        console.print(f"[bold red]Config error:[/bold red] {exc}")
        sys.exit(1)

    resolver = build_default_resolver()

    if list_types:
        _print_panel_types(panel_types)
        return
    if agent_info:
        _print_agent_info(resolver, effective_type)
        return

    overrides = _cli_overrides(panel_type, interactions, focus, expected_duration)
    overrides.setdefault("expectedDuration", config.defaults.expected_duration_sec)
    output_dir = Path(output_path) if output_path else config.defaults.output_dir

    payload: dict[str, Any] | None = None
    if not use_inbox:
        if source_file:
            payload = {**build_payload(Path(source_file), effective_type), "source": source_file}
        elif source_text:
            payload = {"sourceText": source_text, "panelType": effective_type, "source": "cli"}
        else:
            console.print("[bold red]Error:[/bold red] Provide --source, --source-file, or --inbox.")
            sys.exit(1)
        if subject:
            payload["discussionSubject"] = subject
        payload.update(overrides)

    all_providers = _build_all_providers(config)
    if not all_providers:
        console.print("[bold red]Error:[/bold red] No providers available. Check API keys in .env.")
        sys.exit(1)
    if not skip_health_check:
        all_providers = _check_and_filter_providers(all_providers)

    caller = _build_caller(config, all_providers)
    metrics = RunMetrics()

    if use_inbox:
        inbox_dir = Path(inbox_dir_override) if inbox_dir_override else panel_inbox(config.defaults.input_dir, effective_type)
        failures = asyncio.run(
            _run_inbox(
                config=config,
                resolver=resolver,
                caller=caller,
                metrics=metrics,
                inbox_dir=inbox_dir,
                output_dir=output_dir,
                panel_types=panel_types,
                panel_type=effective_type,
                overrides=overrides,
            )
        )
        if verbose:
            console.print_json(json.dumps(metrics.summary()))
        sys.exit(1 if failures else 0)

    try:
        result = asyncio.run(_run_single(payload, resolver, caller, metrics, output_dir, panel_types))
    except ConfigValidationError as exc:
        console.print("[bold red]Invalid run configuration:[/bold red]")
        for error in exc.errors:
            console.print(f"  - {error}")
        sys.exit(1)

    if verbose:
        console.print_json(json.dumps(metrics.summary()))
    if not result.succeeded:
        sys.exit(1)


if __name__ == "__main__":
    main()
