"""Load settings.yaml into typed dataclasses. Resolves which providers have API keys."""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

logger = logging.getLogger(__name__)

_SETTINGS_PATH = Path(__file__).parent / "settings.yaml"


@dataclass
class ModelConfig:
    name: str
    sdk: str
    model: str
    api_key_env: str
    timeout_sec: int
    max_tokens: int
    base_url: str | None = None
    use_agent_models: bool = False   # openai-compatible routers only (OpenRouter)


@dataclass
class DefaultsConfig:
    panel_type: str
    output_dir: Path
    input_dir: Path
    archive_dir: Path
    provider: str
    expected_duration_sec: float = 240.0


@dataclass
class PanelOverride:
    """Per-panel-type tweaks layered over the built-in descriptors."""

    default_interactions: int | None = None
    summary_focus: str | None = None
    participant_names: dict[str, str] = field(default_factory=dict)


@dataclass
class AppConfig:
    defaults: DefaultsConfig
    models: dict[str, ModelConfig]
    roles: dict[str, str] = field(default_factory=dict)           # role -> provider name
    panel_types: dict[str, PanelOverride] = field(default_factory=dict)
    available_providers: set[str] = field(default_factory=set)


def _parse_panel_overrides(raw: dict | None) -> dict[str, PanelOverride]:
    overrides: dict[str, PanelOverride] = {}
    for panel_type, body in (raw or {}).items():
        body = body or {}
        interactions = body.get("default_interactions")
        overrides[str(panel_type).lower()] = PanelOverride(
            default_interactions=int(interactions) if interactions is not None else None,
            summary_focus=body.get("summary_focus"),
            participant_names={str(k): str(v) for k, v in (body.get("participants") or {}).items()},
        )
    return overrides


def load_config(settings_path: Path = _SETTINGS_PATH) -> AppConfig:
    """Load and validate configuration from settings.yaml.

    Raises FileNotFoundError if settings file missing.
    Logs which providers lack API keys but does not raise; callers check
    available_providers.
    """
    if not settings_path.exists():
        raise FileNotFoundError(f"Settings file not found: {settings_path}")

    with settings_path.open("r", encoding="utf-8") as f:
        raw = yaml.safe_load(f)

    defaults_raw = raw["defaults"]
    if "panel_interactions" in defaults_raw:
        logger.warning(
            "defaults.panel_interactions is not used; set panel_types.<type>.default_interactions instead"
        )
    defaults = DefaultsConfig(
        panel_type=str(defaults_raw.get("panel_type", "discussion")).lower(),
        output_dir=Path(defaults_raw["output_dir"]),
        input_dir=Path(defaults_raw.get("input_dir", "./input")),
        archive_dir=Path(defaults_raw.get("archive_dir", "./input/archive")),
        provider=str(defaults_raw["provider"]),
        expected_duration_sec=float(defaults_raw.get("expected_duration_sec", 240.0)),
    )

    models: dict[str, ModelConfig] = {}
    available_providers: set[str] = set()

    for provider_name, model_raw in raw["models"].items():
        model_cfg = ModelConfig(
            name=provider_name,
            sdk=model_raw["sdk"],
            model=model_raw["model"],
            api_key_env=model_raw["api_key_env"],
            timeout_sec=int(model_raw["timeout_sec"]),
            max_tokens=int(model_raw["max_tokens"]),
            base_url=model_raw.get("base_url"),
            use_agent_models=bool(model_raw.get("use_agent_models", False)),
        )
        models[provider_name] = model_cfg

        api_key = os.environ.get(model_raw["api_key_env"], "").strip()
        if api_key:
            available_providers.add(provider_name)
            logger.info("Provider available: %s", provider_name)
        else:
            logger.info(
                "Provider skipped (no API key): %s (set %s in .env)",
                provider_name,
                model_raw["api_key_env"],
            )

    roles = {str(role): str(provider) for role, provider in (raw.get("roles") or {}).items()}
    unknown = sorted(p for p in roles.values() if p not in models)
    if unknown:
        logger.warning("Role routing names unknown providers: %s", ", ".join(unknown))

    return AppConfig(
        defaults=defaults,
        models=models,
        roles=roles,
        panel_types=_parse_panel_overrides(raw.get("panel_types")),
        available_providers=available_providers,
    )
