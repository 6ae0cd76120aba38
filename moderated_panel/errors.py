"""Error taxonomy for panel runs."""


class PanelError(Exception):
    """Base class for errors raised by the panel engine."""

    #: Short classification carried on failed run results.
    kind = "panel_error"


class ConfigValidationError(PanelError):
    """Run configuration is missing fields or has out-of-range values.

    Carries every violation found, not just the first one.
    """

    kind = "config_validation"

    def __init__(self, errors: list[str]) -> None:
        self.errors = list(errors)
        super().__init__("Invalid panel configuration: " + "; ".join(self.errors))


class AgentNotFoundError(PanelError):
    """Neither a type-specific nor a fallback binding exists for a role."""

    kind = "agent_not_found"

    def __init__(self, panel_type: str, role: str) -> None:
        self.panel_type = panel_type
        self.role = role
        super().__init__(
            f"No agent registered for role '{role}' in panel type '{panel_type}' "
            "and no fallback agent is available"
        )


class ExternalCallError(PanelError):
    """The text-generation call returned an error or the transport failed."""

    kind = "external_call"

    def __init__(self, step_id: str, message: str) -> None:
        self.step_id = step_id
        super().__init__(f"[{step_id}] {message}")


class FileGenerationError(PanelError):
    """Writing report artifacts failed. Never fatal to a run."""

    kind = "file_generation"
