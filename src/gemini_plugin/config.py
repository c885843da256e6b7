from __future__ import annotations

from pydantic import Field, SecretStr, ValidationError, conint, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .auth import detect_auth_mode
from .constants import Defaults
from .errors import ConfigError
from .models import AuthMode, OutputFormat


class PluginConfig(BaseSettings):
    """Configuration loaded from Drone plugin settings (PLUGIN_* environment variables)."""

    model_config = SettingsConfigDict(
        env_prefix="PLUGIN_",
        frozen=True,
        extra="ignore",
        protected_namespaces=(),
    )

    # Required
    prompt: str = Field(default="", description="Instruction for the AI")

    # Invocation
    target: str = Field(default=Defaults.TARGET, description="Working directory for gemini CLI")
    model: str = Field(default=Defaults.MODEL)
    output_format: OutputFormat = Field(default=Defaults.OUTPUT_FORMAT)
    yolo: bool = Field(default=False, description="Auto-approve all actions (--yolo)")
    approval_mode: str = Field(default="", description="Approval mode override, e.g. auto_edit")
    include_dirs: str = Field(default="", description="Additional directories, comma-separated")
    debug: bool = Field(default=False)
    timeout: conint(ge=1) = Field(default=Defaults.TIMEOUT_S, description="Timeout in seconds")

    # Input
    git_diff: bool = Field(default=False, description="Append the commit diff to stdin")
    git_commit_sha: str = Field(default="", description="Commit to analyze (defaults to DRONE_COMMIT_SHA)")
    stdin_input: str = Field(default="", description="Extra content piped to gemini CLI")

    # Authentication
    # api_key is a Gemini API key when gcp_project is empty, a Vertex AI
    # Google API key otherwise.
    api_key: SecretStr = Field(default="")
    gcp_project: str = Field(default="")
    gcp_location: str = Field(default=Defaults.GCP_LOCATION)
    gcp_credentials: SecretStr = Field(
        default="",
        description="Service account JSON content or a path to it",
    )

    @field_validator("output_format", mode="before")
    @classmethod
    def _normalize_output_format(cls, value: str) -> str:
        if isinstance(value, str):
            return value.strip().lower() or Defaults.OUTPUT_FORMAT
        return value

    @field_validator("include_dirs", "approval_mode", "model", "gcp_project", "gcp_location", mode="before")
    @classmethod
    def _strip(cls, value: str) -> str:
        if isinstance(value, str):
            return value.strip()
        return value

    @model_validator(mode="after")
    def _validate_prompt(self) -> "PluginConfig":
        if not self.prompt.strip():
            raise ValueError("prompt is required: set PLUGIN_PROMPT")
        return self

    @property
    def api_key_value(self) -> str:
        return self.api_key.get_secret_value()

    @property
    def gcp_credentials_value(self) -> str:
        return self.gcp_credentials.get_secret_value()

    def auth_mode(self) -> AuthMode:
        """Authentication mode, always derived from the credential fields."""
        return detect_auth_mode(
            api_key=self.api_key_value,
            gcp_project=self.gcp_project,
            gcp_credentials=self.gcp_credentials_value,
        )


def load_config() -> PluginConfig:
    """Load PluginConfig from the environment, raising ConfigError on invalid settings."""
    try:
        return PluginConfig()
    except ValidationError as exc:
        messages = []
        for err in exc.errors():
            loc = ".".join(str(part) for part in err.get("loc", ()))
            msg = str(err.get("msg", "invalid value")).removeprefix("Value error, ")
            messages.append(f"{loc}: {msg}" if loc else msg)
        raise ConfigError("; ".join(messages) or str(exc)) from exc
