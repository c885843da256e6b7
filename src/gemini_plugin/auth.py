from __future__ import annotations

import os
import tempfile
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Iterator, Mapping, Optional, Sequence, Tuple

from .constants import EnvVars
from .logging import PluginLogger, null_logger
from .models import AuthMode

if TYPE_CHECKING:
    from .config import PluginConfig

EnvOverride = Tuple[str, str]


def detect_auth_mode(*, api_key: str, gcp_project: str, gcp_credentials: str) -> AuthMode:
    """
    Pick the authentication mode from the credential fields.

    - api_key + gcp_project         -> Vertex AI (Google API key)
    - gcp_credentials + gcp_project -> Vertex AI (service account)
    - api_key alone                 -> Gemini API key (Google AI Studio)
    - otherwise                     -> none; gemini CLI uses ambient credentials
    """
    if api_key and gcp_project:
        return AuthMode.VERTEX_AI
    if gcp_credentials and gcp_project:
        return AuthMode.VERTEX_AI
    if api_key:
        return AuthMode.API_KEY
    return AuthMode.NONE


def looks_like_inline_json(value: str) -> bool:
    """True when credentials look like service account JSON content rather than a path."""
    return (value or "").strip().startswith("{")


@dataclass(frozen=True)
class AuthResolution:
    mode: AuthMode
    overrides: Tuple[EnvOverride, ...] = ()
    temp_files: Tuple[Path, ...] = field(default=(), repr=False)

    def cleanup(self) -> None:
        for path in self.temp_files:
            try:
                path.unlink(missing_ok=True)
            except OSError:
                pass


def _write_credentials_file(content: str) -> Path:
    fd, path_str = tempfile.mkstemp(prefix="gcp-credentials-", suffix=".json")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(content)
    except OSError:
        Path(path_str).unlink(missing_ok=True)
        raise
    return Path(path_str).resolve()


def _credentials_path(
    credentials: str, logger: PluginLogger
) -> Tuple[str, Optional[Path]]:
    """Return (absolute path for GOOGLE_APPLICATION_CREDENTIALS, temp file to delete later)."""
    temp_file: Optional[Path] = None
    cred_path = credentials
    if looks_like_inline_json(credentials):
        try:
            temp_file = _write_credentials_file(credentials)
            cred_path = str(temp_file)
            logger.debug("Wrote inline credentials to temp file", path=cred_path)
        except OSError as exc:
            # Hand the content through unchanged; gemini CLI reports the bad path.
            logger.warning("Failed to write credentials temp file", error=str(exc))
    if not os.path.isabs(cred_path):
        cred_path = os.path.abspath(cred_path)
    return cred_path, temp_file


def resolve_auth(config: "PluginConfig", logger: Optional[PluginLogger] = None) -> AuthResolution:
    """
    Resolve the auth mode and the environment overrides for gemini CLI.

    Never raises. The only side effect is materializing inline service
    account JSON to a temp file; callers must call ``cleanup()`` (or use
    ``auth_environment``).
    """
    logger = logger or null_logger()
    api_key = config.api_key_value
    credentials = config.gcp_credentials_value
    mode = config.auth_mode()

    overrides: list[EnvOverride] = []
    temp_files: list[Path] = []

    if mode == AuthMode.API_KEY:
        overrides.append((EnvVars.GEMINI_API_KEY, api_key))
        logger.debug("Using Gemini API key authentication (Google AI Studio)")

    elif mode == AuthMode.VERTEX_AI:
        overrides.append((EnvVars.USE_VERTEXAI, "true"))
        overrides.append((EnvVars.CLOUD_PROJECT, config.gcp_project))
        if config.gcp_location:
            overrides.append((EnvVars.CLOUD_LOCATION, config.gcp_location))
        if api_key:
            overrides.append((EnvVars.GOOGLE_API_KEY, api_key))
            logger.debug("Using Vertex AI with Google API key", project=config.gcp_project)
        if credentials:
            cred_path, temp_file = _credentials_path(credentials, logger)
            if temp_file is not None:
                temp_files.append(temp_file)
            overrides.append((EnvVars.APPLICATION_CREDENTIALS, cred_path))
            logger.debug("Using Vertex AI with service account", project=config.gcp_project)

    else:
        logger.debug("No authentication configured, relying on existing credentials")

    return AuthResolution(mode=mode, overrides=tuple(overrides), temp_files=tuple(temp_files))


@contextmanager
def auth_environment(
    config: "PluginConfig", logger: Optional[PluginLogger] = None
) -> Iterator[AuthResolution]:
    """Resolve auth for the duration of one invocation; temp files are removed on exit."""
    resolution = resolve_auth(config, logger)
    try:
        yield resolution
    finally:
        resolution.cleanup()


def build_child_env(
    base: Mapping[str, str], overrides: Sequence[EnvOverride]
) -> dict[str, str]:
    """Snapshot ``base`` and apply ``overrides`` in order; ``base`` is not modified."""
    env = dict(base)
    for key, value in overrides:
        env[key] = value
    return env
