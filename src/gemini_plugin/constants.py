from __future__ import annotations

from enum import Enum


class ExitCode(int, Enum):
    """Process exit codes."""

    SUCCESS = 0
    ERROR = 1
    CONFIG_ERROR = 2
    TIMEOUT = 124
    NOT_FOUND = 127


class Defaults:
    """Shared plugin defaults."""

    CLI_BINARY = "gemini"
    TARGET = "."
    MODEL = "gemini-2.5-pro"
    OUTPUT_FORMAT = "json"
    GCP_LOCATION = "us-central1"
    TIMEOUT_S = 300
    VERSION_PROBE_TIMEOUT_S = 30
    KILL_GRACE_S = 5


class EnvVars:
    """Environment variables understood by the gemini CLI."""

    GEMINI_API_KEY = "GEMINI_API_KEY"
    GOOGLE_API_KEY = "GOOGLE_API_KEY"
    USE_VERTEXAI = "GOOGLE_GENAI_USE_VERTEXAI"
    CLOUD_PROJECT = "GOOGLE_CLOUD_PROJECT"
    CLOUD_LOCATION = "GOOGLE_CLOUD_LOCATION"
    APPLICATION_CREDENTIALS = "GOOGLE_APPLICATION_CREDENTIALS"
