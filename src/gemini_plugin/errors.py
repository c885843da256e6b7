from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from .constants import ExitCode

if TYPE_CHECKING:
    from .models import ExecutionResult


class GeminiPluginError(Exception):
    """Base exception for all plugin errors."""

    exit_code: ExitCode = ExitCode.ERROR


class ConfigError(GeminiPluginError):
    """Configuration validation failed."""

    exit_code = ExitCode.CONFIG_ERROR


class ToolNotFoundError(GeminiPluginError):
    """gemini CLI is not installed or does not answer `--version`."""

    exit_code = ExitCode.NOT_FOUND

    def __init__(self, message: str = "gemini CLI not found: ensure gemini is installed and in PATH") -> None:
        super().__init__(message)


class ExecutionTimeoutError(GeminiPluginError):
    """gemini CLI exceeded its wall-clock deadline."""

    exit_code = ExitCode.TIMEOUT

    def __init__(self, timeout_s: float) -> None:
        super().__init__(f"gemini CLI execution timed out after {timeout_s:g}s")
        self.timeout_s = timeout_s


class ExecutionFailedError(GeminiPluginError):
    """
    gemini CLI failed.

    Either the process exited non-zero without any stdout (``stderr`` holds the
    diagnostics) or the parsed response carried an in-band error
    (``error_type``/``error_message`` are set and ``result`` holds the parsed output).
    """

    exit_code = ExitCode.ERROR

    def __init__(
        self,
        message: str,
        *,
        stderr: str = "",
        error_type: Optional[str] = None,
        error_message: Optional[str] = None,
        result: Optional["ExecutionResult"] = None,
    ) -> None:
        super().__init__(f"gemini CLI execution failed: {message}")
        self.stderr = stderr
        self.error_type = error_type
        self.error_message = error_message
        self.result = result


class OutputParsingError(GeminiPluginError):
    """gemini CLI output could not be parsed for the configured format."""

    exit_code = ExitCode.ERROR

    def __init__(self, detail: str, *, result: Optional["ExecutionResult"] = None) -> None:
        super().__init__(f"failed to parse gemini CLI output: {detail}")
        self.detail = detail
        self.result = result


class GitContextError(GeminiPluginError):
    """Git context for the prompt could not be built (non-fatal for the run)."""
