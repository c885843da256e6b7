"""Drone CI plugin that runs the gemini CLI and reports its output and usage."""

from .config import PluginConfig, load_config
from .errors import (
    ConfigError,
    ExecutionFailedError,
    ExecutionTimeoutError,
    GeminiPluginError,
    OutputParsingError,
    ToolNotFoundError,
)
from .models import AuthMode, CLIResponse, CLIStats, ExecutionResult, StreamEvent
from .runner import GeminiRunner, execute

__all__ = [
    "AuthMode",
    "CLIResponse",
    "CLIStats",
    "ConfigError",
    "ExecutionFailedError",
    "ExecutionResult",
    "ExecutionTimeoutError",
    "GeminiPluginError",
    "GeminiRunner",
    "OutputParsingError",
    "PluginConfig",
    "StreamEvent",
    "ToolNotFoundError",
    "execute",
    "load_config",
]
