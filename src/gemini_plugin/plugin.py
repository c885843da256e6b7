from __future__ import annotations

import sys
from typing import Optional

from .config import PluginConfig
from .errors import GitContextError
from .git_context import build_git_context
from .logging import PluginLogger, null_logger
from .models import ExecutionResult
from .report import format_config_summary, format_result
from .runner import GeminiRunner


class Plugin:
    """One Drone step: run gemini CLI with the configured prompt and print the result."""

    def __init__(self, config: PluginConfig, logger: Optional[PluginLogger] = None) -> None:
        self.config = config
        self.logger = logger or null_logger()
        self.runner = GeminiRunner(config, self.logger)

    async def run(self) -> ExecutionResult:
        _write(format_config_summary(self.config))

        with self.logger.stage("preflight"):
            await self.runner.check_cli()

        stdin_input = self.build_stdin()

        _write("Executing gemini CLI...\n\n")
        with self.logger.stage("execute"):
            result = await self.runner.run(stdin_input)

        _write(format_result(result))
        return result

    def build_stdin(self) -> str:
        """Configured stdin input, with git context appended when git_diff is on."""
        stdin_input = self.config.stdin_input
        if not self.config.git_diff:
            return stdin_input

        try:
            git_context = build_git_context(
                self.config.target, self.config.git_commit_sha, self.logger
            )
        except GitContextError as exc:
            self.logger.warning("Failed to build git context", error=str(exc))
            return stdin_input

        if stdin_input:
            return f"{stdin_input}\n\n{git_context}"
        return git_context


def _write(text: str) -> None:
    sys.stdout.write(text)
    sys.stdout.flush()
