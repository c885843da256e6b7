from __future__ import annotations

import asyncio
import os
import shutil
import signal
import time
from pathlib import Path
from typing import Mapping, Optional, Sequence

from .args import build_args
from .auth import auth_environment, build_child_env
from .config import PluginConfig
from .constants import Defaults
from .errors import (
    ExecutionFailedError,
    ExecutionTimeoutError,
    OutputParsingError,
    ToolNotFoundError,
)
from .formatting import truncate
from .logging import PluginLogger, null_logger
from .models import ExecutionResult, ProcessOutput
from .output_parser import OutputParser


def _decode(data: Optional[bytes]) -> str:
    return (data or b"").decode("utf-8", errors="replace")


def resolve_cli_bin(working_dir: Path, name: str = Defaults.CLI_BINARY) -> Optional[str]:
    path = shutil.which(name)
    if path:
        return path

    # Allow local installs in the repo (e.g. npm i -D @google/gemini-cli).
    candidates = [
        working_dir / "node_modules" / ".bin" / name,
        working_dir / "node_modules" / ".bin" / f"{name}.cmd",
    ]
    for cand in candidates:
        if cand.exists():
            return str(cand)
    return None


async def _kill_process_tree(proc: asyncio.subprocess.Process) -> None:
    """Kill the child and its process group (it runs in its own session)."""
    pid = getattr(proc, "pid", None)
    if pid and hasattr(os, "killpg"):
        try:
            os.killpg(pid, signal.SIGKILL)
        except (ProcessLookupError, PermissionError):
            pass
    try:
        proc.kill()
    except ProcessLookupError:
        pass
    try:
        await asyncio.wait_for(proc.wait(), timeout=Defaults.KILL_GRACE_S)
    except TimeoutError:
        pass


async def execute(
    argv: Sequence[str],
    env: Mapping[str, str],
    working_dir: Path,
    stdin_payload: str = "",
    timeout_s: float = Defaults.TIMEOUT_S,
) -> ProcessOutput:
    """
    Run ``argv`` to completion with a hard deadline, buffering stdout/stderr.

    A non-zero exit with non-empty stdout is returned (stdout may carry an
    in-band error record); a non-zero exit with empty stdout raises
    ExecutionFailedError.
    """
    start = time.monotonic()
    try:
        proc = await asyncio.create_subprocess_exec(
            *argv,
            cwd=str(working_dir),
            env=dict(env),
            stdin=asyncio.subprocess.PIPE if stdin_payload else asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            start_new_session=True,
        )
    except OSError as exc:
        # Missing, not executable, or otherwise unspawnable.
        raise ToolNotFoundError(f"gemini CLI could not be started: {exc}") from exc

    try:
        stdout_b, stderr_b = await asyncio.wait_for(
            proc.communicate(input=stdin_payload.encode("utf-8") if stdin_payload else None),
            timeout=float(timeout_s),
        )
    except TimeoutError:
        await _kill_process_tree(proc)
        raise ExecutionTimeoutError(timeout_s) from None

    output = ProcessOutput(
        exit_code=int(proc.returncode or 0),
        stdout=_decode(stdout_b),
        stderr=_decode(stderr_b),
        duration_ms=int((time.monotonic() - start) * 1000),
    )

    if output.exit_code != 0 and not output.stdout:
        raise ExecutionFailedError(
            f"exit code {output.exit_code} (stderr: {output.stderr.strip()})",
            stderr=output.stderr,
        )
    return output


class GeminiRunner:
    """Run gemini CLI for one plugin invocation and parse its output."""

    def __init__(self, config: PluginConfig, logger: Optional[PluginLogger] = None) -> None:
        self.config = config
        self.logger = logger or null_logger()
        self.working_dir = Path(config.target).resolve()
        self._cli_bin: Optional[str] = None

    async def check_cli(self) -> str:
        """Verify gemini CLI answers `--version`; returns the resolved binary."""
        cli_bin = resolve_cli_bin(self.working_dir)
        if not cli_bin:
            raise ToolNotFoundError()

        try:
            proc = await asyncio.create_subprocess_exec(
                cli_bin,
                "--version",
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            raise ToolNotFoundError() from exc

        try:
            stdout_b, _ = await asyncio.wait_for(
                proc.communicate(), timeout=Defaults.VERSION_PROBE_TIMEOUT_S
            )
        except TimeoutError:
            await _kill_process_tree(proc)
            raise ToolNotFoundError("gemini CLI did not answer --version") from None

        if proc.returncode != 0:
            raise ToolNotFoundError()

        self.logger.debug("gemini CLI found", path=cli_bin, version=_decode(stdout_b).strip())
        self._cli_bin = cli_bin
        return cli_bin

    async def run(self, stdin_input: str = "") -> ExecutionResult:
        cli_bin = self._cli_bin or await self.check_cli()
        if not self.working_dir.is_dir():
            raise ExecutionFailedError(f"working directory not found: {self.working_dir}")

        args = build_args(self.config)
        self.logger.debug(
            "Executing gemini CLI",
            args=[truncate(a, 100) for a in args],
            cwd=str(self.working_dir),
            stdin_bytes=len(stdin_input.encode("utf-8")),
        )

        with auth_environment(self.config, self.logger) as auth:
            env = build_child_env(os.environ, auth.overrides)
            self.logger.debug("Environment variables set for authentication", auth_mode=auth.mode.value)
            output = await execute(
                [cli_bin, *args],
                env,
                self.working_dir,
                stdin_payload=stdin_input,
                timeout_s=self.config.timeout,
            )

        if output.exit_code != 0:
            self.logger.debug(
                "gemini CLI exited non-zero; parsing stdout",
                exit_code=output.exit_code,
                stderr=truncate(output.stderr, 2000),
            )

        result = ExecutionResult(
            raw_output=output.stdout,
            response=None,
            exit_code=output.exit_code,
            stderr=output.stderr,
            duration_ms=output.duration_ms,
        )

        parser = OutputParser(debug=self.config.debug, logger=self.logger)
        try:
            result.response = parser.parse(self.config.output_format, output.stdout)
        except OutputParsingError as exc:
            exc.result = result
            raise

        error = result.response.error if result.response is not None else None
        if error is not None:
            raise ExecutionFailedError(
                f"{error.type} - {error.message}",
                stderr=output.stderr,
                error_type=error.type,
                error_message=error.message,
                result=result,
            )

        return result
