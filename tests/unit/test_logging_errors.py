from __future__ import annotations

import json

import pytest

from gemini_plugin.constants import ExitCode
from gemini_plugin.errors import (
    ConfigError,
    ExecutionFailedError,
    ExecutionTimeoutError,
    GeminiPluginError,
    OutputParsingError,
    ToolNotFoundError,
)
from gemini_plugin.logging import PluginLogger


def test_logger_emits_json(capsys) -> None:
    logger = PluginLogger("run-1")
    logger.info("hello", detail="world")
    captured = capsys.readouterr()

    payload = json.loads(captured.err.strip().splitlines()[0])
    assert payload["run_id"] == "run-1"
    assert payload["level"] == "info"
    assert payload["message"] == "hello"
    assert payload["detail"] == "world"
    assert captured.out == ""


def test_logger_debug_is_gated(capsys) -> None:
    PluginLogger("run-2").debug("hidden")
    assert capsys.readouterr().err == ""

    PluginLogger("run-2", debug=True).debug("shown")
    payload = json.loads(capsys.readouterr().err.strip())
    assert payload["level"] == "debug"
    assert payload["message"] == "shown"


def test_logger_redacts_sensitive_keys(capsys) -> None:
    logger = PluginLogger("run-3")
    logger.info("secret", api_key="AIza-test", gcp_credentials="{...}", model="gemini-2.5-pro")
    payload = json.loads(capsys.readouterr().err.strip().splitlines()[0])

    assert payload["api_key"] == "***"
    assert payload["gcp_credentials"] == "***"
    assert payload["model"] == "gemini-2.5-pro"


def test_logger_masks_registered_values(capsys) -> None:
    logger = PluginLogger("run-5", step="review")
    logger.mask("AIza-secret", "")
    logger.error(
        "gemini CLI execution failed: bad key AIza-secret",
        stderr="invalid API key: AIza-secret",
        args=["--prompt", "AIza-secret please"],
        exit_code=1,
    )
    payload = json.loads(capsys.readouterr().err.strip())

    assert payload["step"] == "review"
    assert payload["message"] == "gemini CLI execution failed: bad key ***"
    assert payload["stderr"] == "invalid API key: ***"
    assert payload["args"] == ["--prompt", "*** please"]
    assert payload["exit_code"] == 1


def test_stage_logs_error_and_reraises(capsys) -> None:
    logger = PluginLogger("run-4")

    with pytest.raises(ValueError):
        with logger.stage("execute"):
            raise ValueError("boom")

    payloads = [json.loads(line) for line in capsys.readouterr().err.strip().splitlines()]
    assert payloads[0]["message"] == "stage_error"
    assert payloads[0]["error"] == "boom"
    assert payloads[-1]["message"] == "stage_end"
    assert payloads[-1]["status"] == "error"


def test_error_exit_codes() -> None:
    assert ConfigError("x").exit_code == ExitCode.CONFIG_ERROR
    assert ToolNotFoundError().exit_code == ExitCode.NOT_FOUND
    assert ExecutionTimeoutError(300).exit_code == ExitCode.TIMEOUT
    assert ExecutionFailedError("x").exit_code == ExitCode.ERROR
    assert OutputParsingError("x").exit_code == ExitCode.ERROR


def test_errors_share_base_and_carry_context() -> None:
    exc = ExecutionFailedError("AuthError - bad key", error_type="AuthError", error_message="bad key")
    assert isinstance(exc, GeminiPluginError)
    assert str(exc) == "gemini CLI execution failed: AuthError - bad key"
    assert exc.error_type == "AuthError"
    assert exc.result is None

    assert str(ExecutionTimeoutError(300)) == "gemini CLI execution timed out after 300s"
    assert OutputParsingError("empty output").detail == "empty output"
