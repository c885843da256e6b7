from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

OutputFormat = Literal["text", "json", "stream-json"]
StreamEventType = Literal["init", "message", "tool_use", "tool_result", "error", "result"]


class AuthMode(str, Enum):
    NONE = "none"
    API_KEY = "api_key"
    VERTEX_AI = "vertex_ai"


class _WireModel(BaseModel):
    """Base for records emitted by the gemini CLI (camelCase keys, unknown keys ignored)."""

    model_config = ConfigDict(
        populate_by_name=True,
        extra="ignore",
        protected_namespaces=(),
    )

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        # JSON null means "not reported": fall back to the field default.
        if isinstance(data, dict):
            return {key: value for key, value in data.items() if value is not None}
        return data


class APIStats(_WireModel):
    total_requests: int = Field(default=0, alias="totalRequests")
    total_errors: int = Field(default=0, alias="totalErrors")
    total_latency_ms: int = Field(default=0, alias="totalLatencyMs")


class TokenStats(_WireModel):
    prompt: int = 0
    candidates: int = 0
    total: int = 0
    cached: int = 0
    thoughts: int = 0
    tool: int = 0


class ModelStats(_WireModel):
    api: APIStats = Field(default_factory=APIStats)
    tokens: TokenStats = Field(default_factory=TokenStats)


class ToolDecisions(_WireModel):
    accept: int = 0
    reject: int = 0
    modify: int = 0
    auto_accept: int = 0


class ToolDetail(_WireModel):
    count: int = 0
    success: int = 0
    fail: int = 0
    duration_ms: int = Field(default=0, alias="durationMs")
    decisions: ToolDecisions = Field(default_factory=ToolDecisions)


class ToolStats(_WireModel):
    total_calls: int = Field(default=0, alias="totalCalls")
    total_success: int = Field(default=0, alias="totalSuccess")
    total_fail: int = Field(default=0, alias="totalFail")
    total_duration_ms: int = Field(default=0, alias="totalDurationMs")
    total_decisions: ToolDecisions = Field(default_factory=ToolDecisions, alias="totalDecisions")
    by_name: Dict[str, ToolDetail] = Field(default_factory=dict, alias="byName")


class FileStats(_WireModel):
    total_lines_added: int = Field(default=0, alias="totalLinesAdded")
    total_lines_removed: int = Field(default=0, alias="totalLinesRemoved")


class CLIStats(_WireModel):
    """Usage statistics reported by the gemini CLI."""

    models: Dict[str, ModelStats] = Field(default_factory=dict)
    tools: ToolStats = Field(default_factory=ToolStats)
    files: FileStats = Field(default_factory=FileStats)


class CLIError(_WireModel):
    type: str = ""
    message: str = ""
    code: int = 0


class CLIResponse(_WireModel):
    """Logical result of one gemini CLI invocation, whatever the output format."""

    response: str = ""
    stats: Optional[CLIStats] = None
    error: Optional[CLIError] = None


class StreamEvent(_WireModel):
    """One line of `--output-format stream-json` output."""

    type: str = ""
    timestamp: str = ""

    # init
    session_id: Optional[str] = None
    model: Optional[str] = None

    # message
    role: Optional[str] = None
    content: Optional[str] = None
    delta: bool = False

    # tool_use
    tool_name: Optional[str] = None
    tool_id: Optional[str] = None
    parameters: Optional[Dict[str, Any]] = None

    # tool_result
    status: Optional[str] = None
    output: Optional[str] = None

    # result
    stats: Optional[CLIStats] = None


@dataclass(frozen=True)
class ProcessOutput:
    """Captured outcome of one subprocess run."""

    exit_code: int
    stdout: str
    stderr: str
    duration_ms: int


@dataclass
class ExecutionResult:
    raw_output: str
    response: Optional[CLIResponse]
    exit_code: int = 0
    stderr: str = ""
    duration_ms: int = 0
