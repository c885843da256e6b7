from __future__ import annotations

from typing import Optional

from .config import PluginConfig
from .formatting import format_count, format_ms, format_usd, truncate
from .models import AuthMode, CLIStats, ExecutionResult
from .pricing import estimate_cost, estimate_total_cost

RULE = "=" * 64
THIN_RULE = "-" * 64


def _auth_label(config: PluginConfig) -> str:
    mode = config.auth_mode()
    if mode == AuthMode.API_KEY:
        return "Gemini API Key (Google AI Studio)"
    if mode == AuthMode.VERTEX_AI:
        return f"Vertex AI (Project: {config.gcp_project}, Location: {config.gcp_location})"
    return "None (using existing credentials)"


def format_config_summary(config: PluginConfig) -> str:
    lines = [
        "--- Configuration ---",
        f"Target: {config.target}",
        f"Model: {config.model}",
        f"Prompt: {truncate(config.prompt, 100)}",
        f"Output Format: {config.output_format}",
        f"Timeout: {config.timeout}s",
        f"Auth: {_auth_label(config)}",
    ]
    if config.yolo:
        lines.append("YOLO Mode: enabled")
    if config.approval_mode:
        lines.append(f"Approval Mode: {config.approval_mode}")
    if config.include_dirs:
        lines.append(f"Include Dirs: {config.include_dirs}")
    if config.git_diff:
        lines.append("Git Diff: enabled")
    if config.debug:
        lines.append("Debug: enabled")
    return "\n".join(lines) + "\n"


def format_stats(stats: Optional[CLIStats]) -> str:
    """Render CLI statistics as a plain-text report."""
    if stats is None:
        return ""

    md = ["", RULE, "Execution Statistics", RULE]

    if stats.models:
        md.append("Models:")
        total_input = 0
        total_output = 0
        total_thoughts = 0
        total_cost = 0.0
        for name, model_stats in stats.models.items():
            api = model_stats.api
            tokens = model_stats.tokens
            md.append(f"  {name}")
            md.append(
                f"    Requests: {format_count(api.total_requests)}, "
                f"Errors: {format_count(api.total_errors)}, "
                f"Latency: {format_ms(api.total_latency_ms)}"
            )
            md.append(
                f"    Input: {format_count(tokens.prompt)}, "
                f"Output: {format_count(tokens.candidates)}, "
                f"Cached: {format_count(tokens.cached)}"
            )
            if tokens.thoughts > 0:
                md.append(f"    Thought tokens: {format_count(tokens.thoughts)}")
            total_input += tokens.prompt
            total_output += tokens.candidates
            total_thoughts += tokens.thoughts
            total_cost += estimate_cost(name, tokens)

        md.append(THIN_RULE)
        md.append(f"Total input tokens: {format_count(total_input)}")
        md.append(f"Total output tokens: {format_count(total_output)}")
        if total_thoughts > 0:
            md.append(f"Total thought tokens: {format_count(total_thoughts)}")
        md.append(f"Estimated cost: {format_usd(total_cost)}")

    tools = stats.tools
    if tools.total_calls > 0:
        md.append(THIN_RULE)
        md.append("Tool calls:")
        md.append(
            f"  Total: {tools.total_calls}, Success: {tools.total_success}, Fail: {tools.total_fail}"
        )
        md.append(f"  Duration: {format_ms(tools.total_duration_ms)}")
        decisions = tools.total_decisions
        if decisions.accept or decisions.reject or decisions.modify or decisions.auto_accept:
            md.append(
                f"  Decisions: accept={decisions.accept}, reject={decisions.reject}, "
                f"modify={decisions.modify}, auto_accept={decisions.auto_accept}"
            )
        for tool_name, detail in tools.by_name.items():
            md.append(
                f"  - {tool_name}: {detail.count}x ({format_ms(detail.duration_ms)})"
            )

    files = stats.files
    if files.total_lines_added > 0 or files.total_lines_removed > 0:
        md.append(THIN_RULE)
        md.append("Files:")
        md.append(f"  +{files.total_lines_added} lines added, -{files.total_lines_removed} lines removed")

    md.append(RULE)
    return "\n".join(md) + "\n"


def format_stats_simple(stats: Optional[CLIStats]) -> str:
    """One-line usage summary."""
    if stats is None:
        return "No stats available"

    total_tokens = sum(m.tokens.total for m in stats.models.values())
    return (
        f"Tokens: {total_tokens}, Tools: {stats.tools.total_calls}, "
        f"Cost: ${estimate_total_cost(stats):.4f}"
    )


def format_result(result: Optional[ExecutionResult]) -> str:
    if result is None or result.response is None:
        return "No response received\n"

    md = ["=== AI Response ===", "", result.response.response]
    if result.response.stats is not None:
        md.append(format_stats(result.response.stats))
    if result.exit_code != 0:
        md.append(f"Exit Code: {result.exit_code}")
    return "\n".join(md) + "\n"
