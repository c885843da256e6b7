from __future__ import annotations


def format_count(value: int) -> str:
    """Token and request counts with thousands separators."""
    return f"{value:,}"


def format_ms(duration_ms: int) -> str:
    """Latencies as reported by gemini CLI: ms below a second, else seconds."""
    if duration_ms < 1000:
        return f"{duration_ms}ms"
    return f"{duration_ms / 1000:.1f}s"


def format_usd(cost_usd: float, precision: int = 6) -> str:
    return f"${cost_usd:.{precision}f}"


def truncate(text: str, max_len: int) -> str:
    """Shorten ``text`` to ``max_len`` chars; multi-line text is cut at the first newline."""
    if not text or max_len <= 0:
        return ""
    newline = text.find("\n")
    if 0 <= newline < max_len:
        return text[:newline] + "..."
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."
