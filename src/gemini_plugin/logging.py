from __future__ import annotations

import json
import sys
import time
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, List

SENSITIVE_KEY_PARTS = ("token", "secret", "password", "api_key", "apikey", "credentials")
MASK = "***"


class PluginLogger:
    """
    Structured JSON logger for the Drone build log.

    One object per line on stderr so stdout stays reserved for the AI
    response. Fields whose key looks sensitive are replaced with ``***``, and
    any value registered with ``mask()`` is scrubbed from every string field
    (gemini CLI may echo credentials back in its stderr).
    """

    def __init__(self, run_id: str, *, debug: bool = False, step: str = ""):
        self.run_id = run_id
        self.step = step
        self.debug_enabled = debug
        self._masked: List[str] = []

    def mask(self, *values: str) -> None:
        for value in values:
            if value and value not in self._masked:
                self._masked.append(value)
        # Longest first so a secret containing another is fully hidden.
        self._masked.sort(key=len, reverse=True)

    def debug(self, message: str, **kwargs: Any) -> None:
        if self.debug_enabled:
            self._emit("debug", message, **kwargs)

    def info(self, message: str, **kwargs: Any) -> None:
        self._emit("info", message, **kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        self._emit("warning", message, **kwargs)

    def error(self, message: str, **kwargs: Any) -> None:
        self._emit("error", message, **kwargs)

    @contextmanager
    def stage(self, name: str) -> Iterator[None]:
        """Log the duration and outcome of one plugin stage."""
        start = time.monotonic()
        self.debug("stage_start", stage=name)
        status = "ok"
        try:
            yield
        except Exception as exc:
            status = "error"
            self.error("stage_error", stage=name, error=str(exc))
            raise
        finally:
            duration_ms = int((time.monotonic() - start) * 1000)
            self.info("stage_end", stage=name, duration_ms=duration_ms, status=status)

    def _emit(self, level: str, message: str, **kwargs: Any) -> None:
        payload: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": level,
            "run_id": self.run_id,
        }
        if self.step:
            payload["step"] = self.step
        payload["message"] = self._scrub(message)
        for key, value in kwargs.items():
            payload[key] = MASK if _is_sensitive_key(key) else self._scrub(value)

        sys.stderr.write(json.dumps(payload, ensure_ascii=False, default=str) + "\n")
        sys.stderr.flush()

    def _scrub(self, value: Any) -> Any:
        if isinstance(value, str):
            for secret in self._masked:
                value = value.replace(secret, MASK)
            return value
        if isinstance(value, (list, tuple)):
            return [self._scrub(item) for item in value]
        return value


def _is_sensitive_key(key: str) -> bool:
    lowered = key.lower()
    return any(part in lowered for part in SENSITIVE_KEY_PARTS)


def null_logger() -> PluginLogger:
    """Logger used when a component is constructed without one."""
    return PluginLogger("-")
