from __future__ import annotations

from typing import List, Optional, Tuple

from pydantic import ValidationError

from .errors import OutputParsingError
from .logging import PluginLogger, null_logger
from .models import CLIResponse, OutputFormat, StreamEvent


class OutputParser:
    """Parse gemini CLI stdout into a CLIResponse."""

    def __init__(self, debug: bool = False, logger: Optional[PluginLogger] = None) -> None:
        self.debug = debug
        self.logger = logger or null_logger()

    def parse(self, output_format: OutputFormat, output: str) -> Optional[CLIResponse]:
        """Parse ``output`` with the one parser selected by ``output_format``."""
        if output_format == "json":
            return self.parse_json(output)
        if output_format == "stream-json":
            _, response = self.parse_stream_json(output)
            return response
        return self.parse_text(output)

    def parse_text(self, output: str) -> CLIResponse:
        return CLIResponse(response=(output or "").strip())

    def parse_json(self, output: str) -> CLIResponse:
        """
        Parse `--output-format json` output: a single document.

        Raises OutputParsingError on empty output or anything that is not a
        response object.
        """
        content = (output or "").strip()
        if not content:
            raise OutputParsingError("empty output")

        try:
            return CLIResponse.model_validate_json(content)
        except ValidationError as exc:
            if self.debug:
                self.logger.debug(
                    "Failed to parse JSON output",
                    error=str(exc),
                    raw_output=content[:2000],
                )
            raise OutputParsingError(_describe(exc)) from exc

    def parse_stream_json(self, output: str) -> Tuple[List[StreamEvent], Optional[CLIResponse]]:
        """
        Parse `--output-format stream-json` output (JSONL).

        Malformed lines are skipped. A `result` event supplies the stats and
        the last non-delta assistant `message` supplies the text. Returns
        (events, response); response is None when neither appears.
        """
        events: List[StreamEvent] = []
        final: Optional[CLIResponse] = None

        for i, line in enumerate((output or "").splitlines()):
            ln = line.strip()
            if not ln:
                continue
            try:
                event = StreamEvent.model_validate_json(ln)
            except ValidationError as exc:
                if self.debug:
                    self.logger.debug(
                        "Skipping unparseable stream event",
                        line=i + 1,
                        error=_describe(exc),
                    )
                continue

            events.append(event)

            if event.type == "result":
                if final is None:
                    final = CLIResponse(stats=event.stats)
                else:
                    final.stats = event.stats

            if event.type == "message" and event.role == "assistant" and not event.delta:
                if final is None:
                    final = CLIResponse()
                final.response = event.content or ""

        return events, final


def _describe(exc: ValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return str(exc)
    first = errors[0]
    loc = ".".join(str(part) for part in first.get("loc", ()))
    msg = first.get("msg", "invalid value")
    return f"{loc}: {msg}" if loc else msg
