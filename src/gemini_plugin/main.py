from __future__ import annotations

import asyncio
import os
import sys
import uuid

from .config import load_config
from .constants import ExitCode
from .errors import ConfigError, ExecutionFailedError, GeminiPluginError, OutputParsingError
from .logging import PluginLogger
from .plugin import Plugin
from .report import format_result

PLUGIN_VERSION = "0.1.0"


def main() -> int:
    """Main entry point."""
    return asyncio.run(async_main())


def _run_id() -> str:
    build = os.environ.get("DRONE_BUILD_NUMBER", "").strip()
    return build or str(uuid.uuid4())


def _report_partial_output(exc: GeminiPluginError) -> None:
    """Print whatever gemini CLI produced before the failure."""
    result = getattr(exc, "result", None)
    if result is None:
        return
    if result.response is not None:
        sys.stdout.write(format_result(result))
    elif isinstance(exc, OutputParsingError) and result.raw_output.strip():
        sys.stdout.write("=== Raw Output ===\n\n" + result.raw_output.rstrip() + "\n")
    sys.stdout.flush()


async def async_main() -> int:
    run_id = _run_id()
    logger = PluginLogger(run_id, step=os.environ.get("DRONE_STEP_NAME", "").strip())

    try:
        config = load_config()
    except ConfigError as exc:
        logger.error("Configuration error", error=str(exc))
        return int(exc.exit_code)

    logger.debug_enabled = config.debug
    logger.mask(config.api_key_value, config.gcp_credentials_value)
    logger.info(
        "drone-gemini-cli-plugin starting",
        version=PLUGIN_VERSION,
        model=config.model,
        output_format=config.output_format,
        auth_mode=config.auth_mode().value,
    )

    try:
        await Plugin(config, logger).run()
    except GeminiPluginError as exc:
        _report_partial_output(exc)
        fields = {"error_kind": type(exc).__name__}
        if isinstance(exc, ExecutionFailedError):
            if exc.error_type:
                fields["error_type"] = exc.error_type
            if exc.stderr:
                fields["stderr"] = exc.stderr.strip()
        logger.error(str(exc), **fields)
        return int(exc.exit_code)

    return int(ExitCode.SUCCESS)


if __name__ == "__main__":
    sys.exit(main())
