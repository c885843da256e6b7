from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .config import PluginConfig


def build_args(config: "PluginConfig") -> list[str]:
    """
    Build gemini CLI arguments from the plugin config.

    Flag order is fixed; empty or false settings emit nothing.
    """
    args = ["--prompt", config.prompt]

    if config.output_format:
        args += ["--output-format", config.output_format]

    if config.model:
        args += ["--model", config.model]

    if config.yolo:
        args.append("--yolo")

    if config.approval_mode:
        args += ["--approval-mode", config.approval_mode]

    if config.include_dirs:
        args += ["--include-directories", config.include_dirs]

    if config.debug:
        args.append("--debug")

    return args
