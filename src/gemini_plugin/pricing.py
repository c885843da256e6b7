"""Cost estimation for gemini CLI token usage.

Prices are USD per 1M tokens at the short-context rate; prompts above a
model's long-context threshold are still estimated at that rate.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional

from .models import CLIStats, TokenStats


@dataclass(frozen=True)
class ModelPricing:
    name: str
    input_price: float
    output_price: float


PRICING_TABLE: Mapping[str, ModelPricing] = MappingProxyType(
    {
        # Gemini 3 (preview)
        "gemini-3-pro-preview": ModelPricing("Gemini 3 Pro", 4.00, 12.00),
        "gemini-3-flash-preview": ModelPricing("Gemini 3 Flash", 0.50, 3.00),
        # Gemini 2.5
        "gemini-2.5-pro": ModelPricing("Gemini 2.5 Pro", 1.25, 10.00),
        "gemini-2.5-flash": ModelPricing("Gemini 2.5 Flash", 0.30, 2.50),
        "gemini-2.5-flash-lite": ModelPricing("Gemini 2.5 Flash-Lite", 0.10, 0.40),
        # Gemini 2.0
        "gemini-2.0-flash": ModelPricing("Gemini 2.0 Flash", 0.15, 0.60),
        "gemini-2.0-flash-exp": ModelPricing("Gemini 2.0 Flash (Exp)", 0.15, 0.60),
        "gemini-2.0-flash-lite": ModelPricing("Gemini 2.0 Flash-Lite", 0.075, 0.30),
        # Gemini 1.5 (legacy)
        "gemini-1.5-pro": ModelPricing("Gemini 1.5 Pro", 1.25, 5.00),
        "gemini-1.5-flash": ModelPricing("Gemini 1.5 Flash", 0.075, 0.30),
    }
)

DEFAULT_PRICING = ModelPricing("Unknown model", 1.00, 5.00)


def lookup_pricing(
    model: str, table: Mapping[str, ModelPricing] = PRICING_TABLE
) -> ModelPricing:
    """
    Find pricing for ``model``.

    Exact match first, then the longest table key contained in the model
    name (case-insensitive), then DEFAULT_PRICING.
    """
    pricing = table.get(model)
    if pricing is not None:
        return pricing

    lowered = (model or "").lower()
    for key in sorted(table, key=len, reverse=True):
        if key.lower() in lowered:
            return table[key]

    return DEFAULT_PRICING


def estimate_cost(
    model: str,
    tokens: TokenStats,
    table: Mapping[str, ModelPricing] = PRICING_TABLE,
) -> float:
    """
    Estimate cost in USD for one model's token usage.

    Thought tokens bill at the output rate. Cached and tool tokens are not
    billed here.
    """
    pricing = lookup_pricing(model, table)
    input_cost = tokens.prompt / 1_000_000 * pricing.input_price
    output_cost = tokens.candidates / 1_000_000 * pricing.output_price
    thoughts_cost = tokens.thoughts / 1_000_000 * pricing.output_price
    return input_cost + output_cost + thoughts_cost


def estimate_total_cost(
    stats: Optional[CLIStats],
    table: Mapping[str, ModelPricing] = PRICING_TABLE,
) -> float:
    if stats is None:
        return 0.0
    return sum(
        estimate_cost(name, model_stats.tokens, table)
        for name, model_stats in stats.models.items()
    )
