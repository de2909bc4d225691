"""Per-model token pricing for AI usage metering."""

import structlog
from pydantic import BaseModel

logger = structlog.get_logger()


class ModelPricing(BaseModel):
    """USD price per single token."""

    input: float
    cached_input: float
    output: float


MODEL_PRICING: dict[str, ModelPricing] = {
    "gpt-4o-2024-08-06": ModelPricing(input=2.5e-6, cached_input=1.25e-6, output=1.0e-5),
    "gpt-4o": ModelPricing(input=2.5e-6, cached_input=1.25e-6, output=1.0e-5),
    "gpt-4o-mini": ModelPricing(input=1.5e-7, cached_input=7.5e-8, output=6.0e-7),
    "gpt-4.1": ModelPricing(input=2.0e-6, cached_input=5.0e-7, output=8.0e-6),
    "gpt-4.1-mini": ModelPricing(input=4.0e-7, cached_input=1.0e-7, output=1.6e-6),
    "gpt-4.1-nano": ModelPricing(input=1.0e-7, cached_input=2.5e-8, output=4.0e-7),
}


def calculate_cost(
    model: str,
    input_tokens: int,
    output_tokens: int,
    cached_input_tokens: int = 0,
) -> float:
    """Cost in USD of a chat completion, rounded to 5 decimals.

    Cached prompt tokens are billed at the cached rate and the remaining
    prompt tokens at the regular input rate. Unknown models cost 0.
    """
    pricing = MODEL_PRICING.get(model)
    if pricing is None:
        logger.warning("pricing_unknown_model", model=model)
        return 0.0

    regular_input = max(0, input_tokens - cached_input_tokens)
    total = (
        regular_input * pricing.input
        + cached_input_tokens * pricing.cached_input
        + output_tokens * pricing.output
    )
    return round(total, 5)
