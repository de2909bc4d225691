"""Records returned alongside AI capability calls."""

from pydantic import BaseModel, Field


class AIUsage(BaseModel):
    """Token and cost telemetry for one AI call."""

    model: str
    input_tokens: int = 0
    cached_input_tokens: int = 0
    output_tokens: int = 0
    total_tokens: int = 0
    cost_usd: float = 0.0


class SampleDescription(BaseModel):
    """An AI-written example description that uses every key word."""

    description: str = Field(min_length=1)
    key_words_used: list[str] = Field(default_factory=list)
    usage: AIUsage | None = None
