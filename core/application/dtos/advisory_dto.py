"""Advisory (LLM) service DTOs."""

from typing import List, Literal, Optional

from pydantic import BaseModel, Field

DEFAULT_ADVISORY_MODEL = "claude-sonnet-4-20250514"

SUBSTITUTION_SYSTEM_PROMPT = (
    "You are an assistant helping with grocery shopping. "
    "When an item is unavailable, explain briefly why the proposed substitute "
    "is a reasonable replacement. Be concise and focus on practical factors: "
    "price, brand, nutritional similarity."
)


class AdvisoryMessage(BaseModel):
    """One conversation turn."""

    role: Literal["user", "assistant"]
    content: str

    model_config = {"frozen": True}


class AdvisoryOptions(BaseModel):
    """Completion options. Unset fields fall back to the service defaults."""

    model: Optional[str] = None
    max_tokens: int = Field(default=1024, gt=0)
    system_prompt: Optional[str] = None
    temperature: float = Field(default=0.3, ge=0, le=1)
    stop_sequences: List[str] = Field(default_factory=list)


class AdvisoryUsage(BaseModel):
    input_tokens: int = 0
    output_tokens: int = 0


class AdvisoryCompletion(BaseModel):
    """Result of a completion request."""

    content: str
    usage: AdvisoryUsage = Field(default_factory=AdvisoryUsage)
    stop_reason: Literal["end_turn", "max_tokens", "stop_sequence"] = "end_turn"
    model: str = DEFAULT_ADVISORY_MODEL
