from __future__ import annotations

from typing import Optional

from pydantic import Field

from core.settings.base_settings import CartPilotBaseSettings


class AdvisorySettings(CartPilotBaseSettings):
    """
    LLM advisory (Anthropic Messages API) settings.
    Loaded from .env with exact variable name matching.
    """

    api_key: Optional[str] = Field(default=None, alias="ANTHROPIC_API_KEY")
    model: str = Field(default="claude-sonnet-4-20250514", alias="CARTPILOT_ADVISORY_MODEL")
    enabled: bool = Field(default=True, alias="CARTPILOT_ADVISORY_ENABLED")
    timeout_seconds: float = Field(default=20.0, gt=0, alias="CARTPILOT_ADVISORY_TIMEOUT")
    api_url: str = Field(default="https://api.anthropic.com/v1/messages", alias="CARTPILOT_ADVISORY_API_URL")
    api_version: str = Field(default="2023-06-01", alias="CARTPILOT_ADVISORY_API_VERSION")
