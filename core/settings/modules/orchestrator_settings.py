from __future__ import annotations

from pydantic import Field

from core.settings.base_settings import CartPilotBaseSettings


class OrchestratorSettings(CartPilotBaseSettings):
    """
    Run orchestrator timing and sizing settings.
    Loaded from .env with exact variable name matching.
    """

    phase_timeout_seconds: float = Field(default=120.0, gt=0, alias="CARTPILOT_PHASE_TIMEOUT_SECONDS")
    operation_timeout_seconds: float = Field(default=30.0, gt=0, alias="CARTPILOT_OPERATION_TIMEOUT_SECONDS")
    max_retries: int = Field(default=3, ge=1, alias="CARTPILOT_MAX_RETRIES")
    history_limit: int = Field(default=10, ge=1, alias="CARTPILOT_HISTORY_LIMIT")
    merge_order_count: int = Field(default=3, ge=1, alias="CARTPILOT_MERGE_ORDER_COUNT")
    search_max_results: int = Field(default=10, ge=1, alias="CARTPILOT_SEARCH_MAX_RESULTS")
    reorder_settle_seconds: float = Field(default=1.5, ge=0, alias="CARTPILOT_REORDER_SETTLE_SECONDS")
    reorder_retry_delay_seconds: float = Field(default=2.0, ge=0, alias="CARTPILOT_REORDER_RETRY_DELAY_SECONDS")
    staleness_seconds: float = Field(default=30.0, gt=0, alias="CARTPILOT_STALENESS_SECONDS")
