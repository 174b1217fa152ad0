from __future__ import annotations

from pydantic import Field

from core.settings.base_settings import CartPilotBaseSettings


class RedisSettings(CartPilotBaseSettings):
    """
    Redis request/reply transport to the page agent.
    Loaded from .env with exact variable name matching.
    """

    url: str = Field(default="redis://localhost:6379/0", alias="CARTPILOT_REDIS_URL")
    request_stream_prefix: str = Field(default="cartpilot:agent:requests", alias="CARTPILOT_REDIS_REQUEST_STREAM_PREFIX")
    reply_key_prefix: str = Field(default="cartpilot:agent:replies", alias="CARTPILOT_REDIS_REPLY_KEY_PREFIX")
    stream_maxlen: int = Field(default=1000, ge=1, alias="CARTPILOT_REDIS_STREAM_MAXLEN")
    reply_ttl_seconds: int = Field(default=60, ge=1, alias="CARTPILOT_REDIS_REPLY_TTL_SECONDS")
