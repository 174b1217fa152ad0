"""
Redis request/reply transport to the page agent.

Requests are appended to a per-target Redis Stream. The agent pushes its
reply onto a list named after the request id, which we BLPOP.
"""
import asyncio
import json
import logging
import math
from typing import Optional

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from core.application.dtos import AgentRequest, AgentResponse
from core.application.interfaces import IAgentTransport
from core.settings.modules.redis_settings import RedisSettings


logger = logging.getLogger(__name__)


class RedisAgentTransport(IAgentTransport):
    """
    Sends agent requests over Redis.

    Stream format: <request_stream_prefix>:<target_id>
    Message format: {
        "request": str,    # AgentRequest JSON (camelCase)
        "reply_to": str,   # list key the agent LPUSHes the response JSON onto
        "reply_ttl": str,  # seconds the agent sets as EXPIRE on reply_to after pushing
    }
    """

    def __init__(
        self,
        settings: Optional[RedisSettings] = None,
        reply_timeout_seconds: float = 30.0,
        client: Optional[aioredis.Redis] = None,
    ):
        """
        Initialize transport.

        Args:
            settings: Redis settings (loaded from the environment if None)
            reply_timeout_seconds: Longest BLPOP wait for a reply
            client: Pre-built client (tests inject a mock here)
        """
        self.settings = settings or RedisSettings()
        self.reply_timeout_seconds = reply_timeout_seconds
        self._redis_client: Optional[aioredis.Redis] = client

    async def connect(self) -> None:
        """Establish Redis connection."""
        if self._redis_client is None:
            try:
                self._redis_client = aioredis.from_url(
                    self.settings.url,
                    encoding="utf-8",
                    decode_responses=True,
                )
                await self._redis_client.ping()
                logger.info(f"✅ Connected to Redis: {self.settings.url}")
            except RedisError as e:
                self._redis_client = None
                logger.error(f"Failed to connect to Redis: {e}")
                raise ConnectionError(f"Failed to connect to Redis: {e}") from e

    async def disconnect(self) -> None:
        """Close Redis connection."""
        if self._redis_client:
            await self._redis_client.aclose()
            self._redis_client = None
            logger.info("✅ Disconnected from Redis")

    def request_stream(self, target_id: str) -> str:
        return f"{self.settings.request_stream_prefix}:{target_id}"

    def reply_key(self, request_id: str) -> str:
        return f"{self.settings.reply_key_prefix}:{request_id}"

    async def send(self, target_id: str, request: AgentRequest) -> AgentResponse:
        """
        Publish ``request`` and wait for the correlated reply.

        Raises:
            ConnectionError: If Redis is unreachable
            asyncio.TimeoutError: If no reply arrives in time
            pydantic.ValidationError: If the reply is not a valid response
        """
        if self._redis_client is None:
            await self.connect()

        stream = self.request_stream(target_id)
        reply_key = self.reply_key(request.id)
        # BLPOP takes whole seconds; 0 would block forever
        block = max(1, math.ceil(self.reply_timeout_seconds))
        message = {
            "request": json.dumps(request.to_wire()),
            "reply_to": reply_key,
            # EXPIRE is a no-op before the list exists, so the agent applies it
            "reply_ttl": str(block + self.settings.reply_ttl_seconds),
        }

        try:
            await self._redis_client.xadd(stream, message, maxlen=self.settings.stream_maxlen)
            logger.debug(f"Sent {request.action.value} ({request.id}) to {stream}")

            result = await self._redis_client.blpop([reply_key], timeout=block)
        except RedisError as e:
            logger.error(f"Redis request/reply failed for {request.id}: {e}", exc_info=True)
            raise ConnectionError(f"Redis request/reply failed: {e}") from e
        except asyncio.CancelledError:
            await self._discard_reply(reply_key)
            raise

        if result is None:
            await self._discard_reply(reply_key)
            raise asyncio.TimeoutError(
                f"No reply to {request.action.value} ({request.id}) "
                f"within {self.reply_timeout_seconds}s"
            )

        _, raw = result
        return AgentResponse.model_validate_json(raw)

    async def _discard_reply(self, reply_key: str) -> None:
        """Drop a reply list nobody will read; the TTL covers a failed delete."""
        try:
            await self._redis_client.delete(reply_key)
        except RedisError as e:
            logger.warning(f"Could not delete abandoned reply key {reply_key}: {e}")

    async def __aenter__(self):
        """Async context manager entry."""
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.disconnect()
