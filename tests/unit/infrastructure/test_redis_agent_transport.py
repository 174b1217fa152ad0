"""
Unit tests for RedisAgentTransport with a mocked Redis client.
"""
import asyncio
import json

import pytest
from pydantic import ValidationError
from redis.exceptions import ConnectionError as RedisConnectionError
from unittest.mock import AsyncMock, MagicMock

from core.application.dtos import AgentAction, create_request, create_success_response
from core.infrastructure.bus import RedisAgentTransport
from core.settings import RedisSettings


@pytest.fixture
def redis_client():
    """Create a mock Redis client."""
    client = MagicMock()
    client.xadd = AsyncMock(return_value="1-0")
    client.blpop = AsyncMock()
    client.delete = AsyncMock(return_value=1)
    client.aclose = AsyncMock()
    return client


@pytest.fixture
def transport(redis_client):
    settings = RedisSettings(
        request_stream_prefix="test:requests",
        reply_key_prefix="test:replies",
        stream_maxlen=50,
        reply_ttl_seconds=10,
    )
    return RedisAgentTransport(settings=settings, reply_timeout_seconds=2.5, client=redis_client)


@pytest.mark.asyncio
async def test_send_publishes_request_and_returns_reply(transport, redis_client):
    request = create_request(AgentAction.ORDER_EXTRACT_HISTORY, {"limit": 5})
    reply = create_success_response(request.id, {"orders": []})
    redis_client.blpop.return_value = (f"test:replies:{request.id}", json.dumps(reply.to_wire()))

    response = await transport.send("tab-1", request)

    assert response.id == request.id
    assert response.success is True
    assert response.data == {"orders": []}

    stream, message = redis_client.xadd.call_args.args
    assert stream == "test:requests:tab-1"
    assert message["reply_to"] == f"test:replies:{request.id}"
    assert message["reply_ttl"] == "13"
    assert json.loads(message["request"])["action"] == "order.extractHistory"
    assert redis_client.xadd.call_args.kwargs == {"maxlen": 50}

    redis_client.blpop.assert_awaited_once_with([f"test:replies:{request.id}"], timeout=3)
    redis_client.delete.assert_not_awaited()


@pytest.mark.asyncio
async def test_missing_reply_times_out(transport, redis_client):
    redis_client.blpop.return_value = None
    request = create_request(AgentAction.LOGIN_CHECK)

    with pytest.raises(asyncio.TimeoutError):
        await transport.send("tab-1", request)

    redis_client.delete.assert_awaited_once_with(f"test:replies:{request.id}")


@pytest.mark.asyncio
async def test_cancelled_wait_discards_reply_key(transport, redis_client):
    redis_client.blpop.side_effect = asyncio.CancelledError()
    request = create_request(AgentAction.CART_SCAN)

    with pytest.raises(asyncio.CancelledError):
        await transport.send("tab-1", request)

    redis_client.delete.assert_awaited_once_with(f"test:replies:{request.id}")


@pytest.mark.asyncio
async def test_failed_discard_still_times_out(transport, redis_client):
    redis_client.blpop.return_value = None
    redis_client.delete.side_effect = RedisConnectionError("connection lost")

    with pytest.raises(asyncio.TimeoutError):
        await transport.send("tab-1", create_request(AgentAction.LOGIN_CHECK))


@pytest.mark.asyncio
async def test_redis_error_becomes_connection_error(transport, redis_client):
    redis_client.xadd.side_effect = RedisConnectionError("connection refused")

    with pytest.raises(ConnectionError):
        await transport.send("tab-1", create_request(AgentAction.LOGIN_CHECK))


@pytest.mark.asyncio
async def test_invalid_reply_is_rejected(transport, redis_client):
    redis_client.blpop.return_value = ("test:replies:x", '{"success": "nope"}')

    with pytest.raises(ValidationError):
        await transport.send("tab-1", create_request(AgentAction.LOGIN_CHECK))


@pytest.mark.asyncio
async def test_short_timeout_still_blocks_one_second(redis_client):
    transport = RedisAgentTransport(
        settings=RedisSettings(), reply_timeout_seconds=0.2, client=redis_client
    )
    redis_client.blpop.return_value = None

    with pytest.raises(asyncio.TimeoutError):
        await transport.send("tab-1", create_request(AgentAction.LOGIN_CHECK))

    assert redis_client.blpop.call_args.kwargs == {"timeout": 1}


@pytest.mark.asyncio
async def test_context_manager_closes_client(transport, redis_client):
    async with transport:
        pass

    redis_client.aclose.assert_awaited_once()


def test_key_names(transport):
    assert transport.request_stream("tab-9") == "test:requests:tab-9"
    assert transport.reply_key("msg-1") == "test:replies:msg-1"
