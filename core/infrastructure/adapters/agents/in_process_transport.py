"""
In-process agent transport.

Routes requests to async handlers registered per target. Used by the demo
and tests in place of a real page agent.
"""
import logging
from typing import Dict

from core.application.dtos import AgentRequest, AgentResponse
from core.application.interfaces import AsyncHandler, IAgentTransport


logger = logging.getLogger(__name__)


class InProcessAgentTransport(IAgentTransport):
    """Handler registry implementation of ``IAgentTransport``."""

    def __init__(self):
        self._handlers: Dict[str, AsyncHandler] = {}
        self.sent: list[AgentRequest] = []

    def register(self, target_id: str, handler: AsyncHandler) -> None:
        self._handlers[target_id] = handler
        logger.info(f"Registered in-process agent for target {target_id}")

    def unregister(self, target_id: str) -> None:
        self._handlers.pop(target_id, None)

    async def send(self, target_id: str, request: AgentRequest) -> AgentResponse:
        handler = self._handlers.get(target_id)
        if handler is None:
            raise ConnectionError(f"No agent connected in target {target_id}")

        self.sent.append(request)
        return await handler(request)
