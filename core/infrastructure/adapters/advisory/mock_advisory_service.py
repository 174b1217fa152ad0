"""
Mock Advisory Service Implementation.

This simulates advisory completions for testing and demos.
"""
from typing import List, Optional
import logging

from core.application.dtos import (
    AdvisoryCompletion,
    AdvisoryMessage,
    AdvisoryOptions,
    AdvisoryUsage,
)
from core.application.interfaces import IAdvisoryService

from .anthropic_advisory_service import AdvisoryServiceError


logger = logging.getLogger(__name__)


class MockAdvisoryService(IAdvisoryService):
    """
    Mock implementation of the advisory service.

    Returns a canned reply and records every request.
    Set ``fail`` to simulate an outage.
    """

    def __init__(
        self,
        reply: str = "Close match on price and category; a sensible swap.",
        available: bool = True,
        fail: bool = False,
    ):
        """Initialize mock advisory service."""
        self.reply = reply
        self.available = available
        self.fail = fail
        self.requests: List[List[AdvisoryMessage]] = []
        logger.info("MockAdvisoryService initialized (canned replies)")

    def is_available(self) -> bool:
        return self.available

    async def complete(
        self,
        messages: List[AdvisoryMessage],
        options: Optional[AdvisoryOptions] = None,
    ) -> AdvisoryCompletion:
        self.requests.append(list(messages))
        if self.fail:
            raise AdvisoryServiceError("Simulated advisory outage", retryable=True)

        logger.info(f"🤖 ADVISORY REQUEST ({len(messages)} message(s))")
        return AdvisoryCompletion(
            content=self.reply,
            usage=AdvisoryUsage(
                input_tokens=sum(len(m.content.split()) for m in messages),
                output_tokens=len(self.reply.split()),
            ),
            model="mock-advisory",
        )
