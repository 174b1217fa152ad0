"""
Anthropic Advisory Service Implementation.

Sends completion requests to the Anthropic Messages API.
"""
import asyncio
from typing import Any, Dict, List, Optional
import logging
import aiohttp

from core.application.dtos import (
    AdvisoryCompletion,
    AdvisoryMessage,
    AdvisoryOptions,
    AdvisoryUsage,
)
from core.application.interfaces import IAdvisoryService
from core.settings.modules.advisory_settings import AdvisorySettings


logger = logging.getLogger(__name__)

_STOP_REASONS = {"end_turn", "max_tokens", "stop_sequence"}


class AdvisoryServiceError(Exception):
    """Raised when the advisory API cannot produce a completion."""

    def __init__(self, message: str, status: Optional[int] = None, retryable: bool = False):
        super().__init__(message)
        self.status = status
        self.retryable = retryable


class AnthropicAdvisoryService(IAdvisoryService):
    """
    Anthropic implementation of the advisory service.

    Sends requests to the Messages API over aiohttp. Pass ``session`` to
    reuse a client session; otherwise one is opened per request.
    """

    def __init__(
        self,
        settings: AdvisorySettings,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        """
        Initialize Anthropic advisory service.

        Args:
            settings: Advisory settings with API key and model
            session: Optional shared aiohttp session
        """
        self.settings = settings
        self._session = session
        logger.info(
            f"AnthropicAdvisoryService initialized "
            f"(model={settings.model}, enabled={self.is_available()})"
        )

    def is_available(self) -> bool:
        return bool(self.settings.enabled and self.settings.api_key)

    async def complete(
        self,
        messages: List[AdvisoryMessage],
        options: Optional[AdvisoryOptions] = None,
    ) -> AdvisoryCompletion:
        """Send a completion request to the Messages API."""
        if not self.settings.api_key:
            raise AdvisoryServiceError("Anthropic API key not configured")
        if not self.settings.enabled:
            raise AdvisoryServiceError("Advisory service disabled")

        options = options or AdvisoryOptions()
        payload = self._build_payload(messages, options)
        headers = {
            "content-type": "application/json",
            "x-api-key": self.settings.api_key,
            "anthropic-version": self.settings.api_version,
        }
        timeout = aiohttp.ClientTimeout(total=self.settings.timeout_seconds)

        try:
            if self._session is not None:
                data = await self._post(self._session, payload, headers, timeout)
            else:
                async with aiohttp.ClientSession() as session:
                    data = await self._post(session, payload, headers, timeout)
        except aiohttp.ClientError as e:
            logger.error(f"Anthropic API request failed: {e}", exc_info=True)
            raise AdvisoryServiceError(f"Network error: {e}", retryable=True) from e
        except asyncio.TimeoutError as e:
            logger.warning(f"Anthropic API request timed out after {self.settings.timeout_seconds}s")
            raise AdvisoryServiceError("Request timed out", retryable=True) from e

        return self._parse_response(data)

    def _build_payload(
        self, messages: List[AdvisoryMessage], options: AdvisoryOptions
    ) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "model": options.model or self.settings.model,
            "max_tokens": options.max_tokens,
            "messages": [{"role": m.role, "content": m.content} for m in messages],
            "temperature": options.temperature,
        }
        if options.system_prompt:
            payload["system"] = options.system_prompt
        if options.stop_sequences:
            payload["stop_sequences"] = list(options.stop_sequences)
        return payload

    async def _post(
        self,
        session: aiohttp.ClientSession,
        payload: Dict[str, Any],
        headers: Dict[str, str],
        timeout: aiohttp.ClientTimeout,
    ) -> Dict[str, Any]:
        async with session.post(
            self.settings.api_url, json=payload, headers=headers, timeout=timeout
        ) as response:
            if response.status != 200:
                error_text = await response.text()
                logger.error(f"Anthropic API error: {response.status} - {error_text}")
                raise AdvisoryServiceError(
                    f"Anthropic API error {response.status}",
                    status=response.status,
                    retryable=response.status in (429, 500, 502, 503, 529),
                )
            return await response.json()

    @staticmethod
    def _parse_response(data: Dict[str, Any]) -> AdvisoryCompletion:
        try:
            text = "".join(
                block.get("text", "")
                for block in data.get("content", [])
                if block.get("type") == "text"
            )
            usage = data.get("usage") or {}
            stop_reason = data.get("stop_reason")
            return AdvisoryCompletion(
                content=text,
                usage=AdvisoryUsage(
                    input_tokens=usage.get("input_tokens", 0),
                    output_tokens=usage.get("output_tokens", 0),
                ),
                stop_reason=stop_reason if stop_reason in _STOP_REASONS else "end_turn",
                model=data.get("model") or "",
            )
        except (AttributeError, TypeError) as e:
            raise AdvisoryServiceError(f"Unexpected response shape: {e}") from e
