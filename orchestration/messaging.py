"""Agent client - typed request/response exchange with the page agent."""

import asyncio
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from cartpilot_sdk.logging import get_logger
from core.application.dtos import AgentAction, AgentResponse, create_request
from core.application.dtos.agent_dto import WireModel
from core.application.interfaces import IAgentTransport

from .cancellation import CancellationToken
from .errors import (
    AgentResponseError,
    AgentTimeoutError,
    AgentTransportError,
    MalformedResponseError,
)

ModelT = TypeVar("ModelT", bound=BaseModel)


class AgentClient:
    """Wraps an IAgentTransport with timeouts, cancellation and validation."""

    def __init__(self, transport: IAgentTransport, operation_timeout: float = 30.0) -> None:
        """Initialize agent client.

        Args:
            transport: Transport to the page agent
            operation_timeout: Seconds allowed for each request
        """
        self._transport = transport
        self._operation_timeout = operation_timeout
        self._logger = get_logger("orchestration.agent_client")

    async def request(
        self,
        target_id: str,
        action: AgentAction,
        payload: WireModel | dict[str, Any] | None,
        token: CancellationToken,
    ) -> AgentResponse:
        """Send one request and return the raw (possibly unsuccessful) response.

        Args:
            target_id: Target the agent lives in
            action: Operation to invoke
            payload: Request payload
            token: Cancellation token of the run

        Returns:
            AgentResponse correlated to the request

        Raises:
            AgentTimeoutError: No response within the operation timeout
            AgentTransportError: The transport failed
            MalformedResponseError: The response is invalid or uncorrelated
            RunCancelledError: The run was paused or cancelled meanwhile
        """
        if isinstance(payload, WireModel):
            payload = payload.to_wire()
        request = create_request(action, payload)

        try:
            response = await token.run(
                self._transport.send(target_id, request),
                timeout=self._operation_timeout,
            )
        except (asyncio.TimeoutError, TimeoutError) as exc:
            raise AgentTimeoutError(
                f"{action.value} timed out after {self._operation_timeout}s"
            ) from exc
        except (ConnectionError, OSError) as exc:
            raise AgentTransportError(f"{action.value} failed: {exc}") from exc
        except ValidationError as exc:
            raise MalformedResponseError(f"{action.value} returned an invalid response") from exc

        if response.id != request.id:
            raise MalformedResponseError(
                f"{action.value} response id {response.id} does not match request {request.id}"
            )

        if not response.success:
            self._logger.info(
                f"{action.value} failed on agent: {response.error_code} {response.error_message}"
            )
        return response

    def parse(self, response: AgentResponse, model: type[ModelT]) -> ModelT:
        """Validate the data of a successful response."""
        try:
            return model.model_validate(response.data or {})
        except ValidationError as exc:
            raise MalformedResponseError(
                f"Invalid {model.__name__} payload: {exc.error_count()} error(s)"
            ) from exc

    async def call(
        self,
        target_id: str,
        action: AgentAction,
        payload: WireModel | dict[str, Any] | None,
        model: type[ModelT],
        token: CancellationToken,
    ) -> ModelT:
        """Send a request that must succeed and return its validated data.

        Raises:
            AgentResponseError: The agent reported a failure (carries its code)
        """
        response = await self.request(target_id, action, payload, token)
        if not response.success:
            raise AgentResponseError(response.error_code, response.error_message)
        return self.parse(response, model)
