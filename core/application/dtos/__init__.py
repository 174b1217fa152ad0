"""Application DTOs."""

from .advisory_dto import (
    DEFAULT_ADVISORY_MODEL,
    SUBSTITUTION_SYSTEM_PROMPT,
    AdvisoryCompletion,
    AdvisoryMessage,
    AdvisoryOptions,
    AdvisoryUsage,
)
from .agent_dto import (
    TRANSIENT_ERROR_CODES,
    AgentAction,
    AgentRequest,
    AgentResponse,
    CartScanData,
    CartScanPayload,
    ErrorCode,
    LoginCheckData,
    OrderDetailData,
    OrderDetailPayload,
    OrderHistoryData,
    OrderHistoryPayload,
    ReorderData,
    ReorderPayload,
    ResponseErrorDTO,
    SearchProductsData,
    SearchProductsPayload,
    SlotsExtractData,
    create_error_response,
    create_request,
    create_success_response,
    generate_message_id,
)

__all__ = [
    "DEFAULT_ADVISORY_MODEL",
    "SUBSTITUTION_SYSTEM_PROMPT",
    "TRANSIENT_ERROR_CODES",
    "AdvisoryCompletion",
    "AdvisoryMessage",
    "AdvisoryOptions",
    "AdvisoryUsage",
    "AgentAction",
    "AgentRequest",
    "AgentResponse",
    "CartScanData",
    "CartScanPayload",
    "ErrorCode",
    "LoginCheckData",
    "OrderDetailData",
    "OrderDetailPayload",
    "OrderHistoryData",
    "OrderHistoryPayload",
    "ReorderData",
    "ReorderPayload",
    "ResponseErrorDTO",
    "SearchProductsData",
    "SearchProductsPayload",
    "SlotsExtractData",
    "create_error_response",
    "create_request",
    "create_success_response",
    "generate_message_id",
]
