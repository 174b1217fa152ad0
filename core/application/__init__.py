"""Application layer - ports, wire DTOs, and entity serialization."""

from .dtos import AgentAction, AgentRequest, AgentResponse, ErrorCode
from .interfaces import (
    IAdvisoryService,
    IAgentTransport,
    IStoragePort,
    ITargetSessionPort,
)
from .serialization import dump_entity, load_entity

__all__ = [
    # DTOs
    "AgentAction",
    "AgentRequest",
    "AgentResponse",
    "ErrorCode",
    # Interfaces
    "IAdvisoryService",
    "IAgentTransport",
    "IStoragePort",
    "ITargetSessionPort",
    # Serialization
    "dump_entity",
    "load_entity",
]
