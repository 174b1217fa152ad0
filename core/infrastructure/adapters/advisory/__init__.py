"""Advisory (LLM) service adapters."""
from .anthropic_advisory_service import AdvisoryServiceError, AnthropicAdvisoryService
from .mock_advisory_service import MockAdvisoryService

__all__ = ["AdvisoryServiceError", "AnthropicAdvisoryService", "MockAdvisoryService"]
