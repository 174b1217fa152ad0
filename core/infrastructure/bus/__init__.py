"""Message bus infrastructure - Redis request/reply to the page agent."""
from .redis_agent_transport import RedisAgentTransport

__all__ = ["RedisAgentTransport"]
