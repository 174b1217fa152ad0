"""Page agent adapters."""
from .in_process_transport import InProcessAgentTransport
from .simulated_shop_agent import SimulatedShopAgent

__all__ = ["InProcessAgentTransport", "SimulatedShopAgent"]
