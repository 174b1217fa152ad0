"""Target session adapters."""
from .simulated_target_session import SimulatedTargetSession

__all__ = ["SimulatedTargetSession"]
