"""CartPilot SDK - shared utilities for the core and orchestration layers."""
