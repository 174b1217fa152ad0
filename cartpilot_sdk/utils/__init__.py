"""CartPilot SDK utilities."""
