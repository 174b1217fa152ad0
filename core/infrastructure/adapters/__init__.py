"""Adapters for the agent, session and advisory ports."""
