"""CartPilot core - domain, application ports and infrastructure adapters."""
