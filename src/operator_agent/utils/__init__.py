"""Small helpers shared across the agent."""
