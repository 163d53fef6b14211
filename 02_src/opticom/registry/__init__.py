"""Agent registry module."""

from .agent_registry import MIN_NAME_LENGTH, AgentRegistry, IAgentRegistry

__all__ = ["AgentRegistry", "IAgentRegistry", "MIN_NAME_LENGTH"]
