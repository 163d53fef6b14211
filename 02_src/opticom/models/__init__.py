"""Core data models for OptiCom."""

from .agents import Agent, AgentStatus, AgentType
from .conversations import (
    ALL_RECIPIENTS,
    MAX_PARTICIPANTS,
    MIN_PARTICIPANTS,
    AgentCount,
    Conversation,
    ConversationStatistics,
    ConversationStatus,
    StatusCounts,
)
from .messages import Message
from .context import AIStatus, ConversationContext, ParticipantProfile

__all__ = [
    # Agents
    "Agent",
    "AgentStatus",
    "AgentType",
    # Conversations
    "ALL_RECIPIENTS",
    "MIN_PARTICIPANTS",
    "MAX_PARTICIPANTS",
    "Conversation",
    "ConversationStatus",
    "ConversationStatistics",
    "AgentCount",
    "StatusCounts",
    # Messages
    "Message",
    # Generation
    "AIStatus",
    "ConversationContext",
    "ParticipantProfile",
]
