"""Conversation lifecycle module."""

from .manager import ConversationManager, IConversationManager

__all__ = ["ConversationManager", "IConversationManager"]
