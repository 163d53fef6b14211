"""OptiCom: goal-directed multi-agent conversations."""

from .app import Application, IApplication
from .errors import (
    AgentNotAvailable,
    AgentNotFound,
    DuplicateName,
    InvalidInput,
    InvalidParticipantCount,
    InvalidRecipients,
    InvalidState,
    MalformedResponse,
    NotFound,
    NotParticipant,
    OptiComError,
    ProviderError,
    ServiceDisabled,
    UnknownSpeaker,
)
from .generation import ArchetypeStylePolicy, GenerationDriver, StylePolicy
from .lifecycle import ConversationManager
from .llm import ILLMProvider, LLMProvider
from .models import (
    Agent,
    AgentStatus,
    AgentType,
    AIStatus,
    Conversation,
    ConversationContext,
    ConversationStatus,
    Message,
)
from .registry import AgentRegistry
from .scheduler import BackgroundScheduler
from .storage import IStorage, Storage

__all__ = [
    # Application
    "Application",
    "IApplication",
    # Models
    "Agent",
    "AgentStatus",
    "AgentType",
    "AIStatus",
    "Conversation",
    "ConversationContext",
    "ConversationStatus",
    "Message",
    # Components
    "IStorage",
    "Storage",
    "AgentRegistry",
    "ConversationManager",
    "ILLMProvider",
    "LLMProvider",
    "GenerationDriver",
    "StylePolicy",
    "ArchetypeStylePolicy",
    "BackgroundScheduler",
    # Errors
    "OptiComError",
    "NotFound",
    "AgentNotFound",
    "DuplicateName",
    "InvalidInput",
    "InvalidParticipantCount",
    "NotParticipant",
    "InvalidRecipients",
    "InvalidState",
    "AgentNotAvailable",
    "MalformedResponse",
    "UnknownSpeaker",
    "ProviderError",
    "ServiceDisabled",
]
