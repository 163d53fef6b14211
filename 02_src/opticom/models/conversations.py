"""Conversation-related data models."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from .messages import Message

ALL_RECIPIENTS = "all"
MIN_PARTICIPANTS = 2
MAX_PARTICIPANTS = 10


class ConversationStatus(str, Enum):
    """Conversation lifecycle states."""

    ACTIVE = "active"
    PAUSED = "paused"
    COMPLETED = "completed"
    TERMINATED = "terminated"

    @property
    def is_terminal(self) -> bool:
        return self in (ConversationStatus.COMPLETED, ConversationStatus.TERMINATED)


@dataclass
class Conversation:
    """A goal-directed exchange between 2-10 agents."""

    id: str
    name: str
    topic: str
    goal: str
    surrounding: str
    status: ConversationStatus
    participants: list[str]  # agent ids, roster order
    started_at: datetime
    ended_at: datetime | None = None
    goal_achieved: bool | None = None
    messages: list[Message] = field(default_factory=list)


@dataclass
class AgentCount:
    """Per-agent counter row in statistics."""

    agent_id: str
    name: str
    count: int


@dataclass
class StatusCounts:
    """Conversation counts by status."""

    total: int = 0
    active: int = 0
    paused: int = 0
    completed: int = 0
    terminated: int = 0


@dataclass
class ConversationStatistics:
    """Aggregate counts over all conversations."""

    total_messages: int
    messages_by_agent: list[AgentCount]
    conversations_by_agent: list[AgentCount]
    conversation_stats: StatusCounts
