"""Agent-related data models."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class AgentType(str, Enum):
    """Behavioral archetypes."""

    LEARNING = "learning"
    ASSISTANT = "assistant"
    SPECIALIST = "specialist"


class AgentStatus(str, Enum):
    """Reservation flag: ACTIVE while held by a non-terminal conversation."""

    ACTIVE = "active"
    INACTIVE = "inactive"


@dataclass
class Agent:
    """A simulated conversation participant."""

    id: str
    name: str
    type: AgentType
    status: AgentStatus
    created_at: datetime
    description: str | None = None
