"""Generation-side data models."""

from dataclasses import dataclass, field

from .agents import AgentType


@dataclass
class ParticipantProfile:
    """Denormalized roster entry cached for prompt building."""

    id: str
    name: str
    type: AgentType
    description: str | None = None


@dataclass
class ConversationContext:
    """In-memory generation context for one conversation."""

    topic: str
    goal: str
    surrounding: str
    participants: list[ParticipantProfile] = field(default_factory=list)
    message_count: int = 0
    goal_check_pending: bool = False

    def name_of(self, agent_id: str) -> str | None:
        for participant in self.participants:
            if participant.id == agent_id:
                return participant.name
        return None


@dataclass
class AIStatus:
    """Whether generation is enabled, and why not."""

    is_enabled: bool
    reason: str | None = None
