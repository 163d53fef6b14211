"""Communication-style policies for agent archetypes."""

from typing import Protocol

from ..models import AgentType

ROLE_DESCRIPTIONS = {
    AgentType.LEARNING: (
        "Curious and adaptable, focuses on gathering information "
        "and understanding different perspectives"
    ),
    AgentType.ASSISTANT: (
        "Helpful and supportive, aims to facilitate discussion and find common ground"
    ),
    AgentType.SPECIALIST: (
        "Expert in their field, provides detailed insights and technical knowledge"
    ),
}

BASE_STYLES = {
    AgentType.LEARNING: (
        "inquisitive and open-minded manner, often asking questions and seeking clarification"
    ),
    AgentType.ASSISTANT: "supportive and diplomatic way, focusing on clarity and understanding",
    AgentType.SPECIALIST: (
        "precise and authoritative tone, using field-specific terminology when appropriate"
    ),
}

# Keyword -> trait. Explicit tone words win over the general-tone fallback.
TONE_TRAITS = (
    ("formal", "formal"),
    ("casual", "casual"),
    ("direct", "direct"),
    ("diplomatic", "diplomatic"),
    ("technical", "technical"),
    ("friendly", "friendly"),
    ("professional", "professional"),
)
FALLBACK_TRAITS = (
    ("expert", "authoritative"),
    ("help", "supportive"),
    ("learn", "curious"),
    ("collaborate", "collaborative"),
)


class StylePolicy(Protocol):
    """Maps an agent's archetype and description to prompt text."""

    def role_description(self, agent_type: AgentType) -> str:
        ...

    def communication_style(self, agent_type: AgentType, description: str | None) -> str:
        ...


class ArchetypeStylePolicy:
    """Archetype tables plus keyword trait detection on the description."""

    def role_description(self, agent_type: AgentType) -> str:
        return ROLE_DESCRIPTIONS.get(
            AgentType(agent_type), "Standard agent with balanced characteristics"
        )

    def communication_style(self, agent_type: AgentType, description: str | None) -> str:
        base = BASE_STYLES.get(AgentType(agent_type), "balanced and professional manner")
        if not description:
            return base
        return f"{base}, while also being {self.traits(description)}"

    @staticmethod
    def traits(description: str) -> str:
        text = description.lower()
        found = [trait for keyword, trait in TONE_TRAITS if keyword in text]
        if not found:
            found = [trait for keyword, trait in FALLBACK_TRAITS if keyword in text]
        return " and ".join(found) if found else "adaptable and context-aware"
