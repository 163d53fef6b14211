"""Message-related data models."""

from dataclasses import dataclass, field
from datetime import datetime


@dataclass
class Message:
    """A single message in a conversation. Never mutated once stored."""

    id: str
    conversation_id: str
    sender_id: str
    content: str
    timestamp: datetime
    recipients: list[str] = field(default_factory=list)  # expanded agent ids
