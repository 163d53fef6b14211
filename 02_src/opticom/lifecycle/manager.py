"""ConversationManager implementation."""

import asyncio
import uuid
from collections import Counter
from datetime import datetime, timezone
from typing import Protocol

from ..errors import (
    DuplicateName,
    InvalidInput,
    InvalidParticipantCount,
    InvalidRecipients,
    InvalidState,
    NotFound,
    NotParticipant,
)
from ..logging_config import get_logger
from ..models import (
    ALL_RECIPIENTS,
    MAX_PARTICIPANTS,
    MIN_PARTICIPANTS,
    AgentCount,
    Conversation,
    ConversationStatistics,
    ConversationStatus,
    Message,
    StatusCounts,
)
from ..registry import AgentRegistry
from ..storage import IStorage

logger = get_logger(__name__)

Recipients = str | list[str]

# transition name -> (allowed source states, target state)
TRANSITIONS: dict[str, tuple[frozenset[ConversationStatus], ConversationStatus]] = {
    "pause": (frozenset({ConversationStatus.ACTIVE}), ConversationStatus.PAUSED),
    "unpause": (frozenset({ConversationStatus.PAUSED}), ConversationStatus.ACTIVE),
    "complete": (frozenset({ConversationStatus.ACTIVE}), ConversationStatus.COMPLETED),
    "terminate": (
        frozenset({ConversationStatus.ACTIVE, ConversationStatus.PAUSED}),
        ConversationStatus.TERMINATED,
    ),
}


class IConversationManager(Protocol):
    """Conversation state machine."""

    async def create(
        self,
        name: str,
        topic: str,
        goal: str,
        surrounding: str,
        participant_ids: list[str],
    ) -> Conversation:
        """Create an active conversation and reserve its participants."""
        ...

    async def pause(self, conversation_id: str) -> Conversation:
        """active -> paused."""
        ...

    async def unpause(self, conversation_id: str) -> Conversation:
        """paused -> active."""
        ...

    async def complete(self, conversation_id: str, goal_achieved: bool) -> Conversation:
        """active -> completed, releasing participants."""
        ...

    async def terminate(self, conversation_id: str) -> Conversation:
        """active|paused -> terminated, releasing participants."""
        ...

    async def add_message(
        self,
        conversation_id: str,
        sender_id: str,
        content: str,
        recipients: Recipients = ALL_RECIPIENTS,
    ) -> Message:
        """Append a message to an active conversation."""
        ...

    async def get(self, conversation_id: str) -> Conversation:
        """Get conversation by ID."""
        ...

    async def list_active(self) -> list[Conversation]:
        """Get all active conversations."""
        ...

    async def get_messages(self, conversation_id: str) -> list[Message]:
        """Get the message log of a conversation."""
        ...


class ConversationManager:
    """Enforces legal conversation transitions and agent reservations."""

    def __init__(self, storage: IStorage, registry: AgentRegistry):
        self._storage = storage
        self._registry = registry
        self._transition_lock = asyncio.Lock()

    async def create(
        self,
        name: str,
        topic: str,
        goal: str,
        surrounding: str,
        participant_ids: list[str],
    ) -> Conversation:
        """
        Create a conversation in the active state.

        Participants are checked and reserved under the registry's
        reservation lock, so two creations racing for the same inactive
        agent cannot both succeed.

        Raises:
            InvalidInput: Blank name, topic or goal.
            DuplicateName: Conversation name is taken.
            InvalidParticipantCount: Not 2-10 distinct participants.
            AgentNotFound: A participant id does not resolve.
            AgentNotAvailable: A participant is already reserved.
        """
        name = (name or "").strip()
        topic = (topic or "").strip()
        goal = (goal or "").strip()
        surrounding = (surrounding or "").strip()
        for field_name, value in (("name", name), ("topic", topic), ("goal", goal)):
            if not value:
                raise InvalidInput(f"Conversation {field_name} must not be empty")

        if await self._storage.get_conversation_by_name(name):
            raise DuplicateName("Conversation", name)

        participant_ids = list(participant_ids or [])
        if len(set(participant_ids)) != len(participant_ids):
            raise InvalidParticipantCount("Participants must be distinct agents")
        if not MIN_PARTICIPANTS <= len(participant_ids) <= MAX_PARTICIPANTS:
            raise InvalidParticipantCount(
                f"A conversation must have between {MIN_PARTICIPANTS} "
                f"and {MAX_PARTICIPANTS} participants"
            )

        conversation = Conversation(
            id=str(uuid.uuid4()),
            name=name,
            topic=topic,
            goal=goal,
            surrounding=surrounding,
            status=ConversationStatus.ACTIVE,
            participants=participant_ids,
            started_at=datetime.now(timezone.utc),
        )

        async with self._registry.reservation(participant_ids):
            # Re-check under the lock; a concurrent create may have taken the name.
            if await self._storage.get_conversation_by_name(name):
                raise DuplicateName("Conversation", name)
            await self._storage.save_conversation(conversation)

        logger.info(
            "Conversation created: %s with %d participants",
            conversation.name,
            len(participant_ids),
            extra={"context": {"conversation_id": conversation.id}},
        )
        return conversation

    async def _transition(
        self, conversation_id: str, transition: str, **changes
    ) -> Conversation:
        allowed, target = TRANSITIONS[transition]

        async with self._transition_lock:
            conversation = await self.get(conversation_id)
            if conversation.status not in allowed:
                sources = " or ".join(sorted(s.value for s in allowed))
                raise InvalidState(
                    f"Cannot {transition} conversation {conversation.name!r}: "
                    f"status is {conversation.status.value}, expected {sources}"
                )

            conversation.status = target
            for key, value in changes.items():
                setattr(conversation, key, value)
            await self._storage.update_conversation(conversation)

            if target.is_terminal:
                await self._registry.release(conversation.participants)

        logger.info(
            "Conversation %s: %s -> %s",
            conversation.name,
            transition,
            target.value,
            extra={"context": {"conversation_id": conversation.id}},
        )
        return conversation

    async def pause(self, conversation_id: str) -> Conversation:
        """Pause an active conversation. Agents stay reserved."""
        return await self._transition(conversation_id, "pause")

    async def unpause(self, conversation_id: str) -> Conversation:
        """Resume a paused conversation."""
        return await self._transition(conversation_id, "unpause")

    async def pause_all(self) -> list[Conversation]:
        """Pause every active conversation; one failure does not stop the rest."""
        paused = []
        for conversation in await self.list_active():
            try:
                paused.append(await self.pause(conversation.id))
            except Exception as e:
                logger.error(
                    "Failed to pause conversation %s: %s",
                    conversation.name,
                    e,
                    extra={"context": {"conversation_id": conversation.id}},
                )
        return paused

    async def complete(self, conversation_id: str, goal_achieved: bool) -> Conversation:
        """Finish an active conversation and release its participants."""
        return await self._transition(
            conversation_id,
            "complete",
            ended_at=datetime.now(timezone.utc),
            goal_achieved=bool(goal_achieved),
        )

    async def terminate(self, conversation_id: str) -> Conversation:
        """Force-end an active or paused conversation and release its participants."""
        return await self._transition(
            conversation_id,
            "terminate",
            ended_at=datetime.now(timezone.utc),
            goal_achieved=False,
        )

    async def add_message(
        self,
        conversation_id: str,
        sender_id: str,
        content: str,
        recipients: Recipients = ALL_RECIPIENTS,
    ) -> Message:
        """
        Append one message to an active conversation.

        The sentinel "all" is expanded to the full roster so every stored
        message carries an explicit recipient list.

        Raises:
            NotFound: Unknown conversation.
            InvalidState: Conversation is not active.
            NotParticipant: Sender is not in the roster.
            InvalidRecipients: Explicit recipients outside the roster, or none.
        """
        async with self._transition_lock:
            conversation = await self.get(conversation_id)
            if conversation.status != ConversationStatus.ACTIVE:
                raise InvalidState(
                    f"Cannot add message to a {conversation.status.value} conversation"
                )

            if sender_id not in conversation.participants:
                raise NotParticipant(
                    f"Sender {sender_id} is not a participant in this conversation"
                )

            if recipients == ALL_RECIPIENTS:
                resolved = list(conversation.participants)
            elif isinstance(recipients, str):
                raise InvalidRecipients([recipients])
            else:
                invalid = [r for r in recipients if r not in conversation.participants]
                if invalid or not recipients:
                    raise InvalidRecipients(invalid)
                resolved = list(dict.fromkeys(recipients))

            message = Message(
                id=str(uuid.uuid4()),
                conversation_id=conversation_id,
                sender_id=sender_id,
                content=content,
                recipients=resolved,
                timestamp=datetime.now(timezone.utc),
            )
            await self._storage.save_message(message)

        return message

    async def get(self, conversation_id: str, include_messages: bool = False) -> Conversation:
        """Get conversation by ID. Raises NotFound."""
        conversation = await self._storage.get_conversation(conversation_id)
        if conversation is None:
            raise NotFound("Conversation", conversation_id)
        if include_messages:
            conversation.messages = await self._storage.get_messages(conversation_id)
        return conversation

    async def find_by_name(self, name: str) -> Conversation | None:
        return await self._storage.get_conversation_by_name(name)

    async def list_all(self) -> list[Conversation]:
        return await self._storage.get_conversations()

    async def list_active(self) -> list[Conversation]:
        return await self._storage.get_conversations(ConversationStatus.ACTIVE)

    async def get_messages(self, conversation_id: str) -> list[Message]:
        """Get the message log of a conversation. Raises NotFound."""
        await self.get(conversation_id)
        return await self._storage.get_messages(conversation_id)

    async def get_statistics(self) -> ConversationStatistics:
        """Aggregate message and conversation counts by status and by agent."""
        conversations = await self._storage.get_conversations()
        agents = {agent.id: agent for agent in await self._registry.list_all()}

        messages_by_sender: Counter[str] = Counter()
        conversations_by_agent: Counter[str] = Counter()
        total_messages = 0
        status_counts = Counter(c.status for c in conversations)

        for conversation in conversations:
            conversations_by_agent.update(conversation.participants)
            messages = await self._storage.get_messages(conversation.id)
            total_messages += len(messages)
            messages_by_sender.update(m.sender_id for m in messages)

        def rows(counter: Counter[str]) -> list[AgentCount]:
            return [
                AgentCount(
                    agent_id=agent_id,
                    name=agents[agent_id].name if agent_id in agents else "Unknown Agent",
                    count=count,
                )
                for agent_id, count in counter.most_common()
            ]

        return ConversationStatistics(
            total_messages=total_messages,
            messages_by_agent=rows(messages_by_sender),
            conversations_by_agent=rows(conversations_by_agent),
            conversation_stats=StatusCounts(
                total=len(conversations),
                active=status_counts[ConversationStatus.ACTIVE],
                paused=status_counts[ConversationStatus.PAUSED],
                completed=status_counts[ConversationStatus.COMPLETED],
                terminated=status_counts[ConversationStatus.TERMINATED],
            ),
        )
