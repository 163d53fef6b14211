"""GenerationDriver implementation."""

import asyncio
from collections import Counter
from typing import Iterable, Protocol

from ..errors import ServiceDisabled
from ..lifecycle import ConversationManager
from ..llm import ILLMProvider
from ..logging_config import get_logger
from ..models import (
    ALL_RECIPIENTS,
    AIStatus,
    Conversation,
    ConversationContext,
    ConversationStatus,
    Message,
    ParticipantProfile,
)
from ..registry import AgentRegistry
from .prompts import (
    build_system_prompt,
    goal_check_request,
    history_turns,
    is_affirmative,
    opening_message,
    parse_reply,
)
from .styles import ArchetypeStylePolicy, StylePolicy

logger = get_logger(__name__)

MISSING_KEY_REASON = (
    "LLM API key is missing. Agents cannot communicate. "
    "Please check your .env file and add ANTHROPIC_API_KEY."
)
TOO_MANY_ERRORS_REASON = "Too many consecutive API errors. Service temporarily disabled."


class IGenerationDriver(Protocol):
    """Producing the next message of an active conversation."""

    def status(self) -> AIStatus:
        """Enabled flag plus the reason generation is disabled."""
        ...

    async def advance(self, conversation: Conversation) -> Message | None:
        """Run one step; failures are logged and counted, never raised."""
        ...

    def prune(self, active_ids: Iterable[str]) -> None:
        """Drop per-conversation state for every id not in active_ids."""
        ...


class GenerationDriver:
    """Generates messages and runs periodic goal checks for conversations."""

    def __init__(
        self,
        conversations: ConversationManager,
        registry: AgentRegistry,
        llm_provider: ILLMProvider | None,
        style_policy: StylePolicy | None = None,
        goal_check_interval: int = 50,
        max_consecutive_errors: int = 10,
        history_window: int = 5,
        goal_window: int = 10,
        disabled_reason: str | None = None,
    ):
        if goal_check_interval <= 0 or max_consecutive_errors <= 0:
            raise ValueError("goal_check_interval and max_consecutive_errors must be positive")

        self._conversations = conversations
        self._registry = registry
        self._llm = llm_provider
        self._style_policy = style_policy or ArchetypeStylePolicy()
        self._goal_check_interval = goal_check_interval
        self._max_consecutive_errors = max_consecutive_errors
        self._history_window = history_window
        self._goal_window = goal_window

        self._contexts: dict[str, ConversationContext] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        # steps holding or waiting on each lock
        self._lock_users: Counter[str] = Counter()
        self._consecutive_errors = 0
        self._enabled = True
        self._disabled_reason: str | None = None

        if llm_provider is None:
            self._disable(disabled_reason or MISSING_KEY_REASON)

    def status(self) -> AIStatus:
        return AIStatus(is_enabled=self._enabled, reason=self._disabled_reason)

    @property
    def is_enabled(self) -> bool:
        return self._enabled

    @property
    def consecutive_errors(self) -> int:
        return self._consecutive_errors

    def get_context(self, conversation_id: str) -> ConversationContext | None:
        return self._contexts.get(conversation_id)

    def evict(self, conversation_id: str) -> None:
        """
        Drop the cached context and lock of a conversation.

        A lock still held or awaited by a step is kept; that step drops it
        when it finishes.
        """
        self._contexts.pop(conversation_id, None)
        if not self._lock_users[conversation_id]:
            self._locks.pop(conversation_id, None)

    def prune(self, active_ids: Iterable[str]) -> None:
        """Evict every conversation not in active_ids."""
        active = set(active_ids)
        for conversation_id in set(self._contexts) | set(self._locks):
            if conversation_id not in active:
                self.evict(conversation_id)

    def clear(self) -> None:
        """Drop every cached context and idle lock. Enabled state and error count are kept."""
        for conversation_id in set(self._contexts) | set(self._locks):
            self.evict(conversation_id)

    def _disable(self, reason: str) -> None:
        self._enabled = False
        self._disabled_reason = reason
        logger.error("Generation disabled: %s", reason)

    def _record_failure(self, conversation: Conversation, error: Exception) -> None:
        self._consecutive_errors += 1
        logger.error(
            "Generation step failed for %s (%d/%d consecutive): %s",
            conversation.name,
            self._consecutive_errors,
            self._max_consecutive_errors,
            error,
            exc_info=error,
            extra={"context": {"conversation_id": conversation.id}},
        )
        if self._enabled and self._consecutive_errors >= self._max_consecutive_errors:
            self._disable(TOO_MANY_ERRORS_REASON)

    async def advance(self, conversation: Conversation) -> Message | None:
        """
        Run one generation step for a conversation.

        A no-op while disabled. Any failure is logged and counted towards
        the self-disable threshold instead of propagating.
        """
        if not self._enabled:
            logger.debug("Generation disabled, skipping %s", conversation.name)
            return None

        try:
            message = await self.step(conversation)
        except Exception as e:
            self._record_failure(conversation, e)
            return None

        self._consecutive_errors = 0
        return message

    async def step(self, conversation: Conversation) -> Message | None:
        """
        Produce the next message of an active conversation.

        Returns None when the conversation is no longer active.

        Raises:
            ServiceDisabled: Driver is disabled.
            AgentNotFound: A participant was deleted out-of-band.
            MalformedResponse, UnknownSpeaker: Reply could not be parsed.
            ProviderError: The provider call failed.
        """
        if not self._enabled:
            raise ServiceDisabled(self._disabled_reason or "Generation is disabled")

        conversation_id = conversation.id
        lock = self._locks.setdefault(conversation_id, asyncio.Lock())
        self._lock_users[conversation_id] += 1
        try:
            async with lock:
                return await self._step(conversation_id)
        finally:
            self._lock_users[conversation_id] -= 1
            if not self._lock_users[conversation_id]:
                del self._lock_users[conversation_id]
                if conversation_id not in self._contexts:
                    self._locks.pop(conversation_id, None)

    async def _step(self, conversation_id: str) -> Message | None:
        conversation = await self._conversations.get(conversation_id)
        if conversation.status != ConversationStatus.ACTIVE:
            self.evict(conversation_id)
            return None

        context = await self._context_for(conversation)
        if context.goal_check_pending and await self.check_goal(conversation):
            return None

        history = await self._conversations.get_messages(conversation.id)

        if not history:
            speaker = context.participants[0]
            sender_id = speaker.id
            content = opening_message(speaker, context.topic, context.goal)
        else:
            reply = await self._llm.complete(
                messages=history_turns(history[-self._history_window:], context),
                system=build_system_prompt(context, self._style_policy),
            )
            sender_id, content = parse_reply(reply, context.participants)

        message = await self._conversations.add_message(
            conversation.id, sender_id, content, ALL_RECIPIENTS
        )
        context.message_count += 1
        logger.info(
            "Message %d generated in %s",
            context.message_count,
            conversation.name,
            extra={"context": {"conversation_id": conversation.id, "sender_id": sender_id}},
        )

        if context.message_count % self._goal_check_interval == 0:
            # Stays set until a goal check gets an answer
            context.goal_check_pending = True
            await self.check_goal(conversation)

        return message

    async def _context_for(self, conversation: Conversation) -> ConversationContext:
        context = self._contexts.get(conversation.id)
        if context is not None:
            return context

        participants = []
        for agent_id in conversation.participants:
            agent = await self._registry.get(agent_id)
            participants.append(
                ParticipantProfile(
                    id=agent.id,
                    name=agent.name,
                    type=agent.type,
                    description=agent.description,
                )
            )

        existing = await self._conversations.get_messages(conversation.id)
        context = ConversationContext(
            topic=conversation.topic,
            goal=conversation.goal,
            surrounding=conversation.surrounding,
            participants=participants,
            message_count=len(existing),
        )
        self._contexts[conversation.id] = context
        return context

    async def check_goal(self, conversation: Conversation) -> bool:
        """Ask the provider whether the goal is reached; complete the conversation if so."""
        if not self._enabled:
            raise ServiceDisabled(self._disabled_reason or "Generation is disabled")

        context = await self._context_for(conversation)
        messages = await self._conversations.get_messages(conversation.id)
        system, turns = goal_check_request(context, messages[-self._goal_window:])

        reply = await self._llm.complete(messages=turns, system=system)
        context.goal_check_pending = False
        achieved = is_affirmative(reply)
        logger.info(
            "Goal check for %s: %s",
            conversation.name,
            "achieved" if achieved else "not yet",
            extra={"context": {"conversation_id": conversation.id}},
        )

        if achieved:
            await self._conversations.complete(conversation.id, True)
            self.evict(conversation.id)
        return achieved
