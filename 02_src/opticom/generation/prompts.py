"""Prompt building and reply parsing for conversation generation."""

import re

from ..errors import MalformedResponse, UnknownSpeaker
from ..models import ConversationContext, Message, ParticipantProfile
from .styles import StylePolicy

REPLY_PATTERN = re.compile(r"^([^:\n]+):\s*(.+)$", re.DOTALL)
AFFIRMATIVE_TOKEN = "yes"


def opening_message(speaker: ParticipantProfile, topic: str, goal: str) -> str:
    """Deterministic first message of a conversation."""
    who = f" who {speaker.description}" if speaker.description else ""
    return (
        f"As a {speaker.type.value}{who}, I'd like to begin our discussion about "
        f"{topic}. Our goal is to {goal}. Let's work together to achieve this."
    )


def build_system_prompt(context: ConversationContext, policy: StylePolicy) -> str:
    participant_descriptions = "\n\n".join(
        f"- {p.name} ({p.type.value}):\n"
        f"  Role: {policy.role_description(p.type)}\n"
        f"  Personality: {p.description or 'No specific personality traits defined'}\n"
        f"  Communication Style: Based on their type and description, they communicate "
        f"in a {policy.communication_style(p.type, p.description)}"
        for p in context.participants
    )

    return f"""You are managing a conversation between multiple AI agents. Here are the details:

Topic: {context.topic}
Goal: {context.goal}
Environment: {context.surrounding}

Participants and their characteristics:
{participant_descriptions}

Interaction Guidelines:
1. Each response should be from the perspective of the agent that should respond next
2. Stay in character based on the agent's type, personality, and communication style
3. Keep responses focused on the topic and goal while maintaining character authenticity
4. Consider the conversation history and previous messages
5. Respect the specified recipients of each message
6. Let the surrounding environment influence the agent's mood and responses

Current message count: {context.message_count}

Reply with exactly one message formatted as "AgentName: message content"."""


def format_line(message: Message, context: ConversationContext) -> str:
    """Render a stored message as ``Sender: content (to: A, B)``."""
    sender = context.name_of(message.sender_id) or message.sender_id
    recipients = ", ".join(context.name_of(r) or r for r in message.recipients) or "all"
    return f"{sender}: {message.content} (to: {recipients})"


def history_turns(messages: list[Message], context: ConversationContext) -> list[dict]:
    return [{"role": "user", "content": format_line(m, context)} for m in messages]


def goal_check_request(
    context: ConversationContext, messages: list[Message]
) -> tuple[str, list[dict]]:
    """System prompt and turns asking for a yes/no goal judgment."""
    transcript = "\n".join(
        f"{context.name_of(m.sender_id) or m.sender_id}: {m.content}" for m in messages
    )
    system = (
        "You are evaluating if a conversation has reached its goal. "
        f"The goal is: {context.goal}"
    )
    prompt = (
        "Based on these messages, have the participants reached an agreement "
        f"and achieved their goal?\n\nMessages:\n{transcript}\n\n"
        "Respond with only 'yes' or 'no'."
    )
    return system, [{"role": "user", "content": prompt}]


def is_affirmative(reply: str) -> bool:
    return AFFIRMATIVE_TOKEN in (reply or "").lower()


def parse_reply(reply: str, participants: list[ParticipantProfile]) -> tuple[str, str]:
    """
    Parse ``"<AgentName>: <content>"`` into (agent_id, content).

    Names match case-insensitively after trimming.

    Raises:
        MalformedResponse: Reply does not match the pattern.
        UnknownSpeaker: Named agent is not a participant.
    """
    match = REPLY_PATTERN.match((reply or "").strip())
    if not match:
        raise MalformedResponse(f"Invalid response format: {(reply or '')[:80]!r}")

    speaker, content = match.group(1).strip(), match.group(2).strip()
    if not content:
        raise MalformedResponse("Response has an empty message body")

    for participant in participants:
        if participant.name.strip().lower() == speaker.lower():
            return participant.id, content

    raise UnknownSpeaker(speaker, [p.name for p in participants])
