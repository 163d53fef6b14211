"""Conversation API routes."""

from dataclasses import asdict
from datetime import datetime

from fastapi import APIRouter
from pydantic import BaseModel, Field

from ...app import Application
from ...models import ConversationStatus
from ..errors import http_error


class CreateConversationRequest(BaseModel):
    """Request model for creating a conversation."""

    name: str
    topic: str
    goal: str
    surrounding: str = ""
    participant_ids: list[str] = Field(default_factory=list)


class MessageResponse(BaseModel):
    """Response model for a message."""

    id: str
    conversation_id: str
    sender_id: str
    recipients: list[str]
    content: str
    timestamp: datetime


class ConversationResponse(BaseModel):
    """Response model for a conversation."""

    id: str
    name: str
    topic: str
    goal: str
    surrounding: str
    status: ConversationStatus
    participants: list[str]
    started_at: datetime
    ended_at: datetime | None
    goal_achieved: bool | None


class ConversationDetailResponse(ConversationResponse):
    """Conversation with its message log."""

    messages: list[MessageResponse]


class StepResponse(BaseModel):
    """Response model for a manual generation step."""

    message: MessageResponse | None
    status: ConversationStatus


class AgentCountResponse(BaseModel):
    agent_id: str
    name: str
    count: int


class StatusCountsResponse(BaseModel):
    total: int
    active: int
    paused: int
    completed: int
    terminated: int


class StatisticsResponse(BaseModel):
    """Response model for aggregate statistics."""

    total_messages: int
    messages_by_agent: list[AgentCountResponse]
    conversations_by_agent: list[AgentCountResponse]
    conversation_stats: StatusCountsResponse


class AIStatusResponse(BaseModel):
    """Response model for generation status."""

    is_enabled: bool
    reason: str | None


def create_conversations_router(app: Application) -> APIRouter:
    """Create conversations router."""
    router = APIRouter(prefix="/api", tags=["conversations"])

    @router.get("/conversations", response_model=list[ConversationResponse])
    async def list_conversations(status: ConversationStatus | None = None) -> list[dict]:
        """List conversations, optionally filtered by status."""
        try:
            conversations = await app.conversations.list_all()
            return [
                asdict(c) for c in conversations if status is None or c.status == status
            ]
        except Exception as e:
            raise http_error(e) from e

    @router.post("/conversations", response_model=ConversationResponse, status_code=201)
    async def create_conversation(request: CreateConversationRequest) -> dict:
        """Create a conversation and reserve its participants."""
        try:
            conversation = await app.conversations.create(
                name=request.name,
                topic=request.topic,
                goal=request.goal,
                surrounding=request.surrounding,
                participant_ids=request.participant_ids,
            )
            return asdict(conversation)
        except Exception as e:
            raise http_error(e) from e

    @router.post("/conversations/pause-all", response_model=list[ConversationResponse])
    async def pause_all_conversations() -> list[dict]:
        """Pause every active conversation."""
        try:
            return [asdict(c) for c in await app.conversations.pause_all()]
        except Exception as e:
            raise http_error(e) from e

    @router.get("/conversations/{conversation_id}", response_model=ConversationDetailResponse)
    async def get_conversation(conversation_id: str) -> dict:
        """Get a conversation with its messages."""
        try:
            conversation = await app.conversations.get(conversation_id, include_messages=True)
            return asdict(conversation)
        except Exception as e:
            raise http_error(e) from e

    @router.get(
        "/conversations/{conversation_id}/messages", response_model=list[MessageResponse]
    )
    async def get_messages(conversation_id: str) -> list[dict]:
        """Get the message log of a conversation."""
        try:
            return [asdict(m) for m in await app.conversations.get_messages(conversation_id)]
        except Exception as e:
            raise http_error(e) from e

    @router.post("/conversations/{conversation_id}/pause", response_model=ConversationResponse)
    async def pause_conversation(conversation_id: str) -> dict:
        try:
            return asdict(await app.conversations.pause(conversation_id))
        except Exception as e:
            raise http_error(e) from e

    @router.post("/conversations/{conversation_id}/unpause", response_model=ConversationResponse)
    async def unpause_conversation(conversation_id: str) -> dict:
        try:
            return asdict(await app.conversations.unpause(conversation_id))
        except Exception as e:
            raise http_error(e) from e

    @router.post("/conversations/{conversation_id}/terminate", response_model=ConversationResponse)
    async def terminate_conversation(conversation_id: str) -> dict:
        try:
            conversation = await app.conversations.terminate(conversation_id)
            app.driver.evict(conversation_id)
            return asdict(conversation)
        except Exception as e:
            raise http_error(e) from e

    @router.post("/conversations/{conversation_id}/step", response_model=StepResponse)
    async def step_conversation(conversation_id: str) -> dict:
        """Run one generation step now, outside the scheduler."""
        try:
            conversation = await app.conversations.get(conversation_id)
            message = await app.driver.step(conversation)
            conversation = await app.conversations.get(conversation_id)
            return {
                "message": asdict(message) if message else None,
                "status": conversation.status,
            }
        except Exception as e:
            raise http_error(e) from e

    @router.get("/statistics", response_model=StatisticsResponse)
    async def get_statistics() -> dict:
        """Aggregate counts by status and by agent."""
        try:
            return asdict(await app.conversations.get_statistics())
        except Exception as e:
            raise http_error(e) from e

    @router.get("/ai/status", response_model=AIStatusResponse)
    async def get_ai_status() -> dict:
        """Whether generation is enabled, and why not."""
        return asdict(app.ai_status())

    return router
