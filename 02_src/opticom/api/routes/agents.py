"""Agent management API routes."""

from dataclasses import asdict
from datetime import datetime

from fastapi import APIRouter
from pydantic import BaseModel, Field

from ...app import Application
from ...models import AgentStatus, AgentType
from ..errors import http_error


class CreateAgentRequest(BaseModel):
    """Request model for creating an agent."""

    name: str
    type: AgentType
    description: str | None = None


class UpdateAgentRequest(BaseModel):
    """Request model for updating an agent's description."""

    description: str | None = Field(None, max_length=2000)


class AgentResponse(BaseModel):
    """Response model for an agent."""

    id: str
    name: str
    type: AgentType
    status: AgentStatus
    description: str | None
    created_at: datetime


class DeletedResponse(BaseModel):
    """Response model for deletions."""

    status: str
    id: str


def create_agents_router(app: Application) -> APIRouter:
    """Create agents router."""
    router = APIRouter(prefix="/api/agents", tags=["agents"])

    @router.get("", response_model=list[AgentResponse])
    async def list_agents() -> list[dict]:
        """List all agents."""
        try:
            return [asdict(a) for a in await app.agents.list_all()]
        except Exception as e:
            raise http_error(e) from e

    @router.get("/available", response_model=list[AgentResponse])
    async def list_available_agents() -> list[dict]:
        """List agents free to join a new conversation."""
        try:
            return [asdict(a) for a in await app.agents.list_available()]
        except Exception as e:
            raise http_error(e) from e

    @router.post("", response_model=AgentResponse, status_code=201)
    async def create_agent(request: CreateAgentRequest) -> dict:
        """Create a new (inactive) agent."""
        try:
            agent = await app.agents.create(
                name=request.name,
                type=request.type,
                description=request.description,
            )
            return asdict(agent)
        except Exception as e:
            raise http_error(e) from e

    @router.get("/{agent_id}", response_model=AgentResponse)
    async def get_agent(agent_id: str) -> dict:
        """Get an agent by ID."""
        try:
            return asdict(await app.agents.get(agent_id))
        except Exception as e:
            raise http_error(e) from e

    @router.patch("/{agent_id}", response_model=AgentResponse)
    async def update_agent(agent_id: str, request: UpdateAgentRequest) -> dict:
        """Update an agent's description."""
        try:
            return asdict(await app.agents.update_description(agent_id, request.description))
        except Exception as e:
            raise http_error(e) from e

    @router.delete("/{agent_id}", response_model=DeletedResponse)
    async def delete_agent(agent_id: str) -> dict:
        """Delete an inactive agent."""
        try:
            await app.agents.delete(agent_id)
            return {"status": "ok", "id": agent_id}
        except Exception as e:
            raise http_error(e) from e

    @router.post("/{agent_id}/activate", response_model=AgentResponse)
    async def activate_agent(agent_id: str) -> dict:
        """Administrative override: mark agent active."""
        try:
            return asdict(await app.agents.activate(agent_id))
        except Exception as e:
            raise http_error(e) from e

    @router.post("/{agent_id}/deactivate", response_model=AgentResponse)
    async def deactivate_agent(agent_id: str) -> dict:
        """Administrative override: mark agent inactive."""
        try:
            return asdict(await app.agents.deactivate(agent_id))
        except Exception as e:
            raise http_error(e) from e

    return router
