"""AgentRegistry implementation."""

import asyncio
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncIterator, Protocol

from ..errors import (
    AgentNotAvailable,
    AgentNotFound,
    DuplicateName,
    InvalidInput,
    InvalidState,
)
from ..logging_config import get_logger
from ..models import Agent, AgentStatus, AgentType
from ..storage import IStorage

logger = get_logger(__name__)

MIN_NAME_LENGTH = 3


class IAgentRegistry(Protocol):
    """Owning agent records and their reservation flag."""

    async def create(
        self, name: str, type: AgentType | str, description: str | None = None
    ) -> Agent:
        """Create an inactive agent."""
        ...

    async def delete(self, agent_id: str) -> None:
        """Delete an inactive agent."""
        ...

    async def set_status(self, agent_id: str, status: AgentStatus) -> Agent:
        """Set reservation status (idempotent)."""
        ...

    async def find_by_id(self, agent_id: str) -> Agent | None:
        """Get agent by ID or None."""
        ...

    async def find_by_name(self, name: str) -> Agent | None:
        """Get agent by exact name or None."""
        ...

    async def list_all(self) -> list[Agent]:
        """Get all agents."""
        ...


class AgentRegistry:
    """Agent records plus the check-and-reserve path for conversations."""

    def __init__(self, storage: IStorage):
        self._storage = storage
        self._reservation_lock = asyncio.Lock()

    async def create(
        self, name: str, type: AgentType | str, description: str | None = None
    ) -> Agent:
        """
        Create a new agent. Agents always start inactive.

        Raises:
            InvalidInput: Name too short or unknown agent type.
            DuplicateName: Another agent already has this exact name.
        """
        name = (name or "").strip()
        if len(name) < MIN_NAME_LENGTH:
            raise InvalidInput(
                f"Agent name must be at least {MIN_NAME_LENGTH} characters long"
            )

        try:
            agent_type = AgentType(type)
        except ValueError:
            valid = ", ".join(t.value for t in AgentType)
            raise InvalidInput(f"Unknown agent type {type!r}; expected one of {valid}") from None

        if await self._storage.get_agent_by_name(name):
            raise DuplicateName("Agent", name)

        description = description.strip() if description else None
        agent = Agent(
            id=str(uuid.uuid4()),
            name=name,
            type=agent_type,
            status=AgentStatus.INACTIVE,
            created_at=datetime.now(timezone.utc),
            description=description or None,
        )
        await self._storage.save_agent(agent)

        logger.info(
            "Agent created: %s (%s)",
            agent.name,
            agent.type.value,
            extra={"context": {"agent_id": agent.id}},
        )
        return agent

    async def delete(self, agent_id: str) -> None:
        """
        Delete an agent.

        Raises:
            AgentNotFound: Unknown id.
            InvalidState: Agent is reserved by a conversation.
        """
        async with self._reservation_lock:
            agent = await self.get(agent_id)
            if agent.status == AgentStatus.ACTIVE:
                raise InvalidState("Cannot delete an active agent")
            await self._storage.delete_agent(agent_id)

        logger.info("Agent deleted: %s", agent.name, extra={"context": {"agent_id": agent_id}})

    async def set_status(self, agent_id: str, status: AgentStatus) -> Agent:
        """Set reservation status. No write when already in that status."""
        status = AgentStatus(status)
        agent = await self.get(agent_id)
        if agent.status == status:
            return agent

        agent.status = status
        await self._storage.update_agent(agent)
        logger.debug(
            "Agent %s is now %s",
            agent.name,
            status.value,
            extra={"context": {"agent_id": agent_id}},
        )
        return agent

    async def activate(self, agent_id: str) -> Agent:
        """Administrative override: mark agent active."""
        async with self._reservation_lock:
            return await self.set_status(agent_id, AgentStatus.ACTIVE)

    async def deactivate(self, agent_id: str) -> Agent:
        """Administrative override: mark agent inactive."""
        async with self._reservation_lock:
            return await self.set_status(agent_id, AgentStatus.INACTIVE)

    async def update_description(self, agent_id: str, description: str | None) -> Agent:
        """Replace the free-text description."""
        agent = await self.get(agent_id)
        agent.description = description.strip() if description and description.strip() else None
        await self._storage.update_agent(agent)
        return agent

    async def find_by_id(self, agent_id: str) -> Agent | None:
        """Get agent by ID or None."""
        return await self._storage.get_agent(agent_id)

    async def find_by_name(self, name: str) -> Agent | None:
        """Get agent by exact (case-sensitive) name or None."""
        return await self._storage.get_agent_by_name(name)

    async def list_all(self) -> list[Agent]:
        """Get all agents."""
        return await self._storage.get_agents()

    async def list_available(self) -> list[Agent]:
        """Get agents free to join a new conversation."""
        return [a for a in await self._storage.get_agents() if a.status == AgentStatus.INACTIVE]

    async def get(self, agent_id: str) -> Agent:
        """Get agent by ID. Raises AgentNotFound."""
        agent = await self._storage.get_agent(agent_id)
        if agent is None:
            raise AgentNotFound(agent_id)
        return agent

    @asynccontextmanager
    async def reservation(self, agent_ids: list[str]) -> AsyncIterator[list[Agent]]:
        """
        Check that every agent is inactive and hold the reservation lock.

        The body runs under the lock (e.g. to persist the conversation); the
        agents are flipped to active only if the body completes without
        raising, so a failed creation never leaves a partial reservation.

        Raises:
            AgentNotFound: Any id does not resolve.
            AgentNotAvailable: Any agent is already active.
        """
        async with self._reservation_lock:
            agents = []
            for agent_id in agent_ids:
                agent = await self._storage.get_agent(agent_id)
                if agent is None:
                    raise AgentNotFound(agent_id)
                if agent.status != AgentStatus.INACTIVE:
                    raise AgentNotAvailable(agent.id, agent.name)
                agents.append(agent)

            yield agents

            for agent in agents:
                await self.set_status(agent.id, AgentStatus.ACTIVE)
                agent.status = AgentStatus.ACTIVE

    async def reserve(self, agent_ids: list[str]) -> list[Agent]:
        """All-or-nothing reservation of agents."""
        async with self.reservation(agent_ids) as agents:
            pass
        return agents

    async def release(self, agent_ids: list[str]) -> None:
        """Return agents to inactive."""
        async with self._reservation_lock:
            for agent_id in agent_ids:
                if await self._storage.get_agent(agent_id) is None:
                    logger.warning(
                        "Cannot release missing agent %s", agent_id,
                        extra={"context": {"agent_id": agent_id}},
                    )
                    continue
                await self.set_status(agent_id, AgentStatus.INACTIVE)
