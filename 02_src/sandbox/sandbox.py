"""Sandbox seeding - demo agents and conversations created through the HTTP API."""

from typing import Protocol

import httpx

from opticom.logging_config import get_logger

logger = get_logger(__name__)

SANDBOX_AGENTS = [
    {
        "name": "Sophia",
        "type": "learning",
        "description": "Curious and adaptive, Sophia absorbs knowledge to tackle any challenge.",
    },
    {
        "name": "Maxwell",
        "type": "assistant",
        "description": "Organized and reliable, Maxwell excels in streamlining daily tasks efficiently.",
    },
    {
        "name": "Iris",
        "type": "specialist",
        "description": "A creative problem solver with deep expertise in design and user experience.",
    },
    {
        "name": "Aria",
        "type": "learning",
        "description": "A fast learner who thrives on analyzing patterns and making data-driven decisions.",
    },
    {
        "name": "Leo",
        "type": "assistant",
        "description": "Friendly and resourceful, Leo handles scheduling and reminders with ease.",
    },
    {
        "name": "Vera",
        "type": "specialist",
        "description": "Focused on cybersecurity, Vera ensures data is protected from emerging threats.",
    },
    {
        "name": "Eli",
        "type": "learning",
        "description": "Always curious, Eli enjoys diving into new topics to expand their expertise.",
    },
]

SANDBOX_CONVERSATIONS = [
    {
        "name": "Design Dilemma",
        "topic": "Discussing the best layout for a user-friendly dashboard interface",
        "goal": "Agree on a design that balances functionality and aesthetic appeal",
        "surrounding": "A virtual meeting room with a shared interactive whiteboard",
        "participants": ["Iris", "Maxwell"],
    },
    {
        "name": "Cybersecurity Framework",
        "topic": "Creating a framework to secure data and prevent unauthorized access",
        "goal": "Finalize a comprehensive security plan that minimizes vulnerabilities",
        "surrounding": "A high-tech conference room with holographic displays showing real-time data",
        "participants": ["Vera", "Sophia", "Leo"],
    },
]


class ISandbox(Protocol):
    """Seed demo data."""

    async def exists(self) -> bool:
        """Whether any sandbox agent or conversation is present."""
        ...

    async def seed(self) -> dict:
        """Create demo agents and conversations unless already present."""
        ...


class Sandbox:
    """Creates the demo roster through the public API."""

    def __init__(
        self,
        api_url: str = "http://localhost:8000",
        client: httpx.AsyncClient | None = None,
    ):
        self._api_url = api_url.rstrip("/")
        self._client = client

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        if self._client is not None:
            response = await self._client.request(method, f"{self._api_url}{path}", **kwargs)
        else:
            async with httpx.AsyncClient(timeout=10.0) as client:
                response = await client.request(method, f"{self._api_url}{path}", **kwargs)
        response.raise_for_status()
        return response

    async def exists(self) -> bool:
        agents = (await self._request("GET", "/api/agents")).json()
        conversations = (await self._request("GET", "/api/conversations")).json()

        agent_names = {a["name"] for a in SANDBOX_AGENTS}
        conversation_names = {c["name"] for c in SANDBOX_CONVERSATIONS}
        return any(a["name"] in agent_names for a in agents) or any(
            c["name"] in conversation_names for c in conversations
        )

    async def seed(self) -> dict:
        """
        Create demo agents and conversations.

        Returns a summary dict with ``status`` ("ok" or "skipped") and the
        names created.
        """
        if await self.exists():
            logger.info("Sandbox data already present, skipping")
            return {"status": "skipped", "agents": [], "conversations": []}

        agent_ids: dict[str, str] = {}
        for payload in SANDBOX_AGENTS:
            response = await self._request("POST", "/api/agents", json=payload)
            agent_ids[payload["name"]] = response.json()["id"]
            logger.info("Sandbox: created agent %s", payload["name"])

        created = []
        for entry in SANDBOX_CONVERSATIONS:
            payload = {
                "name": entry["name"],
                "topic": entry["topic"],
                "goal": entry["goal"],
                "surrounding": entry["surrounding"],
                "participant_ids": [agent_ids[name] for name in entry["participants"]],
            }
            await self._request("POST", "/api/conversations", json=payload)
            created.append(entry["name"])
            logger.info("Sandbox: created conversation %s", entry["name"])

        return {"status": "ok", "agents": list(agent_ids), "conversations": created}
