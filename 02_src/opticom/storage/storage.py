"""SQLite storage implementation."""

import json
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Protocol

import aiosqlite

from ..config import resolve_db_path
from ..models import (
    Agent,
    AgentStatus,
    AgentType,
    Conversation,
    ConversationStatus,
    Message,
)


def _to_db_time(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def _from_db_time(value: str | None) -> datetime | None:
    if not value:
        return None
    ts = datetime.fromisoformat(value)
    return ts if ts.tzinfo else ts.replace(tzinfo=timezone.utc)


class IStorage(Protocol):
    """Persistent storage for agents, conversations and messages (SQLite)."""

    async def init(self) -> None:
        """Initialize database and create tables."""
        ...

    async def close(self) -> None:
        """Close database connection."""
        ...

    # Agents
    async def get_agents(self) -> list[Agent]:
        """Get all agents ordered by creation time."""
        ...

    async def get_agent(self, agent_id: str) -> Agent | None:
        """Get agent by ID."""
        ...

    async def get_agent_by_name(self, name: str) -> Agent | None:
        """Get agent by exact name."""
        ...

    async def save_agent(self, agent: Agent) -> None:
        """Insert a new agent."""
        ...

    async def update_agent(self, agent: Agent) -> None:
        """Persist mutable agent fields (status, description)."""
        ...

    async def delete_agent(self, agent_id: str) -> bool:
        """Delete agent. Returns False if nothing was deleted."""
        ...

    # Conversations
    async def get_conversations(
        self, status: ConversationStatus | None = None
    ) -> list[Conversation]:
        """Get conversations, optionally filtered by status."""
        ...

    async def get_conversation(self, conversation_id: str) -> Conversation | None:
        """Get conversation by ID (without messages)."""
        ...

    async def get_conversation_by_name(self, name: str) -> Conversation | None:
        """Get conversation by exact name."""
        ...

    async def save_conversation(self, conversation: Conversation) -> None:
        """Insert a new conversation."""
        ...

    async def update_conversation(self, conversation: Conversation) -> None:
        """Persist status, ended_at and goal_achieved."""
        ...

    # Messages
    async def save_message(self, message: Message) -> None:
        """Append a message to a conversation's log."""
        ...

    async def get_messages(self, conversation_id: str) -> list[Message]:
        """Get messages for a conversation in append order."""
        ...

    # Lifecycle
    async def clear(self) -> None:
        """Clear all data."""
        ...


class Storage:
    """SQLite storage implementation."""

    def __init__(self, db_path: str | Path | None = None):
        if db_path is None:
            self._db_path = resolve_db_path()
        else:
            self._db_path = resolve_db_path(db_path)
        self._conn: aiosqlite.Connection | None = None

    async def init(self) -> None:
        """Initialize database and create tables."""
        self._conn = await aiosqlite.connect(self._db_path)

        schema_path = Path(__file__).parent / "schema.sql"
        with open(schema_path, "r", encoding="utf-8") as f:
            schema_sql = f.read()
        await self._conn.executescript(schema_sql)
        await self._conn.commit()

    async def close(self) -> None:
        """Close database connection."""
        if self._conn:
            await self._conn.close()
            self._conn = None

    def _require_conn(self) -> aiosqlite.Connection:
        if not self._conn:
            raise RuntimeError("Storage not initialized")
        return self._conn

    # Agents
    @staticmethod
    def _row_to_agent(row) -> Agent:
        return Agent(
            id=row[0],
            name=row[1],
            type=AgentType(row[2]),
            description=row[3],
            status=AgentStatus(row[4]),
            created_at=_from_db_time(row[5]),
        )

    async def get_agents(self) -> list[Agent]:
        """Get all agents ordered by creation time."""
        conn = self._require_conn()
        cursor = await conn.execute(
            """
            SELECT id, name, type, description, status, created_at
            FROM agents
            ORDER BY created_at ASC, rowid ASC
            """
        )
        rows = await cursor.fetchall()
        return [self._row_to_agent(row) for row in rows]

    async def get_agent(self, agent_id: str) -> Agent | None:
        """Get agent by ID."""
        conn = self._require_conn()
        cursor = await conn.execute(
            """
            SELECT id, name, type, description, status, created_at
            FROM agents
            WHERE id = ?
            """,
            (agent_id,),
        )
        row = await cursor.fetchone()
        return self._row_to_agent(row) if row else None

    async def get_agent_by_name(self, name: str) -> Agent | None:
        """Get agent by exact name."""
        conn = self._require_conn()
        cursor = await conn.execute(
            """
            SELECT id, name, type, description, status, created_at
            FROM agents
            WHERE name = ?
            """,
            (name,),
        )
        row = await cursor.fetchone()
        return self._row_to_agent(row) if row else None

    async def save_agent(self, agent: Agent) -> None:
        """Insert a new agent."""
        conn = self._require_conn()

        if not agent.id:
            agent.id = str(uuid.uuid4())

        await conn.execute(
            """
            INSERT INTO agents (id, name, type, description, status, created_at)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (
                agent.id,
                agent.name,
                agent.type.value,
                agent.description,
                agent.status.value,
                _to_db_time(agent.created_at),
            ),
        )
        await conn.commit()

    async def update_agent(self, agent: Agent) -> None:
        """Persist mutable agent fields (status, description)."""
        conn = self._require_conn()
        await conn.execute(
            """
            UPDATE agents
            SET status = ?, description = ?
            WHERE id = ?
            """,
            (agent.status.value, agent.description, agent.id),
        )
        await conn.commit()

    async def delete_agent(self, agent_id: str) -> bool:
        """Delete agent. Returns False if nothing was deleted."""
        conn = self._require_conn()
        cursor = await conn.execute("DELETE FROM agents WHERE id = ?", (agent_id,))
        await conn.commit()
        return cursor.rowcount > 0

    # Conversations
    @staticmethod
    def _row_to_conversation(row) -> Conversation:
        return Conversation(
            id=row[0],
            name=row[1],
            topic=row[2],
            goal=row[3],
            surrounding=row[4],
            status=ConversationStatus(row[5]),
            participants=json.loads(row[6]),
            started_at=_from_db_time(row[7]),
            ended_at=_from_db_time(row[8]),
            goal_achieved=None if row[9] is None else bool(row[9]),
        )

    async def get_conversations(
        self, status: ConversationStatus | None = None
    ) -> list[Conversation]:
        """Get conversations, optionally filtered by status."""
        conn = self._require_conn()

        query = """
            SELECT id, name, topic, goal, surrounding, status, participants,
                   started_at, ended_at, goal_achieved
            FROM conversations
        """
        params: list = []
        if status is not None:
            query += " WHERE status = ?"
            params.append(status.value)
        query += " ORDER BY started_at ASC, rowid ASC"

        cursor = await conn.execute(query, params)
        rows = await cursor.fetchall()
        return [self._row_to_conversation(row) for row in rows]

    async def get_conversation(self, conversation_id: str) -> Conversation | None:
        """Get conversation by ID (without messages)."""
        conn = self._require_conn()
        cursor = await conn.execute(
            """
            SELECT id, name, topic, goal, surrounding, status, participants,
                   started_at, ended_at, goal_achieved
            FROM conversations
            WHERE id = ?
            """,
            (conversation_id,),
        )
        row = await cursor.fetchone()
        return self._row_to_conversation(row) if row else None

    async def get_conversation_by_name(self, name: str) -> Conversation | None:
        """Get conversation by exact name."""
        conn = self._require_conn()
        cursor = await conn.execute(
            """
            SELECT id, name, topic, goal, surrounding, status, participants,
                   started_at, ended_at, goal_achieved
            FROM conversations
            WHERE name = ?
            """,
            (name,),
        )
        row = await cursor.fetchone()
        return self._row_to_conversation(row) if row else None

    async def save_conversation(self, conversation: Conversation) -> None:
        """Insert a new conversation."""
        conn = self._require_conn()

        if not conversation.id:
            conversation.id = str(uuid.uuid4())

        await conn.execute(
            """
            INSERT INTO conversations
            (id, name, topic, goal, surrounding, status, participants,
             started_at, ended_at, goal_achieved)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                conversation.id,
                conversation.name,
                conversation.topic,
                conversation.goal,
                conversation.surrounding,
                conversation.status.value,
                json.dumps(conversation.participants),
                _to_db_time(conversation.started_at),
                _to_db_time(conversation.ended_at),
                conversation.goal_achieved,
            ),
        )
        await conn.commit()

    async def update_conversation(self, conversation: Conversation) -> None:
        """Persist status, ended_at and goal_achieved."""
        conn = self._require_conn()
        await conn.execute(
            """
            UPDATE conversations
            SET status = ?, ended_at = ?, goal_achieved = ?
            WHERE id = ?
            """,
            (
                conversation.status.value,
                _to_db_time(conversation.ended_at),
                conversation.goal_achieved,
                conversation.id,
            ),
        )
        await conn.commit()

    # Messages
    async def save_message(self, message: Message) -> None:
        """Append a message to a conversation's log."""
        conn = self._require_conn()

        if not message.id:
            message.id = str(uuid.uuid4())

        await conn.execute(
            """
            INSERT INTO messages
            (id, conversation_id, sender_id, recipients, content, timestamp)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (
                message.id,
                message.conversation_id,
                message.sender_id,
                json.dumps(message.recipients),
                message.content,
                _to_db_time(message.timestamp),
            ),
        )
        await conn.commit()

    async def get_messages(self, conversation_id: str) -> list[Message]:
        """Get messages for a conversation in append order."""
        conn = self._require_conn()
        cursor = await conn.execute(
            """
            SELECT id, conversation_id, sender_id, recipients, content, timestamp
            FROM messages
            WHERE conversation_id = ?
            ORDER BY rowid ASC
            """,
            (conversation_id,),
        )
        rows = await cursor.fetchall()

        return [
            Message(
                id=row[0],
                conversation_id=row[1],
                sender_id=row[2],
                recipients=json.loads(row[3]),
                content=row[4],
                timestamp=_from_db_time(row[5]),
            )
            for row in rows
        ]

    # Lifecycle
    async def clear(self) -> None:
        """Clear all data."""
        conn = self._require_conn()

        for table in ("messages", "conversations", "agents"):
            await conn.execute(f"DELETE FROM {table}")

        await conn.commit()
