"""Tests for Storage."""

from datetime import datetime, timedelta, timezone

import pytest

from opticom.models import (
    Agent,
    AgentStatus,
    AgentType,
    ConversationStatus,
    Message,
)

from conftest import make_conversation


def make_agent(agent_id: str, name: str, **overrides) -> Agent:
    fields = {
        "id": agent_id,
        "name": name,
        "type": AgentType.ASSISTANT,
        "status": AgentStatus.INACTIVE,
        "created_at": datetime.now(timezone.utc),
    }
    fields.update(overrides)
    return Agent(**fields)


class TestStorageInit:
    """Tests for Storage initialization."""

    async def test_init_creates_tables(self, storage):
        """Test that init creates all tables."""
        async with storage._conn.execute(
            "SELECT name FROM sqlite_master WHERE type='table'"
        ) as cursor:
            tables = [row[0] for row in await cursor.fetchall()]
            assert "agents" in tables
            assert "conversations" in tables
            assert "messages" in tables

    async def test_uninitialized_storage_raises(self):
        """Test that using storage before init raises."""
        from opticom.storage import Storage

        st = Storage(":memory:")
        with pytest.raises(RuntimeError, match="not initialized"):
            await st.get_agents()


class TestStorageAgents:
    """Tests for Agent storage."""

    async def test_save_and_get_agent(self, storage):
        """Test saving and retrieving an agent."""
        agent = make_agent("a1", "Alice", description="curious", type=AgentType.LEARNING)
        await storage.save_agent(agent)

        retrieved = await storage.get_agent("a1")
        assert retrieved is not None
        assert retrieved.name == "Alice"
        assert retrieved.type == AgentType.LEARNING
        assert retrieved.status == AgentStatus.INACTIVE
        assert retrieved.description == "curious"
        assert retrieved.created_at.tzinfo is not None

    async def test_get_agent_by_name_is_case_sensitive(self, storage):
        """Test name lookup is exact."""
        await storage.save_agent(make_agent("a1", "Alice"))

        assert (await storage.get_agent_by_name("Alice")).id == "a1"
        assert await storage.get_agent_by_name("alice") is None

    async def test_update_agent(self, storage):
        """Test updating status and description."""
        agent = make_agent("a1", "Alice")
        await storage.save_agent(agent)

        agent.status = AgentStatus.ACTIVE
        agent.description = "busy"
        await storage.update_agent(agent)

        retrieved = await storage.get_agent("a1")
        assert retrieved.status == AgentStatus.ACTIVE
        assert retrieved.description == "busy"

    async def test_delete_agent(self, storage):
        """Test deleting an agent."""
        await storage.save_agent(make_agent("a1", "Alice"))

        assert await storage.delete_agent("a1") is True
        assert await storage.get_agent("a1") is None
        assert await storage.delete_agent("a1") is False

    async def test_get_agents_in_creation_order(self, storage):
        """Test listing agents."""
        base = datetime(2024, 1, 1, tzinfo=timezone.utc)
        await storage.save_agent(make_agent("a2", "Bob", created_at=base + timedelta(seconds=1)))
        await storage.save_agent(make_agent("a1", "Alice", created_at=base))

        names = [a.name for a in await storage.get_agents()]
        assert names == ["Alice", "Bob"]

    async def test_get_nonexistent_agent(self, storage):
        """Test retrieving nonexistent agent returns None."""
        assert await storage.get_agent("nonexistent") is None


class TestStorageConversations:
    """Tests for Conversation storage."""

    async def test_save_and_get_conversation(self, storage):
        """Test participants round-trip in order."""
        conversation = make_conversation("c1", "Design", participants=["a2", "a1", "a3"])
        await storage.save_conversation(conversation)

        retrieved = await storage.get_conversation("c1")
        assert retrieved.name == "Design"
        assert retrieved.participants == ["a2", "a1", "a3"]
        assert retrieved.status == ConversationStatus.ACTIVE
        assert retrieved.goal_achieved is None
        assert retrieved.ended_at is None

    async def test_update_conversation(self, storage):
        """Test updating status, end time and goal flag."""
        conversation = make_conversation("c1", "Design")
        await storage.save_conversation(conversation)

        conversation.status = ConversationStatus.COMPLETED
        conversation.ended_at = datetime.now(timezone.utc)
        conversation.goal_achieved = True
        await storage.update_conversation(conversation)

        retrieved = await storage.get_conversation("c1")
        assert retrieved.status == ConversationStatus.COMPLETED
        assert retrieved.ended_at is not None
        assert retrieved.goal_achieved is True

    async def test_filter_by_status(self, storage):
        """Test get_conversations status filter."""
        await storage.save_conversation(make_conversation("c1", "One"))
        await storage.save_conversation(
            make_conversation("c2", "Two", status=ConversationStatus.PAUSED)
        )

        active = await storage.get_conversations(ConversationStatus.ACTIVE)
        assert [c.id for c in active] == ["c1"]
        assert len(await storage.get_conversations()) == 2

    async def test_get_conversation_by_name(self, storage):
        await storage.save_conversation(make_conversation("c1", "One"))
        assert (await storage.get_conversation_by_name("One")).id == "c1"
        assert await storage.get_conversation_by_name("Two") is None


class TestStorageMessages:
    """Tests for Message storage."""

    async def test_messages_keep_append_order(self, storage):
        """Test messages come back in append order with recipients."""
        ts = datetime.now(timezone.utc)
        for i in range(3):
            await storage.save_message(
                Message(
                    id=f"m{i}",
                    conversation_id="c1",
                    sender_id="a1",
                    content=str(i),
                    timestamp=ts,  # same timestamp on purpose
                    recipients=["a1", "a2"],
                )
            )

        messages = await storage.get_messages("c1")
        assert [m.content for m in messages] == ["0", "1", "2"]
        assert messages[0].recipients == ["a1", "a2"]

    async def test_save_message_generates_id(self, storage):
        """Test that saving a message without ID generates one."""
        msg = Message(
            id="",
            conversation_id="c1",
            sender_id="a1",
            content="Hello",
            timestamp=datetime.now(timezone.utc),
        )
        await storage.save_message(msg)
        assert msg.id

    async def test_get_messages_empty_conversation(self, storage):
        """Test retrieving messages from empty conversation."""
        assert await storage.get_messages("nonexistent") == []


class TestStorageClear:
    """Tests for clearing storage."""

    async def test_clear_all_data(self, storage):
        """Test clearing all data."""
        await storage.save_agent(make_agent("a1", "Alice"))
        await storage.save_conversation(make_conversation("c1", "One"))
        await storage.save_message(
            Message(
                id="m1",
                conversation_id="c1",
                sender_id="a1",
                content="Hi",
                timestamp=datetime.now(timezone.utc),
            )
        )

        await storage.clear()

        assert await storage.get_agents() == []
        assert await storage.get_conversations() == []
        assert await storage.get_messages("c1") == []
