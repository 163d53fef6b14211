"""Pytest configuration and fixtures."""

import sys
from datetime import datetime, timezone
from pathlib import Path
from unittest.mock import AsyncMock, Mock

import pytest
import pytest_asyncio

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))


@pytest_asyncio.fixture
async def storage():
    """Create in-memory storage for testing."""
    from opticom.storage import Storage

    st = Storage(":memory:")
    await st.init()
    yield st
    await st.close()


@pytest.fixture
def registry(storage):
    """Create AgentRegistry with storage."""
    from opticom.registry import AgentRegistry

    return AgentRegistry(storage)


@pytest.fixture
def conversations(storage, registry):
    """Create ConversationManager with storage and registry."""
    from opticom.lifecycle import ConversationManager

    return ConversationManager(storage, registry)


@pytest.fixture
def mock_llm():
    """Create mock LLM provider."""
    llm = Mock()
    llm.complete = AsyncMock(return_value="no")
    return llm


@pytest.fixture
def driver(conversations, registry, mock_llm):
    """Create GenerationDriver with a mock LLM and a small goal-check interval."""
    from opticom.generation import GenerationDriver

    return GenerationDriver(
        conversations=conversations,
        registry=registry,
        llm_provider=mock_llm,
        goal_check_interval=3,
        max_consecutive_errors=3,
    )


@pytest_asyncio.fixture
async def agents(registry):
    """Create three inactive agents: Alice (learning), Bob (assistant), Carol (specialist)."""
    from opticom.models import AgentType

    alice = await registry.create("Alice", AgentType.LEARNING, "curious and friendly")
    bob = await registry.create("Bob", AgentType.ASSISTANT)
    carol = await registry.create("Carol", AgentType.SPECIALIST, "a technical expert")
    return alice, bob, carol


@pytest_asyncio.fixture
async def conversation(conversations, agents):
    """Create an active conversation between Alice and Bob."""
    alice, bob, _ = agents
    return await conversations.create(
        name="T",
        topic="roadmap",
        goal="agree on X",
        surrounding="a quiet office",
        participant_ids=[alice.id, bob.id],
    )


def make_conversation(conversation_id: str = "c1", name: str = "Conv", **overrides):
    """Build a Conversation without storage."""
    from opticom.models import Conversation, ConversationStatus

    fields = {
        "id": conversation_id,
        "name": name,
        "topic": "topic",
        "goal": "goal",
        "surrounding": "room",
        "status": ConversationStatus.ACTIVE,
        "participants": ["a1", "a2"],
        "started_at": datetime.now(timezone.utc),
    }
    fields.update(overrides)
    return Conversation(**fields)
