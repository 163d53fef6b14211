"""Tests for AgentRegistry."""

from unittest.mock import AsyncMock

import pytest

from opticom.errors import (
    AgentNotAvailable,
    AgentNotFound,
    DuplicateName,
    InvalidInput,
    InvalidState,
    NotFound,
)
from opticom.models import AgentStatus, AgentType


class TestAgentRegistryCreate:
    """Tests for AgentRegistry.create()."""

    async def test_create_starts_inactive(self, registry):
        """Test that new agents are always inactive."""
        agent = await registry.create("Alice", AgentType.LEARNING, "curious")

        assert agent.status == AgentStatus.INACTIVE
        assert agent.type == AgentType.LEARNING
        assert agent.description == "curious"
        assert (await registry.find_by_id(agent.id)).name == "Alice"

    async def test_create_accepts_type_string(self, registry):
        """Test that the type may be given by value."""
        agent = await registry.create("Alice", "specialist")
        assert agent.type == AgentType.SPECIALIST

    async def test_create_rejects_short_name(self, registry):
        """Test the minimum name length."""
        with pytest.raises(InvalidInput, match="at least 3"):
            await registry.create("Al", AgentType.LEARNING)

    async def test_create_rejects_whitespace_padded_short_name(self, registry):
        with pytest.raises(InvalidInput):
            await registry.create("  A  ", AgentType.LEARNING)

    async def test_create_rejects_unknown_type(self, registry):
        with pytest.raises(InvalidInput, match="Unknown agent type"):
            await registry.create("Alice", "wizard")

    async def test_create_rejects_duplicate_name(self, registry):
        """Test exact-match name uniqueness."""
        await registry.create("Alice", AgentType.LEARNING)

        with pytest.raises(DuplicateName):
            await registry.create("Alice", AgentType.ASSISTANT)

    async def test_names_are_case_sensitive(self, registry):
        """Test that names differing only in case are distinct."""
        await registry.create("Alice", AgentType.LEARNING)
        agent = await registry.create("alice", AgentType.LEARNING)
        assert agent.name == "alice"


class TestAgentRegistryDelete:
    """Tests for AgentRegistry.delete()."""

    async def test_delete_inactive(self, registry):
        agent = await registry.create("Alice", AgentType.LEARNING)
        await registry.delete(agent.id)
        assert await registry.find_by_id(agent.id) is None

    async def test_delete_active_fails(self, registry):
        """Test that reserved agents cannot be deleted."""
        agent = await registry.create("Alice", AgentType.LEARNING)
        await registry.set_status(agent.id, AgentStatus.ACTIVE)

        with pytest.raises(InvalidState):
            await registry.delete(agent.id)
        assert await registry.find_by_id(agent.id) is not None

    async def test_delete_unknown_fails(self, registry):
        with pytest.raises(NotFound):
            await registry.delete("missing")


class TestAgentRegistryStatus:
    """Tests for status changes."""

    async def test_set_status_is_idempotent(self, registry, storage):
        """Test that setting the current status writes nothing."""
        agent = await registry.create("Alice", AgentType.LEARNING)
        storage.update_agent = AsyncMock(wraps=storage.update_agent)

        await registry.set_status(agent.id, AgentStatus.INACTIVE)
        storage.update_agent.assert_not_called()

        await registry.set_status(agent.id, AgentStatus.ACTIVE)
        await registry.set_status(agent.id, AgentStatus.ACTIVE)
        assert storage.update_agent.await_count == 1

    async def test_activate_and_deactivate(self, registry):
        """Test administrative overrides."""
        agent = await registry.create("Alice", AgentType.LEARNING)

        assert (await registry.activate(agent.id)).status == AgentStatus.ACTIVE
        assert (await registry.deactivate(agent.id)).status == AgentStatus.INACTIVE

    async def test_set_status_unknown_agent(self, registry):
        with pytest.raises(AgentNotFound):
            await registry.set_status("missing", AgentStatus.ACTIVE)

    async def test_update_description(self, registry):
        agent = await registry.create("Alice", AgentType.LEARNING)
        updated = await registry.update_description(agent.id, "  direct  ")
        assert updated.description == "direct"
        assert (await registry.update_description(agent.id, "")).description is None


class TestAgentRegistryReservation:
    """Tests for reserve()/release()."""

    async def test_reserve_marks_all_active(self, registry, agents):
        alice, bob, _ = agents
        reserved = await registry.reserve([alice.id, bob.id])

        assert [a.status for a in reserved] == [AgentStatus.ACTIVE] * 2
        assert (await registry.find_by_id(alice.id)).status == AgentStatus.ACTIVE

    async def test_reserve_is_all_or_nothing(self, registry, agents):
        """Test that one busy agent leaves the others untouched."""
        alice, bob, carol = agents
        await registry.set_status(carol.id, AgentStatus.ACTIVE)

        with pytest.raises(AgentNotAvailable):
            await registry.reserve([alice.id, bob.id, carol.id])

        assert (await registry.find_by_id(alice.id)).status == AgentStatus.INACTIVE
        assert (await registry.find_by_id(bob.id)).status == AgentStatus.INACTIVE

    async def test_reserve_unknown_agent(self, registry, agents):
        alice, _, _ = agents
        with pytest.raises(AgentNotFound):
            await registry.reserve([alice.id, "missing"])
        assert (await registry.find_by_id(alice.id)).status == AgentStatus.INACTIVE

    async def test_failed_body_does_not_reserve(self, registry, agents):
        """Test that an exception inside the reservation leaves agents free."""
        alice, bob, _ = agents

        with pytest.raises(RuntimeError):
            async with registry.reservation([alice.id, bob.id]):
                raise RuntimeError("insert failed")

        assert (await registry.find_by_id(alice.id)).status == AgentStatus.INACTIVE

    async def test_release(self, registry, agents):
        alice, bob, _ = agents
        await registry.reserve([alice.id, bob.id])
        await registry.release([alice.id, bob.id, "deleted-agent"])

        assert [a.status for a in await registry.list_all()] == [AgentStatus.INACTIVE] * 3

    async def test_list_available(self, registry, agents):
        alice, bob, carol = agents
        await registry.reserve([alice.id, bob.id])
        assert [a.id for a in await registry.list_available()] == [carol.id]
