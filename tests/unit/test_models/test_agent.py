"""Tests for Agent and AuthUser models."""

import pytest
from openhouse.models.agent import Agent, AgentRole, AuthUser


@pytest.mark.unit
def test_agent_accepts_italian_name_columns():
    """Test nome/cognome aliases."""
    agent = Agent.model_validate({
        "id": "agent-1",
        "email": "mario.rossi@agenzia.it",
        "nome": "Mario",
        "cognome": "Rossi",
    })

    assert agent.full_name == "Mario Rossi"
    assert agent.role == AgentRole.AGENT
    assert agent.is_active is True


@pytest.mark.unit
def test_agent_acts_only_for_self():
    """Test agent scope."""
    user = AuthUser(id="agent-1", email="a@example.com", role=AgentRole.AGENT)

    assert user.can_act_for("agent-1") is True
    assert user.can_act_for("agent-2") is False
    assert user.can_act_for(None) is False


@pytest.mark.unit
def test_collaborator_acts_as_agent():
    """Test collaborators get agent privileges only."""
    user = AuthUser(id="collab-1", email="c@example.com", role="collaborator")

    assert user.is_admin is False
    assert user.can_act_for("collab-1") is True
    assert user.can_act_for("agent-2") is False


@pytest.mark.unit
def test_admin_acts_for_everyone():
    """Test admin implies agent privileges on every event."""
    user = AuthUser(id="admin-1", email="admin@example.com", role=AgentRole.ADMIN)

    assert user.is_admin is True
    assert user.can_act_for("agent-2") is True
